"""Application service deriving step, resource and optimization suggestions."""
from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from backend.core.config import RecommendationRules
from backend.core.schema import (
    AIAssignee,
    OptimizationRecommendation,
    RecommendationScore,
    ResourceRecommendation,
    ServiceRequest,
    Step,
    StepRecommendation,
)
from backend.core.similarity import contains_keywords, similarity
from backend.infrastructure import AIClient, StorageGateway

TEAM_ROLES = {"admin", "team_member"}
QUALITY_KEYWORDS = ["final", "review", "approve", "deliver", "submit"]


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    keywords: tuple[str, ...]
    matched_score: int
    default_score: int
    description: str
    reasons: tuple[str, ...]


PROVIDER_PROFILES: dict[str, ProviderProfile] = {
    "openai": ProviderProfile(
        keywords=("general", "creative", "writing", "content"),
        matched_score=85,
        default_score=70,
        description="OpenAI is recommended for general tasks and creative content generation.",
        reasons=("Good for general purpose tasks", "Strong at creative writing and content generation"),
    ),
    "anthropic": ProviderProfile(
        keywords=("legal", "document", "contract", "analysis"),
        matched_score=90,
        default_score=65,
        description="Anthropic Claude is ideal for legal document analysis and contract drafting.",
        reasons=("Excellent at understanding complex documents", "Strong reasoning capabilities"),
    ),
    "perplexity": ProviderProfile(
        keywords=("research", "information", "summarize", "data"),
        matched_score=90,
        default_score=60,
        description="Perplexity AI excels at research tasks and information retrieval.",
        reasons=("Specializes in research and information gathering", "Access to recent information"),
    ),
    "xai": ProviderProfile(
        keywords=("technical", "coding", "debug", "programming"),
        matched_score=88,
        default_score=65,
        description="xAI/Grok is recommended for technical and coding-related tasks.",
        reasons=("Strong technical problem-solving abilities", "Good at coding and debugging tasks"),
    ),
}


@dataclass(frozen=True, slots=True)
class AutomationRule:
    keywords: tuple[str, ...]
    score: int
    confidence: float
    reason: str


AUTOMATION_RULES: tuple[AutomationRule, ...] = (
    AutomationRule(
        keywords=("research", "gather", "collect", "information"),
        score=85,
        confidence=0.8,
        reason="Research and information gathering tasks can be efficiently handled by AI.",
    ),
    AutomationRule(
        keywords=("write", "draft", "create", "content", "summary"),
        score=80,
        confidence=0.75,
        reason="Content creation and drafting can be handled by AI with human review.",
    ),
    AutomationRule(
        keywords=("analyze", "report", "summarize", "data"),
        score=75,
        confidence=0.7,
        reason="Data analysis and report generation can be partially automated with AI.",
    ),
)


@dataclass(slots=True)
class StepPattern:
    """Cluster of historical steps with similar titles."""

    title: str
    description: str
    assigned_to: str
    default_hours: int
    steps: list[Step] = field(default_factory=list)

    @property
    def frequency(self) -> int:
        return len(self.steps)

    @property
    def average_hours(self) -> float:
        if not self.steps:
            return float(self.default_hours)
        return sum(step.estimated_hours or self.default_hours for step in self.steps) / len(self.steps)


def match_automation_rule(step: Step) -> AutomationRule | None:
    text = f"{step.title} {step.description}"
    for rule in AUTOMATION_RULES:
        if contains_keywords(text, rule.keywords):
            return rule
    return None


class RecommendationService:
    """Scores suggestions from historical requests, falling back to live AI analysis."""

    def __init__(self, storage: StorageGateway, ai_client: AIClient, rules: RecommendationRules | None = None) -> None:
        self._storage = storage
        self._ai = ai_client
        self._rules = rules or RecommendationRules()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _completed_requests(self) -> list[ServiceRequest]:
        return [request for request in await self._storage.get_all_requests() if request.status == "completed"]

    def analyze_step_patterns(self, steps: list[Step]) -> list[StepPattern]:
        """Greedy clustering: a step joins the first pattern whose title is similar enough."""

        patterns: list[StepPattern] = []
        for step in steps:
            for pattern in patterns:
                if similarity(step.title, pattern.title) > self._rules.step_pattern_threshold:
                    pattern.steps.append(step)
                    break
            else:
                patterns.append(
                    StepPattern(
                        title=step.title,
                        description=step.description,
                        assigned_to="ai" if isinstance(step.assignee, AIAssignee) else "human",
                        default_hours=self._rules.default_step_hours,
                        steps=[step],
                    )
                )
        # sorted() is stable, so equally frequent patterns keep first-seen order.
        return sorted(patterns, key=lambda pattern: pattern.frequency, reverse=True)

    def find_duplicate_steps(self, steps: list[Step]) -> list[tuple[Step, Step, float]]:
        duplicates: list[tuple[Step, Step, float]] = []
        for index, first in enumerate(steps):
            for second in steps[index + 1 :]:
                score = similarity(f"{first.title} {first.description}", f"{second.title} {second.description}")
                if score > self._rules.duplicate_step_threshold:
                    duplicates.append((first, second, score))
        return duplicates

    # ------------------------------------------------------------------
    # step recommendations
    # ------------------------------------------------------------------
    async def get_recommended_steps(self, description: str, user_id: int) -> list[StepRecommendation]:
        rules = self._rules
        similar_requests = [
            request
            for request in await self._completed_requests()
            if similarity(request.description, description) > rules.similar_request_threshold
        ]

        historical_steps: list[Step] = []
        for request in similar_requests:
            historical_steps.extend(await self._storage.get_steps_by_request_id(request.id))

        patterns = self.analyze_step_patterns(historical_steps)
        recommendations: list[StepRecommendation] = []
        for pattern in patterns[: rules.max_step_recommendations]:
            recommendations.append(
                StepRecommendation(
                    title=pattern.title,
                    description=pattern.description,
                    assigned_to=pattern.assigned_to,
                    estimated_hours=pattern.average_hours,
                    score=RecommendationScore(
                        score=min(100, pattern.frequency * 20),
                        confidence=min(1.0, pattern.frequency / len(patterns)),
                        reasons=[
                            f"Similar to steps in {pattern.frequency} successful requests",
                            f"Typically takes {pattern.average_hours:.1f} hours to complete",
                        ],
                    ),
                )
            )

        if len(recommendations) >= rules.min_step_recommendations:
            return recommendations

        try:
            analysis = await self._ai.analyze_request(description)
        except Exception:
            logger.exception("AI step recommendations unavailable for user {}", user_id)
            return recommendations

        known_titles = {item.title for item in recommendations}
        for planned in analysis.plan:
            if planned.step in known_titles:
                continue
            known_titles.add(planned.step)
            recommendations.append(
                StepRecommendation(
                    title=planned.step,
                    description=f"AI-recommended step: {planned.step}",
                    assigned_to=planned.assigned_to,
                    estimated_hours=planned.estimated_hours,
                    score=RecommendationScore(
                        score=rules.ai_step_score,
                        confidence=rules.ai_step_confidence,
                        reasons=[
                            "Recommended by AI based on request description",
                            f"Estimated to take {planned.estimated_hours:g} hours to complete",
                        ],
                    ),
                )
            )
        return recommendations

    # ------------------------------------------------------------------
    # resource recommendations
    # ------------------------------------------------------------------
    async def get_resource_recommendations(self, request_id: int) -> list[ResourceRecommendation]:
        request = await self._storage.get_request(request_id)
        if request is None:
            return []

        history: list[tuple[ServiceRequest, list[Step]]] = []
        for past in await self._completed_requests():
            history.append((past, await self._storage.get_steps_by_request_id(past.id)))

        recommendations: list[ResourceRecommendation] = []
        for member in await self._storage.get_all_users():
            if member.role not in TEAM_ROLES:
                continue
            worked = [past for past, steps in history if any(step.assigned_to == member.username for step in steps)]
            if not worked:
                continue
            average = sum(similarity(past.description, request.description) for past in worked) / len(worked)
            if average <= self._rules.team_member_threshold:
                continue
            percent = round(average * 100)
            recommendations.append(
                ResourceRecommendation(
                    type="team_member",
                    name=member.full_name,
                    description=f"{member.full_name} has experience with similar requests.",
                    score=RecommendationScore(
                        score=min(100, percent),
                        confidence=min(1.0, average + 0.2),
                        reasons=[
                            f"Worked on {len(worked)} similar requests",
                            f"{percent}% similarity to previous work",
                        ],
                    ),
                )
            )

        for provider in self._ai.get_available_providers():
            profile = PROVIDER_PROFILES.get(provider)
            if profile is None:
                continue
            score = profile.matched_score if contains_keywords(request.description, profile.keywords) else profile.default_score
            recommendations.append(
                ResourceRecommendation(
                    type="provider",
                    name=provider.capitalize(),
                    description=profile.description,
                    score=RecommendationScore(score=score, confidence=score / 100, reasons=list(profile.reasons)),
                )
            )

        recommendations.sort(key=lambda item: item.score.score, reverse=True)
        return recommendations

    # ------------------------------------------------------------------
    # optimization recommendations
    # ------------------------------------------------------------------
    async def get_optimization_recommendations(self, request_id: int) -> list[OptimizationRecommendation]:
        request = await self._storage.get_request(request_id)
        if request is None:
            return []

        rules = self._rules
        steps = await self._storage.get_steps_by_request_id(request_id)
        recommendations: list[OptimizationRecommendation] = []

        for step in steps:
            if isinstance(step.assignee, AIAssignee) or step.status == "completed":
                continue
            rule = match_automation_rule(step)
            if rule is None:
                continue
            hours = step.estimated_hours or rules.default_hours_for_automation
            savings = hours * rules.hourly_rate
            recommendations.append(
                OptimizationRecommendation(
                    type="cost",
                    description=f'Consider using AI for the step "{step.title}". {rule.reason}',
                    potential_savings=savings,
                    potential_time_reduction=hours,
                    score=RecommendationScore(
                        score=rule.score,
                        confidence=rule.confidence,
                        reasons=[
                            rule.reason,
                            f"Potential cost saving of ${savings}",
                            f"Potential time saving of {hours} hours",
                        ],
                    ),
                )
            )

        for first, second, score in self.find_duplicate_steps(steps):
            saved = min(first.estimated_hours or rules.default_step_hours, second.estimated_hours or rules.default_step_hours)
            recommendations.append(
                OptimizationRecommendation(
                    type="time",
                    description=f'Consider combining similar steps: "{first.title}" and "{second.title}"',
                    potential_time_reduction=saved,
                    score=RecommendationScore(
                        score=rules.combine_steps_score,
                        confidence=score,
                        reasons=[
                            f"Steps have {round(score * 100)}% similarity",
                            f"Combining could save {saved} hours",
                        ],
                    ),
                )
            )

        if request.status == "in_progress":
            for step in steps:
                if not (contains_keywords(step.title, QUALITY_KEYWORDS) or contains_keywords(step.description, QUALITY_KEYWORDS)):
                    continue
                recommendations.append(
                    OptimizationRecommendation(
                        type="quality",
                        description=f'Add a quality review step before "{step.title}" to ensure high-quality delivery.',
                        score=RecommendationScore(
                            score=rules.quality_review_score,
                            confidence=rules.quality_review_confidence,
                            reasons=[
                                "Critical final step that benefits from quality control",
                                "Quality reviews reduce client revision requests",
                            ],
                        ),
                    )
                )

        return recommendations
