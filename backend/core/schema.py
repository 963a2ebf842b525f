from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model exchanging camelCase keys with clients."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ----------------------------------------------------------------------
# assignee
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AIAssignee:
    """Step handled by the AI pipeline."""

    def __str__(self) -> str:
        return "ai"


@dataclass(frozen=True, slots=True)
class HumanAssignee:
    """Step handled by a person; ``name`` is a username or the generic ``human``."""

    name: str = "human"

    def __str__(self) -> str:
        return self.name


Assignee = AIAssignee | HumanAssignee


def parse_assignee(value: str | None) -> Assignee:
    raw = (value or "").strip()
    if raw.lower() == "ai":
        return AIAssignee()
    return HumanAssignee(raw or "human")


# ----------------------------------------------------------------------
# persistence records
# ----------------------------------------------------------------------
class User(CamelModel):
    id: int
    username: str
    email: str = ""
    full_name: str = ""
    role: Literal["client", "admin", "team_member"] = "client"
    created_at: datetime = Field(default_factory=utcnow)


class ServiceRequest(CamelModel):
    id: int
    user_id: int
    title: str
    description: str
    status: Literal["pending", "in_progress", "completed", "cancelled"] = "pending"
    ai_plan: list[dict[str, Any]] | None = None
    cost_estimate: int | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None


class Step(CamelModel):
    id: int
    request_id: int
    title: str = ""
    description: str = ""
    assigned_to: str = "human"
    status: str = "pending"
    order: int = 0
    estimated_hours: int | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @property
    def assignee(self) -> Assignee:
        return parse_assignee(self.assigned_to)


class Message(CamelModel):
    id: int
    request_id: int
    sender_id: str
    content: str
    type: str = "message"
    timestamp: datetime = Field(default_factory=utcnow)


class Meeting(CamelModel):
    id: int
    request_id: int
    user_id: int
    team_member_id: int | None = None
    scheduled_for: datetime
    duration: int = 30
    topic: str = ""
    status: Literal["scheduled", "completed", "cancelled"] = "scheduled"
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("scheduled_for")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Stored timestamps carry no zone; they are written in UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Contract(CamelModel):
    id: int
    request_id: int
    user_id: int
    content: str = ""
    status: Literal["draft", "sent", "signed", "cancelled"] = "draft"
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    signed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)


# ----------------------------------------------------------------------
# notifications
# ----------------------------------------------------------------------
NotificationType = Literal["reminder", "status_update", "deadline", "meeting", "contract", "message", "payment"]
Priority = Literal["low", "medium", "high"]


class NotificationDraft(CamelModel):
    """Caller-supplied part of a notification."""

    user_id: int
    title: str
    message: str
    type: NotificationType
    priority: Priority = "medium"
    related_item_id: int | None = None
    related_item_type: str | None = None
    scheduled_for: datetime | None = None


class Notification(NotificationDraft):
    id: str
    created_at: datetime = Field(default_factory=utcnow)
    is_read: bool = False


# ----------------------------------------------------------------------
# recommendations
# ----------------------------------------------------------------------
class RecommendationScore(CamelModel):
    score: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)


class StepRecommendation(CamelModel):
    title: str
    description: str
    assigned_to: Literal["ai", "human"]
    estimated_hours: float
    score: RecommendationScore


class ResourceRecommendation(CamelModel):
    type: Literal["team_member", "tool", "service", "provider"]
    name: str
    description: str
    score: RecommendationScore


class OptimizationRecommendation(CamelModel):
    type: Literal["cost", "time", "quality"]
    description: str
    potential_savings: float | None = None
    potential_time_reduction: float | None = None
    score: RecommendationScore
