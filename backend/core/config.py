"""Runtime configuration for the service-request collaboration backend."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@dataclass(slots=True)
class RecommendationRules:
    """Business constants used by the recommendation engine."""

    hourly_rate: int = 100
    similar_request_threshold: float = 0.6
    step_pattern_threshold: float = 0.7
    team_member_threshold: float = 0.4
    duplicate_step_threshold: float = 0.6
    max_step_recommendations: int = 5
    min_step_recommendations: int = 3
    ai_step_score: int = 75
    ai_step_confidence: float = 0.7
    default_hours_for_automation: int = 2
    default_step_hours: int = 1
    combine_steps_score: int = 80
    quality_review_score: int = 85
    quality_review_confidence: float = 0.8


@dataclass(slots=True)
class Settings:
    """Process settings resolved from the environment at start-up."""

    ws_path: str = "/ws/workspace"
    keepalive_interval: float = 30.0
    cors_origins: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    log_file: str | None = None
    openai_api_key: str | None = None
    openai_api_base: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4"


def load_recommendation_rules(path: Path | None = None) -> RecommendationRules:
    path = path or CONFIG_DIR / "recommendations.yaml"
    if not path.exists():
        return RecommendationRules()
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    known = set(RecommendationRules.__dataclass_fields__)
    return RecommendationRules(**{key: value for key, value in data.items() if key in known})


def load_settings() -> Settings:
    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

    try:
        keepalive = float(os.getenv("WORKSPACE_KEEPALIVE_SECONDS") or 30)
    except ValueError:
        keepalive = 30.0

    return Settings(
        ws_path=os.getenv("WORKSPACE_WS_PATH") or "/ws/workspace",
        keepalive_interval=keepalive,
        cors_origins=origins,
        log_level=os.getenv("LOG_LEVEL") or "INFO",
        log_file=os.getenv("LOG_FILE") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_api_base=os.getenv("OPENAI_API_BASE") or "https://api.openai.com/v1",
        openai_model=os.getenv("OPENAI_MODEL") or "gpt-4",
    )
