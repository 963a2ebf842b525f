"""Application services and their wiring."""
from __future__ import annotations

from dataclasses import dataclass

from backend.core.config import RecommendationRules, Settings, load_recommendation_rules
from backend.infrastructure import (
    AIClient,
    InMemoryNotificationStore,
    InMemoryStorage,
    InMemoryWorkspaceStore,
    OpenAIClient,
    StorageGateway,
)

from .notifications import NotificationService
from .recommendations import RecommendationService
from .workspaces import WorkspaceCoordinator


@dataclass(slots=True)
class Services:
    """Process-wide service graph, built once at start-up."""

    storage: StorageGateway
    ai: AIClient
    workspaces: WorkspaceCoordinator
    notifications: NotificationService
    recommendations: RecommendationService


def build_services(
    settings: Settings | None = None,
    *,
    storage: StorageGateway | None = None,
    ai_client: AIClient | None = None,
    rules: RecommendationRules | None = None,
) -> Services:
    settings = settings or Settings()
    storage = storage if storage is not None else InMemoryStorage()
    if ai_client is None:
        ai_client = OpenAIClient(
            settings.openai_api_key,
            api_base=settings.openai_api_base,
            model=settings.openai_model,
        )

    return Services(
        storage=storage,
        ai=ai_client,
        workspaces=WorkspaceCoordinator(
            storage,
            InMemoryWorkspaceStore(),
            path=settings.ws_path,
            keepalive_interval=settings.keepalive_interval,
        ),
        notifications=NotificationService(storage, InMemoryNotificationStore()),
        recommendations=RecommendationService(storage, ai_client, rules or load_recommendation_rules()),
    )


__all__ = [
    "NotificationService",
    "RecommendationService",
    "Services",
    "WorkspaceCoordinator",
    "build_services",
]
