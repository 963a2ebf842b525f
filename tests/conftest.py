from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.infrastructure import AIServiceError, InMemoryStorage, RequestAnalysis


class FakeTransport:
    """Records frames sent to a client socket."""

    def __init__(self) -> None:
        self.is_open = True
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]

    def last(self, event_type: str) -> dict:
        return [frame for frame in self.sent if frame["type"] == event_type][-1]

    def clear(self) -> None:
        self.sent.clear()


class FakeAIClient:
    def __init__(self, analysis: dict | None = None, providers: list[str] | None = None, fail: bool = False) -> None:
        self.analysis = analysis or {"plan": [], "costEstimateRange": {"min": 0, "max": 0}, "summary": ""}
        self.providers = providers or []
        self.fail = fail
        self.calls: list[str] = []

    async def analyze_request(self, description: str) -> RequestAnalysis:
        self.calls.append(description)
        if self.fail:
            raise AIServiceError("provider outage")
        return RequestAnalysis.model_validate(self.analysis)

    def get_available_providers(self) -> list[str]:
        return list(self.providers)


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def ai_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture()
def services(storage, ai_client):
    from backend.application import build_services

    return build_services(storage=storage, ai_client=ai_client)


@pytest.fixture()
def client(services):
    from fastapi.testclient import TestClient

    from backend.app import create_app
    from backend.core.config import Settings

    app = create_app(Settings(log_level="WARNING"), services)
    with TestClient(app) as test_client:
        yield test_client
