from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from backend.infrastructure import AIServiceError, OpenAIClient


def _client(handler, api_key: str | None = "sk-test", **kwargs) -> OpenAIClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIClient(api_key, api_base="https://llm.example/v1", http_client=http_client, **kwargs)


def _completion(content: str | None) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_analyze_request_parses_plan():
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        plan = {
            "plan": [{"step": "Draft outline", "assignedTo": "ai", "estimatedHours": 1.5}],
            "costEstimateRange": {"min": 100, "max": 250},
            "summary": "Write the report",
        }
        return httpx.Response(200, json=_completion(json.dumps(plan)))

    analysis = asyncio.run(_client(handler, model="gpt-4o").analyze_request("Write a quarterly report"))

    assert captured["url"] == "https://llm.example/v1/chat/completions"
    assert captured["auth"] == "Bearer sk-test"
    assert captured["body"]["model"] == "gpt-4o"
    assert captured["body"]["response_format"] == {"type": "json_object"}
    assert "Write a quarterly report" in captured["body"]["messages"][1]["content"]
    assert analysis.plan[0].step == "Draft outline"
    assert analysis.plan[0].assigned_to == "ai"
    assert analysis.plan[0].estimated_hours == 1.5
    assert analysis.cost_estimate_range.max == 250


def test_missing_api_key_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(AIServiceError):
        asyncio.run(_client(handler, api_key=None).analyze_request("anything"))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, text="<html>gateway timeout</html>"),
        httpx.Response(200, json=["unexpected", "shape"]),
        httpx.Response(200, json=_completion("")),
        httpx.Response(200, json=_completion("this is not json")),
        httpx.Response(200, json=_completion(json.dumps({"plan": [{"assignedTo": "robot"}]}))),
    ],
)
def test_provider_failures_surface_as_service_errors(response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(AIServiceError):
        asyncio.run(_client(handler).analyze_request("Plan a launch"))


def test_transport_errors_surface_as_service_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AIServiceError):
        asyncio.run(_client(handler).analyze_request("Plan a launch"))


def test_available_providers_follow_environment():
    client = OpenAIClient(None, environ={"ANTHROPIC_API_KEY": "a", "XAI_API_KEY": "", "OPENAI_API_KEY": "o"})

    assert client.get_available_providers() == ["openai", "anthropic"]
    assert client.is_provider_available("anthropic")
    assert not client.is_provider_available("xai")
    assert not client.is_provider_available("mistral")


@pytest.mark.parametrize(
    "task, provider",
    [
        ("contract", "anthropic"),
        ("Legal", "anthropic"),
        ("research", "perplexity"),
        ("coding", "xai"),
        ("creative", "openai"),
    ],
)
def test_recommended_provider(task, provider):
    assert OpenAIClient.get_recommended_provider(task) == provider
