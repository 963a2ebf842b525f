"""AI collaborator: request analysis over an OpenAI-compatible chat API."""
from __future__ import annotations

import json
import os
from typing import Any, Literal, Mapping, Protocol

import httpx
from loguru import logger
from pydantic import Field, ValidationError

from backend.core.schema import CamelModel

AiProvider = Literal["openai", "anthropic", "perplexity", "xai"]

PROVIDER_KEYS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "perplexity": "PERPLEXITY_API_KEY",
    "xai": "XAI_API_KEY",
}

_ANALYSIS_SYSTEM_PROMPT = "You are a professional project planner with expertise in various domains."

_ANALYSIS_PROMPT = """
You are an expert personal assistant tasked with analyzing client requests and creating actionable plans.
Please analyze the following request and create a detailed plan:

Request: "{description}"

Create a JSON response with the following structure:
- plan: An array of steps with fields:
  * step: A description of what needs to be done
  * assignedTo: Either "ai" or "human" based on who should handle it
  * estimatedHours: Approximate hours to complete this step
- costEstimateRange: Object with min and max cost in USD
- summary: A brief, clear summary of the overall plan
"""


class AIServiceError(RuntimeError):
    """Raised when the AI provider cannot produce an analysis."""


class PlannedStep(CamelModel):
    step: str
    assigned_to: Literal["ai", "human"] = "human"
    estimated_hours: float = 1


class CostEstimateRange(CamelModel):
    min: float = 0
    max: float = 0


class RequestAnalysis(CamelModel):
    plan: list[PlannedStep] = Field(default_factory=list)
    cost_estimate_range: CostEstimateRange = Field(default_factory=CostEstimateRange)
    summary: str = ""


class AIClient(Protocol):
    """Contract used by the recommendation engine."""

    async def analyze_request(self, description: str) -> RequestAnalysis: ...

    def get_available_providers(self) -> list[str]: ...


class OpenAIClient:
    """Client for the OpenAI chat completions endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        api_base: str = "https://api.openai.com/v1",
        model: str = "gpt-4",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{api_base.rstrip('/')}/chat/completions"
        self._model = model
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._environ = environ if environ is not None else os.environ

    # ------------------------------------------------------------------
    # providers
    # ------------------------------------------------------------------
    def is_provider_available(self, provider: str) -> bool:
        key = PROVIDER_KEYS.get(provider)
        return bool(key and self._environ.get(key))

    def get_available_providers(self) -> list[str]:
        return [provider for provider in PROVIDER_KEYS if self.is_provider_available(provider)]

    @staticmethod
    def get_recommended_provider(task_type: str) -> AiProvider:
        task = task_type.lower()
        if task in {"contract", "legal", "document-analysis"}:
            return "anthropic"
        if task in {"research", "information-retrieval"}:
            return "perplexity"
        if task in {"technical", "coding"}:
            return "xai"
        return "openai"

    # ------------------------------------------------------------------
    # analysis
    # ------------------------------------------------------------------
    def _build_payload(self, description: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": _ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": _ANALYSIS_PROMPT.format(description=description)},
            ],
            "response_format": {"type": "json_object"},
        }

    async def analyze_request(self, description: str) -> RequestAnalysis:
        if not self._api_key:
            raise AIServiceError("OPENAI_API_KEY is not configured")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._client.post(self._url, json=self._build_payload(description), headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Request analysis call failed: {}", exc)
            raise AIServiceError("Failed to analyze request") from exc

        try:
            body = response.json()
            choices = body.get("choices") or []
            content = ((choices[0].get("message") or {}).get("content")) if choices else None
        except (json.JSONDecodeError, AttributeError, TypeError) as exc:
            raise AIServiceError("AI provider returned an unreadable response") from exc
        if not content:
            raise AIServiceError("No content returned from the AI provider")

        try:
            return RequestAnalysis.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise AIServiceError("AI provider returned an unreadable plan") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "AIClient",
    "AIServiceError",
    "OpenAIClient",
    "PlannedStep",
    "RequestAnalysis",
]
