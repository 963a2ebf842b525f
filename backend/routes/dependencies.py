from __future__ import annotations

from typing import Any, Iterable

from fastapi import Request
from pydantic import BaseModel

from backend.application import Services


def get_services(request: Request) -> Services:
    """Return the service graph attached to the running application."""

    return request.app.state.services


def dump_models(items: Iterable[BaseModel]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json", by_alias=True) for item in items]
