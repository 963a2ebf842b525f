from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from backend.application import Services
from backend.routes.dependencies import get_services

router = APIRouter(prefix="/workspaces", tags=["workspace"])


@router.get("")
async def list_active_workspaces(services: Services = Depends(get_services)) -> dict:
    sessions = services.workspaces.get_all_active_workspaces()
    return {"items": [session.to_payload() for session in sessions]}


@router.get("/{request_id}")
async def get_workspace(request_id: int, services: Services = Depends(get_services)) -> dict:
    session = services.workspaces.get_workspace_state(request_id)
    if session is None:
        raise HTTPException(status_code=404, detail="workspace not active")
    return session.to_payload()
