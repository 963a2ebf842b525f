from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException

from backend.application import Services
from backend.core.schema import Notification, NotificationDraft
from backend.routes.dependencies import dump_models, get_services

router = APIRouter(tags=["notifications"])


@router.get("/users/{user_id}/notifications")
async def list_user_notifications(user_id: int, services: Services = Depends(get_services)) -> dict:
    items = services.notifications.get_user_notifications(user_id)
    return {"items": dump_models(items), "unread": services.notifications.get_unread_count(user_id)}


@router.post("/users/{user_id}/notifications/read")
async def mark_all_notifications_read(user_id: int, services: Services = Depends(get_services)) -> dict:
    return {"updated": services.notifications.mark_all_as_read(user_id)}


@router.post("/notifications")
async def create_notification(draft: NotificationDraft, services: Services = Depends(get_services)) -> Notification:
    return services.notifications.create_notification(draft)


@router.post("/notifications/check-deadlines")
async def check_deadlines(services: Services = Depends(get_services)) -> dict:
    created = await services.notifications.check_deadlines_and_create_reminders()
    return {"items": dump_models(created)}


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(notification_id: str, services: Services = Depends(get_services)) -> Notification:
    notification = services.notifications.mark_as_read(notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="notification not found")
    return notification


@router.delete("/notifications/{notification_id}")
async def delete_notification(notification_id: str, services: Services = Depends(get_services)) -> dict:
    if not services.notifications.delete_notification(notification_id):
        raise HTTPException(status_code=404, detail="notification not found")
    return {"deleted": notification_id}


@router.post("/requests/{request_id}/notifications/{kind}")
async def create_request_notification(
    request_id: int,
    kind: Literal["deadline", "status", "team"],
    services: Services = Depends(get_services),
) -> dict:
    service = services.notifications
    if kind == "team":
        items = await service.notify_team_about_new_request(request_id)
    else:
        creator = service.create_deadline_reminder if kind == "deadline" else service.create_status_update_notification
        notification = await creator(request_id)
        items = [notification] if notification is not None else []
    if not items and await services.storage.get_request(request_id) is None:
        raise HTTPException(status_code=404, detail="request not found")
    return {"items": dump_models(items)}


@router.post("/meetings/{meeting_id}/reminder")
async def create_meeting_reminder(meeting_id: int, services: Services = Depends(get_services)) -> Notification:
    notification = await services.notifications.create_meeting_reminder(meeting_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="meeting not found")
    return notification


@router.post("/contracts/{contract_id}/reminder")
async def create_contract_reminder(contract_id: int, services: Services = Depends(get_services)) -> Notification:
    notification = await services.notifications.create_contract_reminder(contract_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="contract not found")
    return notification
