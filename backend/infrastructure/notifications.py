"""In-memory notification storage with sequential identifiers."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol

from backend.core.schema import Notification, NotificationDraft


class NotificationStore(Protocol):
    def add(self, draft: NotificationDraft, *, created_at: datetime) -> Notification: ...

    def get(self, notification_id: str) -> Notification | None: ...

    def list_for_user(self, user_id: int) -> list[Notification]: ...

    def delete(self, notification_id: str) -> bool: ...

    def reset(self) -> None: ...


class InMemoryNotificationStore:
    """Notifications live for the lifetime of the process."""

    def __init__(self) -> None:
        self._notifications: dict[str, Notification] = {}
        self._next_id = 1

    def add(self, draft: NotificationDraft, *, created_at: datetime) -> Notification:
        notification_id = str(self._next_id)
        self._next_id += 1
        notification = Notification(id=notification_id, created_at=created_at, **draft.model_dump())
        self._notifications[notification_id] = notification
        return notification

    def get(self, notification_id: str) -> Notification | None:
        return self._notifications.get(notification_id)

    def list_for_user(self, user_id: int) -> list[Notification]:
        return [item for item in self._notifications.values() if item.user_id == user_id]

    def delete(self, notification_id: str) -> bool:
        return self._notifications.pop(notification_id, None) is not None

    def reset(self) -> None:
        # Ids keep counting so a reset never hands out a previously used id.
        self._notifications.clear()
