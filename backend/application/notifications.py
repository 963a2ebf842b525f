"""Application service producing contextual reminders and alerts."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

from loguru import logger

from backend.core.schema import Notification, NotificationDraft, Priority, utcnow
from backend.infrastructure import NotificationStore, StorageGateway

TERMINAL_REQUEST_STATUSES = {"completed", "cancelled"}
TEAM_ROLES = {"admin", "team_member"}
MEETING_LEAD_TIME = timedelta(minutes=30)
MEETING_LOOKAHEAD = timedelta(hours=24)


def progress_priority(progress: int) -> Priority:
    if progress < 25:
        return "high"
    if progress < 75:
        return "medium"
    return "low"


def meeting_priority(hours_until: float) -> Priority:
    if hours_until < 1:
        return "high"
    if hours_until < 24:
        return "medium"
    return "low"


class NotificationService:
    """Creates, lists and updates user notifications."""

    def __init__(
        self,
        storage: StorageGateway,
        store: NotificationStore,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = store
        self._clock = clock

    # ------------------------------------------------------------------
    # store operations
    # ------------------------------------------------------------------
    def create_notification(self, data: NotificationDraft | dict[str, Any]) -> Notification:
        draft = data if isinstance(data, NotificationDraft) else NotificationDraft.model_validate(data)
        notification = self._store.add(draft, created_at=self._clock())
        logger.debug("Notification {} created for user {} ({})", notification.id, notification.user_id, notification.type)
        return notification

    def get_user_notifications(self, user_id: int) -> list[Notification]:
        items = self._store.list_for_user(user_id)
        return sorted(items, key=lambda item: (item.created_at, int(item.id)), reverse=True)

    def get_unread_count(self, user_id: int) -> int:
        return sum(1 for item in self._store.list_for_user(user_id) if not item.is_read)

    def mark_as_read(self, notification_id: str) -> Notification | None:
        notification = self._store.get(notification_id)
        if notification is not None:
            notification.is_read = True
        return notification

    def mark_all_as_read(self, user_id: int) -> int:
        updated = 0
        for notification in self._store.list_for_user(user_id):
            if not notification.is_read:
                notification.is_read = True
                updated += 1
        return updated

    def delete_notification(self, notification_id: str) -> bool:
        return self._store.delete(notification_id)

    # ------------------------------------------------------------------
    # contextual reminders
    # ------------------------------------------------------------------
    async def create_deadline_reminder(self, request_id: int) -> Notification | None:
        request = await self._storage.get_request(request_id)
        if request is None:
            return None

        steps = await self._storage.get_steps_by_request_id(request_id)
        completed = sum(1 for step in steps if step.status == "completed")
        # halves round up: 5 of 8 steps reads as 63%
        progress = int(completed * 100 / len(steps) + 0.5) if steps else 0
        priority = progress_priority(progress)

        if priority == "high":
            message = (
                f'Request "{request.title}" is still in the early stages. '
                "Consider prioritizing this request to meet deadlines."
            )
        elif priority == "medium":
            message = (
                f'Request "{request.title}" is {progress}% complete. '
                "Make sure to complete the remaining steps on time."
            )
        else:
            message = (
                f'Request "{request.title}" is almost complete ({progress}%). '
                "Finish the remaining steps to complete this request."
            )

        return self.create_notification(
            NotificationDraft(
                user_id=request.user_id,
                title=f"Progress Update: {request.title}",
                message=message,
                type="deadline",
                related_item_id=request_id,
                related_item_type="request",
                priority=priority,
            )
        )

    async def create_meeting_reminder(self, meeting_id: int) -> Notification | None:
        meeting = await self._storage.get_meeting(meeting_id)
        if meeting is None:
            return None

        hours_until = (meeting.scheduled_for - self._clock()).total_seconds() / 3600
        request = await self._storage.get_request(meeting.request_id)
        request_title = request.title if request else "Unknown request"
        when = meeting.scheduled_for.strftime("%Y-%m-%d %H:%M %Z").strip()

        return self.create_notification(
            NotificationDraft(
                user_id=meeting.user_id,
                title=f"Upcoming Meeting: {meeting.topic}",
                message=(
                    f'You have a meeting about "{request_title}" scheduled for {when}. '
                    f"Duration: {meeting.duration} minutes."
                ),
                type="meeting",
                related_item_id=meeting_id,
                related_item_type="meeting",
                priority=meeting_priority(hours_until),
                scheduled_for=meeting.scheduled_for - MEETING_LEAD_TIME,
            )
        )

    async def create_contract_reminder(self, contract_id: int) -> Notification | None:
        contract = await self._storage.get_contract(contract_id)
        if contract is None:
            return None

        return self.create_notification(
            NotificationDraft(
                user_id=contract.user_id,
                title="Contract Ready for Review",
                message=(
                    "Your contract is ready for review and signature. "
                    "Please review and approve or request revisions."
                ),
                type="contract",
                related_item_id=contract_id,
                related_item_type="contract",
                priority="high",
            )
        )

    async def notify_team_about_new_request(self, request_id: int) -> list[Notification]:
        request = await self._storage.get_request(request_id)
        if request is None:
            return []

        users = await self._storage.get_all_users()
        notifications: list[Notification] = []
        for member in users:
            if member.role not in TEAM_ROLES:
                continue
            notifications.append(
                self.create_notification(
                    NotificationDraft(
                        user_id=member.id,
                        title="New Request Assigned",
                        message=f'A new request "{request.title}" has been created and needs team attention.',
                        type="status_update",
                        related_item_id=request_id,
                        related_item_type="request",
                        priority="medium",
                    )
                )
            )
        return notifications

    async def create_status_update_notification(self, request_id: int) -> Notification | None:
        request = await self._storage.get_request(request_id)
        if request is None:
            return None

        steps = await self._storage.get_steps_by_request_id(request_id)
        completed = [step for step in steps if step.status == "completed" and step.completed_at is not None]
        if not completed:
            return None

        latest = max(completed, key=lambda step: step.completed_at)  # type: ignore[arg-type, return-value]
        return self.create_notification(
            NotificationDraft(
                user_id=request.user_id,
                title="Request Progress Update",
                message=f'Step "{latest.title}" has been completed for your request "{request.title}".',
                type="status_update",
                related_item_id=request_id,
                related_item_type="request",
                priority="medium",
            )
        )

    async def check_deadlines_and_create_reminders(self) -> list[Notification]:
        """Batch job meant to be triggered by an external scheduler."""

        created: list[Notification] = []
        requests = await self._storage.get_all_requests()

        for request in requests:
            if request.status in TERMINAL_REQUEST_STATUSES:
                continue
            reminder = await self.create_deadline_reminder(request.id)
            if reminder is not None:
                created.append(reminder)

        now = self._clock()
        horizon = now + MEETING_LOOKAHEAD
        for request in requests:
            for meeting in await self._storage.get_meetings_by_request_id(request.id):
                if meeting.status == "cancelled" or not (now <= meeting.scheduled_for <= horizon):
                    continue
                reminder = await self.create_meeting_reminder(meeting.id)
                if reminder is not None:
                    created.append(reminder)

        logger.info("Deadline check created {} notifications", len(created))
        return created
