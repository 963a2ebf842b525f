"""Persistence collaborator for requests, steps, messages and related records.

The web layer owns the real database. The collaboration core only depends on
``StorageGateway``; ``InMemoryStorage`` backs tests and local runs.
"""
from __future__ import annotations

from typing import Any, Protocol

from backend.core.schema import Contract, Meeting, Message, ServiceRequest, Step, User, utcnow


class StorageGateway(Protocol):
    """CRUD contract consumed by the workspace, notification and recommendation services."""

    async def get_user(self, user_id: int) -> User | None: ...

    async def get_all_users(self) -> list[User]: ...

    async def get_request(self, request_id: int) -> ServiceRequest | None: ...

    async def get_all_requests(self) -> list[ServiceRequest]: ...

    async def get_requests_by_user_id(self, user_id: int) -> list[ServiceRequest]: ...

    async def get_step(self, step_id: int) -> Step | None: ...

    async def get_steps_by_request_id(self, request_id: int) -> list[Step]: ...

    async def update_step(self, step_id: int, **updates: Any) -> Step | None: ...

    async def create_message(self, *, request_id: int, sender_id: str, content: str, type: str = "message") -> Message: ...

    async def get_messages_by_request_id(self, request_id: int) -> list[Message]: ...

    async def get_meeting(self, meeting_id: int) -> Meeting | None: ...

    async def get_meetings_by_request_id(self, request_id: int) -> list[Meeting]: ...

    async def get_contract(self, contract_id: int) -> Contract | None: ...


class InMemoryStorage:
    """Dictionary-backed implementation of :class:`StorageGateway`."""

    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._requests: dict[int, ServiceRequest] = {}
        self._steps: dict[int, Step] = {}
        self._messages: dict[int, Message] = {}
        self._meetings: dict[int, Meeting] = {}
        self._contracts: dict[int, Contract] = {}
        self._counters: dict[str, int] = {}

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _next_id(self, kind: str) -> int:
        self._counters[kind] = self._counters.get(kind, 0) + 1
        return self._counters[kind]

    # ------------------------------------------------------------------
    # users
    # ------------------------------------------------------------------
    async def create_user(self, **fields: Any) -> User:
        user = User(id=self._next_id("user"), **fields)
        self._users[user.id] = user
        return user

    async def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def get_all_users(self) -> list[User]:
        return list(self._users.values())

    # ------------------------------------------------------------------
    # requests
    # ------------------------------------------------------------------
    async def create_request(self, **fields: Any) -> ServiceRequest:
        request = ServiceRequest(id=self._next_id("request"), **fields)
        self._requests[request.id] = request
        return request

    async def get_request(self, request_id: int) -> ServiceRequest | None:
        return self._requests.get(request_id)

    async def get_all_requests(self) -> list[ServiceRequest]:
        return list(self._requests.values())

    async def get_requests_by_user_id(self, user_id: int) -> list[ServiceRequest]:
        return [request for request in self._requests.values() if request.user_id == user_id]

    # ------------------------------------------------------------------
    # steps
    # ------------------------------------------------------------------
    async def create_step(self, **fields: Any) -> Step:
        step = Step(id=self._next_id("step"), **fields)
        self._steps[step.id] = step
        return step

    async def get_step(self, step_id: int) -> Step | None:
        return self._steps.get(step_id)

    async def get_steps_by_request_id(self, request_id: int) -> list[Step]:
        steps = [step for step in self._steps.values() if step.request_id == request_id]
        steps.sort(key=lambda step: step.order)
        return steps

    async def update_step(self, step_id: int, **updates: Any) -> Step | None:
        step = self._steps.get(step_id)
        if step is None:
            return None
        updates.setdefault("updated_at", utcnow())
        if updates.get("status") == "completed" and step.completed_at is None:
            updates.setdefault("completed_at", utcnow())
        updated = step.model_copy(update=updates)
        self._steps[step_id] = updated
        return updated

    # ------------------------------------------------------------------
    # messages
    # ------------------------------------------------------------------
    async def create_message(self, *, request_id: int, sender_id: str, content: str, type: str = "message") -> Message:
        message = Message(
            id=self._next_id("message"),
            request_id=request_id,
            sender_id=sender_id,
            content=content,
            type=type,
        )
        self._messages[message.id] = message
        return message

    async def get_messages_by_request_id(self, request_id: int) -> list[Message]:
        messages = [message for message in self._messages.values() if message.request_id == request_id]
        messages.sort(key=lambda message: message.timestamp)
        return messages

    # ------------------------------------------------------------------
    # meetings & contracts
    # ------------------------------------------------------------------
    async def create_meeting(self, **fields: Any) -> Meeting:
        meeting = Meeting(id=self._next_id("meeting"), **fields)
        self._meetings[meeting.id] = meeting
        return meeting

    async def get_meeting(self, meeting_id: int) -> Meeting | None:
        return self._meetings.get(meeting_id)

    async def get_meetings_by_request_id(self, request_id: int) -> list[Meeting]:
        return [meeting for meeting in self._meetings.values() if meeting.request_id == request_id]

    async def create_contract(self, **fields: Any) -> Contract:
        contract = Contract(id=self._next_id("contract"), **fields)
        self._contracts[contract.id] = contract
        return contract

    async def get_contract(self, contract_id: int) -> Contract | None:
        return self._contracts.get(contract_id)

    def reset(self) -> None:
        self._users.clear()
        self._requests.clear()
        self._steps.clear()
        self._messages.clear()
        self._meetings.clear()
        self._contracts.clear()
        self._counters.clear()
