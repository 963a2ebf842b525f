"""Domain entities for live request workspaces."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from backend.core.schema import User, utcnow


class Transport(Protocol):
    """Outbound side of a client socket."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...


@dataclass(slots=True)
class ActiveUser:
    """A participant currently present in a workspace."""

    id: int
    username: str
    full_name: str
    role: str
    joined_at: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)

    @classmethod
    def from_user(cls, user: User) -> "ActiveUser":
        return cls(id=user.id, username=user.username, full_name=user.full_name, role=user.role)

    def touch(self) -> None:
        self.last_activity = utcnow()

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role,
            "joinedAt": self.joined_at.isoformat(),
            "lastActivity": self.last_activity.isoformat(),
        }


@dataclass(slots=True)
class WorkspaceSession:
    """Live roster for a single request."""

    request_id: int
    active_users: list[ActiveUser] = field(default_factory=list)
    last_activity: datetime = field(default_factory=utcnow)

    def find_user(self, user_id: int) -> ActiveUser | None:
        for user in self.active_users:
            if user.id == user_id:
                return user
        return None

    def remove_user(self, user_id: int) -> None:
        self.active_users = [user for user in self.active_users if user.id != user_id]

    def touch(self) -> None:
        self.last_activity = utcnow()

    def roster_payload(self) -> list[dict[str, Any]]:
        return [user.to_payload() for user in self.active_users]

    def to_payload(self) -> dict[str, Any]:
        return {
            "requestId": self.request_id,
            "activeUsers": self.roster_payload(),
            "lastActivity": self.last_activity.isoformat(),
        }


@dataclass(slots=True)
class ClientConnection:
    """One physical socket and the workspaces it has joined."""

    client_id: str
    transport: Transport
    user_id: int | None = None
    user_name: str | None = None
    request_ids: set[int] = field(default_factory=set)
