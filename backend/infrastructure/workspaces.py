"""Infrastructure layer for live workspace state."""
from __future__ import annotations

from typing import Protocol

from backend.domain import ClientConnection, Transport, WorkspaceSession


class WorkspaceStore(Protocol):
    """Storage contract for sessions and client connections."""

    def get_session(self, request_id: int) -> WorkspaceSession | None: ...

    def ensure_session(self, request_id: int) -> WorkspaceSession: ...

    def delete_session(self, request_id: int) -> None: ...

    def list_sessions(self) -> list[WorkspaceSession]: ...

    def add_connection(self, client_id: str, transport: Transport) -> ClientConnection: ...

    def get_connection(self, client_id: str) -> ClientConnection | None: ...

    def remove_connection(self, client_id: str) -> ClientConnection | None: ...

    def connections_for(self, request_id: int) -> list[ClientConnection]: ...

    def reset(self) -> None: ...


class InMemoryWorkspaceStore:
    """Process-local session and connection maps."""

    def __init__(self) -> None:
        self._sessions: dict[int, WorkspaceSession] = {}
        self._connections: dict[str, ClientConnection] = {}

    # ------------------------------------------------------------------
    # sessions
    # ------------------------------------------------------------------
    def get_session(self, request_id: int) -> WorkspaceSession | None:
        return self._sessions.get(request_id)

    def ensure_session(self, request_id: int) -> WorkspaceSession:
        session = self._sessions.get(request_id)
        if session is None:
            session = WorkspaceSession(request_id=request_id)
            self._sessions[request_id] = session
        return session

    def delete_session(self, request_id: int) -> None:
        self._sessions.pop(request_id, None)

    def list_sessions(self) -> list[WorkspaceSession]:
        return list(self._sessions.values())

    # ------------------------------------------------------------------
    # connections
    # ------------------------------------------------------------------
    def add_connection(self, client_id: str, transport: Transport) -> ClientConnection:
        connection = ClientConnection(client_id=client_id, transport=transport)
        self._connections[client_id] = connection
        return connection

    def get_connection(self, client_id: str) -> ClientConnection | None:
        return self._connections.get(client_id)

    def remove_connection(self, client_id: str) -> ClientConnection | None:
        return self._connections.pop(client_id, None)

    def connections_for(self, request_id: int) -> list[ClientConnection]:
        return [connection for connection in self._connections.values() if request_id in connection.request_ids]

    def reset(self) -> None:
        self._sessions.clear()
        self._connections.clear()
