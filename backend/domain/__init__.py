"""Domain layer definitions."""

from .workspaces import ActiveUser, ClientConnection, Transport, WorkspaceSession

__all__ = [
    "ActiveUser",
    "ClientConnection",
    "Transport",
    "WorkspaceSession",
]
