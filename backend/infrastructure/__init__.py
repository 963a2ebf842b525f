"""Infrastructure layer exports."""

from .ai import AIClient, AIServiceError, OpenAIClient, RequestAnalysis
from .notifications import InMemoryNotificationStore, NotificationStore
from .storage import InMemoryStorage, StorageGateway
from .workspaces import InMemoryWorkspaceStore, WorkspaceStore

__all__ = [
    "AIClient",
    "AIServiceError",
    "InMemoryNotificationStore",
    "InMemoryStorage",
    "InMemoryWorkspaceStore",
    "NotificationStore",
    "OpenAIClient",
    "RequestAnalysis",
    "StorageGateway",
    "WorkspaceStore",
]
