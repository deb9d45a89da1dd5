"""Protocol interface contracts for the sync core's collaborators."""

from editor_sync.protocols.identity import IdentityProvider
from editor_sync.protocols.sink import StateSink
from editor_sync.protocols.workspace import WorkspaceRootProvider

__all__ = [
    "IdentityProvider",
    "StateSink",
    "WorkspaceRootProvider",
]
