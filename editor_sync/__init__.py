"""Editor Sync - cursor, selection and file-focus mirroring between two IDEs."""

__version__ = "0.1.0"

from editor_sync.config import SyncConfig
from editor_sync.identity import LocalIdentity
from editor_sync.sync import (
    ActionType,
    Admitted,
    DedupLedger,
    EditorState,
    InboundEnvelope,
    MessageGate,
    PathMatcher,
    Rejected,
    RejectReason,
    StaticWorkspaceRoots,
    WorkspaceScope,
)

__all__ = [
    "ActionType",
    "Admitted",
    "DedupLedger",
    "EditorState",
    "InboundEnvelope",
    "LocalIdentity",
    "MessageGate",
    "PathMatcher",
    "RejectReason",
    "Rejected",
    "StaticWorkspaceRoots",
    "SyncConfig",
    "WorkspaceScope",
    "__version__",
]
