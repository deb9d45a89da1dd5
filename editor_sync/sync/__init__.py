"""
Editor State Sync

Inbound admission pipeline for editor state mirrored between two IDEs over
a local broadcast channel: parsing, self-origin and duplicate filtering,
freshness and workspace-scope checks.
"""

from editor_sync.sync.gate import Admitted, GateResult, MessageGate, Rejected, RejectReason
from editor_sync.sync.ledger import DedupLedger, LedgerStats
from editor_sync.sync.paths import PathMatcher
from editor_sync.sync.protocol import (
    ActionType,
    EditorState,
    InboundEnvelope,
    MessageParseError,
    parse_envelope,
    parse_state,
)
from editor_sync.sync.workspace import StaticWorkspaceRoots, WorkspaceScope

__all__ = [
    "ActionType",
    "Admitted",
    "DedupLedger",
    "EditorState",
    "GateResult",
    "InboundEnvelope",
    "LedgerStats",
    "MessageGate",
    "MessageParseError",
    "PathMatcher",
    "RejectReason",
    "Rejected",
    "StaticWorkspaceRoots",
    "WorkspaceScope",
    "parse_envelope",
    "parse_state",
]
