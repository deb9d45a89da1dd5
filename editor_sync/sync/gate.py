"""
Message Gate

Admission pipeline for inbound editor state broadcasts. Each message runs
through a fixed sequence of filters and is either admitted and handed to
the state sink, or rejected with a reason. Rejections are ordinary results,
never exceptions, so a bad message cannot disturb the transport loop.
"""

import threading
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from editor_sync.logging import get_logger
from editor_sync.protocols import IdentityProvider, StateSink, WorkspaceRootProvider
from editor_sync.sync.ledger import DedupLedger, wall_clock_ms
from editor_sync.sync.protocol import (
    EditorState,
    InboundEnvelope,
    MessageParseError,
    parse_envelope,
    parse_state,
)
from editor_sync.sync.workspace import WorkspaceScope

if TYPE_CHECKING:
    from editor_sync.config import SyncConfig

logger = get_logger("sync.gate")

DEFAULT_MESSAGE_TIMEOUT_MS = 5000


class RejectReason(Enum):
    """Why a message was not admitted."""

    PARSE_ERROR = "parse_error"
    OWN_MESSAGE = "own_message"
    DUPLICATE = "duplicate"
    SENDER_INACTIVE = "sender_inactive"
    STALE = "stale"
    OUT_OF_SCOPE = "out_of_scope"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class Admitted:
    """The message passed every filter."""

    state: EditorState

    admitted = True


@dataclass(frozen=True)
class Rejected:
    """The message was dropped at one of the filters."""

    reason: RejectReason
    detail: str = ""
    age_ms: int | None = None

    admitted = False


GateResult = Admitted | Rejected


class MessageGate:
    """
    Orchestrates the inbound filters.

    Stages, in order, stopping at the first failure:
    parse, self-origin, dedup, sender activity, freshness, workspace scope.

    ``handle`` may be called concurrently from several transport threads;
    the ledger is the only shared mutable state and guards itself.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        roots: WorkspaceRootProvider,
        sink: StateSink,
        ledger: DedupLedger | None = None,
        scope: WorkspaceScope | None = None,
        clock: Callable[[], int] = wall_clock_ms,
        message_timeout_ms: int = DEFAULT_MESSAGE_TIMEOUT_MS,
    ):
        self.identity = identity
        self.roots = roots
        self.sink = sink
        self.ledger = ledger if ledger is not None else DedupLedger(clock=clock)
        self.scope = scope if scope is not None else WorkspaceScope()
        self.clock = clock
        self.message_timeout_ms = message_timeout_ms

        self._stats_lock = threading.Lock()
        self._admitted_count = 0
        self._rejections: Counter[RejectReason] = Counter()

    @classmethod
    def from_config(
        cls,
        config: "SyncConfig",
        identity: IdentityProvider,
        roots: WorkspaceRootProvider,
        sink: StateSink,
        clock: Callable[[], int] = wall_clock_ms,
    ) -> "MessageGate":
        """Build a gate and its ledger from a SyncConfig."""
        return cls(
            identity=identity,
            roots=roots,
            sink=sink,
            ledger=config.build_ledger(clock=clock),
            clock=clock,
            message_timeout_ms=config.message_timeout_ms,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> bool:
        """Start the ledger's background cleanup."""
        return self.ledger.start()

    def shutdown(self) -> None:
        """Stop background cleanup. In-flight ``handle`` calls finish normally."""
        self.ledger.shutdown()

    def __enter__(self) -> "MessageGate":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # =========================================================================
    # Pipeline
    # =========================================================================

    def handle(self, raw_message: str | bytes) -> GateResult:
        """
        Run a raw broadcast through the full admission pipeline.

        Args:
            raw_message: Serialized InboundEnvelope

        Returns:
            Admitted with the parsed state, or Rejected with the reason
        """
        try:
            result = self._handle_envelope(raw_message)
        except Exception as e:
            logger.error(f"Unexpected error handling message: {e}", exc_info=True)
            result = Rejected(RejectReason.INTERNAL_ERROR, detail=str(e))
        self._count(result)
        return result

    def handle_state(self, raw_state: str | bytes) -> GateResult:
        """
        Admit a bare EditorState with no envelope.

        Used by peers that send state directly. Without an envelope there is
        no sender or message id, so only the activity, freshness and scope
        filters apply.
        """
        try:
            try:
                state = parse_state(raw_state)
            except MessageParseError as e:
                logger.warning(f"Failed to parse state message: {e}")
                result: GateResult = Rejected(RejectReason.PARSE_ERROR, detail=str(e))
            else:
                result = self._admit(state, self.clock())
        except Exception as e:
            logger.error(f"Unexpected error handling state: {e}", exc_info=True)
            result = Rejected(RejectReason.INTERNAL_ERROR, detail=str(e))
        self._count(result)
        return result

    def _handle_envelope(self, raw_message: str | bytes) -> GateResult:
        try:
            envelope = parse_envelope(raw_message)
        except MessageParseError as e:
            logger.warning(f"Failed to parse broadcast: {e}")
            return Rejected(RejectReason.PARSE_ERROR, detail=str(e))

        if self._is_own_message(envelope):
            logger.debug("Ignoring own broadcast")
            return Rejected(RejectReason.OWN_MESSAGE)

        now = self.clock()

        # Record before processing so two near-simultaneous deliveries of
        # the same id cannot both get through.
        if not self.ledger.check_and_record(envelope.message_id, now):
            logger.debug(f"Ignoring duplicate message: {envelope.message_id}")
            return Rejected(RejectReason.DUPLICATE, detail=envelope.message_id)

        logger.debug(
            f"Broadcast {envelope.message_id} from {envelope.sender_identifier[:8]}..."
        )
        return self._admit(envelope.payload, now)

    def _is_own_message(self, envelope: InboundEnvelope) -> bool:
        # TODO: decide whether the payload's source editor should also count
        # as self-origin when two windows of the same IDE share a channel.
        return envelope.sender_identifier == self.identity.identifier

    def _admit(self, state: EditorState, now: int) -> GateResult:
        logger.debug(
            f"State {state.action_name} {state.file_path or '-'}, "
            f"{state.cursor_log()}, {state.selection_log()}"
        )

        if not state.is_active:
            logger.info("Ignoring state from inactive editor")
            return Rejected(RejectReason.SENDER_INACTIVE)

        age_ms = now - state.timestamp
        if age_ms >= self.message_timeout_ms:
            logger.info(f"Ignoring stale state, age: {age_ms}ms")
            return Rejected(RejectReason.STALE, detail=f"age {age_ms}ms", age_ms=age_ms)

        if not self.scope.is_in_scope(state.file_path, self.roots.list_roots()):
            logger.debug(f"Ignoring file outside the workspace: {state.file_path}")
            return Rejected(RejectReason.OUT_OF_SCOPE, detail=state.file_path)

        self._deliver(state)
        return Admitted(state)

    def _deliver(self, state: EditorState) -> None:
        try:
            self.sink.apply(state)
        except Exception as e:
            logger.error(f"State sink failed for {state.file_path or '-'}: {e}", exc_info=True)

    # =========================================================================
    # Stats
    # =========================================================================

    def _count(self, result: GateResult) -> None:
        with self._stats_lock:
            if isinstance(result, Admitted):
                self._admitted_count += 1
            else:
                self._rejections[result.reason] += 1

    def stats(self) -> dict:
        """Counters of admitted and rejected messages since creation."""
        with self._stats_lock:
            return {
                "admitted": self._admitted_count,
                "rejected": {reason.value: n for reason, n in self._rejections.items()},
                "ledger_size": len(self.ledger),
            }
