"""
Dedup Ledger

Time-bounded record of recently seen message ids, used to drop
re-deliveries from the broadcast channel. Expiry runs on a background
worker; a hard capacity bound keeps memory in check even if that worker
stalls.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from editor_sync.logging import get_logger

logger = get_logger("sync.ledger")

DEFAULT_RETENTION_MS = 300_000
DEFAULT_CAPACITY = 1000
DEFAULT_CLEANUP_INTERVAL_S = 60.0


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class LedgerStats:
    """Point-in-time view of the ledger."""

    size: int
    capacity: int
    sweeps: int
    evicted: int
    running: bool

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "capacity": self.capacity,
            "sweeps": self.sweeps,
            "evicted": self.evicted,
            "running": self.running,
        }


class DedupLedger:
    """
    Thread-safe set of message ids with receipt timestamps.

    ``seen``, ``record`` and the sweeps share one lock. Entries are kept in
    insertion order, so the front of the mapping is always the oldest record.
    """

    def __init__(
        self,
        retention_ms: int = DEFAULT_RETENTION_MS,
        capacity: int = DEFAULT_CAPACITY,
        cleanup_interval_s: float = DEFAULT_CLEANUP_INTERVAL_S,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.retention_ms = retention_ms
        self.capacity = capacity
        self.cleanup_interval_s = cleanup_interval_s
        self.clock = clock

        self._entries: dict[str, int] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._sweeps = 0
        self._evicted = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, message_id: str) -> bool:
        return self.seen(message_id)

    def seen(self, message_id: str) -> bool:
        """True if the id has been recorded and not yet swept, whatever its age."""
        with self._lock:
            return message_id in self._entries

    def record(self, message_id: str, now: int | None = None) -> None:
        """Record an id at ``now`` (epoch ms), enforcing the capacity bound."""
        if now is None:
            now = self.clock()
        with self._lock:
            self._insert(message_id, now)

    def check_and_record(self, message_id: str, now: int | None = None) -> bool:
        """
        Atomically test for an id and record it if absent.

        Returns:
            True if the id was new and is now recorded, False if already seen
        """
        if now is None:
            now = self.clock()
        with self._lock:
            if message_id in self._entries:
                return False
            self._insert(message_id, now)
            return True

    def expire_older_than(self, cutoff: int) -> int:
        """
        Remove every entry recorded strictly before ``cutoff``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            return self._expire(cutoff)

    def sweep(self, now: int | None = None) -> int:
        """Expire everything older than the retention window relative to ``now``."""
        if now is None:
            now = self.clock()
        removed = self.expire_older_than(now - self.retention_ms)
        with self._lock:
            self._sweeps += 1
            remaining = len(self._entries)
        logger.debug(f"Ledger sweep removed {removed}, remaining: {remaining}")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _insert(self, message_id: str, now: int) -> None:
        # Caller holds the lock. Re-inserting moves the id to the back so
        # insertion order keeps matching timestamp order.
        self._entries.pop(message_id, None)
        self._entries[message_id] = now

        if len(self._entries) > self.capacity:
            self._expire(now - self.retention_ms)
            overflow = len(self._entries) - self.capacity
            if overflow > 0:
                for stale_id in list(self._entries)[:overflow]:
                    del self._entries[stale_id]
                self._evicted += overflow
                logger.debug(f"Ledger over capacity, evicted {overflow} oldest ids")

    def _expire(self, cutoff: int) -> int:
        # Caller holds the lock
        expired = [k for k, t in self._entries.items() if t < cutoff]
        for k in expired:
            del self._entries[k]
        self._evicted += len(expired)
        return len(expired)

    # =========================================================================
    # Background cleanup
    # =========================================================================

    def start(self) -> bool:
        """
        Start the periodic cleanup worker.

        Returns:
            True if the worker is running, False if the ledger was shut down
        """
        if self._stop.is_set():
            logger.warning("Ledger has been shut down, background cleanup not restarted")
            return False

        if self._thread and self._thread.is_alive():
            logger.warning("Ledger cleanup already running")
            return True

        self._thread = threading.Thread(
            target=self._cleanup_loop,
            name="editor-sync-ledger-cleanup",
            daemon=True,
        )
        self._thread.start()
        return True

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Stop the cleanup worker. Capacity-driven expiry keeps working."""
        self._stop.set()
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Ledger cleanup worker did not stop in time")
        self._thread = None

    def _cleanup_loop(self) -> None:
        logger.info("Ledger cleanup worker started")
        # Event.wait doubles as the timer and the cancellation token
        while not self._stop.wait(self.cleanup_interval_s):
            try:
                self.sweep(self.clock())
            except Exception as e:
                logger.warning(f"Ledger cleanup pass failed: {e}", exc_info=True)
        logger.info("Ledger cleanup worker stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_shut_down(self) -> bool:
        return self._stop.is_set()

    def stats(self) -> LedgerStats:
        with self._lock:
            return LedgerStats(
                size=len(self._entries),
                capacity=self.capacity,
                sweeps=self._sweeps,
                evicted=self._evicted,
                running=self.is_running,
            )
