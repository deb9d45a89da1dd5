"""Shared test fixtures for the editor sync test suite."""

from __future__ import annotations

import json
from typing import Any

import pytest

from editor_sync.identity import LocalIdentity
from editor_sync.sync.gate import MessageGate
from editor_sync.sync.ledger import DedupLedger
from editor_sync.sync.protocol import EditorState
from editor_sync.sync.workspace import StaticWorkspaceRoots

NOW_MS = 1_718_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSink:
    """State sink that remembers everything applied to it."""

    def __init__(self) -> None:
        self.applied: list[EditorState] = []

    def apply(self, state: EditorState) -> None:
        self.applied.append(state)


def make_message(
    message_id: str = "m1",
    sender: str = "peerA",
    file_path: str = "/ws/a/f.ts",
    is_active: bool = True,
    timestamp: Any = NOW_MS,
    **payload_fields: Any,
) -> str:
    """Build a serialized envelope."""
    payload = {
        "action": "NAVIGATE",
        "filePath": file_path,
        "isActive": is_active,
        "timestamp": timestamp,
        **payload_fields,
    }
    return json.dumps(
        {"messageId": message_id, "senderIdentifier": sender, "payload": payload}
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def identity() -> LocalIdentity:
    return LocalIdentity("peerB")


@pytest.fixture
def roots() -> StaticWorkspaceRoots:
    return StaticWorkspaceRoots(base_path="/ws/a")


@pytest.fixture
def ledger(clock: FakeClock) -> DedupLedger:
    return DedupLedger(clock=clock)


@pytest.fixture
def gate(identity, roots, sink, ledger, clock) -> MessageGate:
    """Gate wired to in-memory collaborators; the cleanup worker is not started."""
    return MessageGate(
        identity=identity,
        roots=roots,
        sink=sink,
        ledger=ledger,
        clock=clock,
    )


@pytest.fixture
def clock_factory():
    """Factory for independent fake clocks."""
    return FakeClock


@pytest.fixture
def message_factory():
    """Factory for serialized envelopes, see ``make_message``."""
    return make_message
