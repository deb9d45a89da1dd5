"""Protocol for the state-application sink."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from editor_sync.sync.protocol import EditorState


@runtime_checkable
class StateSink(Protocol):
    """Applies an admitted editor state to the local IDE."""

    def apply(self, state: EditorState) -> None: ...
