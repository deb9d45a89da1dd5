"""Protocol for workspace root providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class WorkspaceRootProvider(Protocol):
    """Structural interface for the project model. Queried on every check."""

    def list_roots(self) -> set[str]: ...
