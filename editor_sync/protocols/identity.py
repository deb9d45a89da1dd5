"""Protocol for the local identity provider."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    """Exposes an identifier that is stable for the process lifetime."""

    @property
    def identifier(self) -> str: ...
