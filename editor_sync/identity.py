"""Local process identity used to recognise our own broadcasts."""

import uuid

from editor_sync.logging import get_logger

logger = get_logger("identity")


class LocalIdentity:
    """Stable identifier for one editor process.

    Generated once per instance and never changes afterwards, so a peer
    echoing our message back through the broadcast channel can be matched
    against it for the lifetime of the process.
    """

    def __init__(self, identifier: str | None = None, prefix: str = ""):
        self._identifier = identifier or f"{prefix}{uuid.uuid4()}"
        logger.info(f"Local identity: {self._identifier[:8]}...")

    @property
    def identifier(self) -> str:
        return self._identifier

    def __repr__(self) -> str:
        return f"LocalIdentity({self._identifier!r})"
