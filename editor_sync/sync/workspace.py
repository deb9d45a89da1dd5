"""
Workspace Scope

Decides whether a file reported by the peer belongs to the local project.
"""

import threading
from collections.abc import Iterable

from editor_sync.logging import get_logger
from editor_sync.sync.paths import PathMatcher

logger = get_logger("sync.workspace")


class WorkspaceScope:
    """Answers "is this file inside my workspace?" for a set of roots."""

    def __init__(self, matcher: PathMatcher | None = None):
        self.matcher = matcher if matcher is not None else PathMatcher()

    def is_in_scope(self, file_path: str, roots: Iterable[str]) -> bool:
        """
        Check a file against every workspace root.

        Args:
            file_path: Path reported by the peer. Empty means no active file.
            roots: Absolute workspace roots, fetched fresh by the caller.

        Returns:
            True if the path is empty or lies under any root
        """
        # "No editor focused" broadcasts carry no file and are never filtered
        if not file_path:
            return True

        roots = list(roots)
        if not roots:
            return False

        return any(self.matcher.is_descendant_or_equal(file_path, root) for root in roots)


class StaticWorkspaceRoots:
    """
    In-memory workspace root provider.

    Mirrors how an IDE project exposes its roots: an optional base path plus
    any number of module content roots. Safe to mutate from one thread while
    the gate reads from another.
    """

    def __init__(self, base_path: str | None = None, content_roots: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._roots: set[str] = set()
        if base_path:
            self._roots.add(base_path)
        self._roots.update(r for r in content_roots if r)

    def list_roots(self) -> set[str]:
        with self._lock:
            return set(self._roots)

    def add_root(self, root: str) -> None:
        if not root:
            return
        with self._lock:
            self._roots.add(root)
        logger.debug(f"Workspace root added: {root}")

    def remove_root(self, root: str) -> bool:
        with self._lock:
            if root not in self._roots:
                return False
            self._roots.discard(root)
        logger.debug(f"Workspace root removed: {root}")
        return True
