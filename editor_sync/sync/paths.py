"""
Path Matching

Cross-platform path normalization and prefix containment. Pure string
operations; nothing here touches the filesystem.
"""

import re
import sys

SEPARATOR = "/"

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


class PathMatcher:
    """
    Normalizes and compares paths coming from either editor.

    Both IDEs may run on Windows and report ``C:\\Proj\\a.ts`` or
    ``c:/Proj/a.ts`` for the same file. Only separators, a single trailing
    separator and the drive letter are normalized; the rest of the path
    stays case-sensitive.
    """

    def __init__(self, drive_letters: bool | None = None):
        if drive_letters is None:
            drive_letters = sys.platform == "win32"
        self.drive_letters = drive_letters

    def normalize(self, path: str) -> str:
        """Return the comparable form of ``path``."""
        normalized = path.replace("\\", SEPARATOR)

        if normalized.endswith(SEPARATOR) and len(normalized) > 1:
            normalized = normalized[:-1]

        if self.drive_letters and _DRIVE_LETTER.match(normalized):
            normalized = normalized[0].lower() + normalized[1:]

        return normalized

    def is_descendant_or_equal(self, path: str, root: str) -> bool:
        """Check whether ``path`` is ``root`` itself or lies beneath it."""
        normalized_path = self.normalize(path)
        normalized_root = self.normalize(root)

        if normalized_path == normalized_root:
            return True
        # "/" stays "/" after normalization, avoid matching against "//"
        prefix = normalized_root
        if not prefix.endswith(SEPARATOR):
            prefix += SEPARATOR
        return normalized_path.startswith(prefix)
