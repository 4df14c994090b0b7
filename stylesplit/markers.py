"""File boundary markers embedded in built bundles."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

CIRCULAR_IMPORT = "Circular import"
DUPLICATE_IMPORT = "Duplicate import"
FILE_NOT_FOUND = "File not found"
DIAGNOSTIC_KINDS = (CIRCULAR_IMPORT, DUPLICATE_IMPORT, FILE_NOT_FOUND)


class MarkerCodec:
    """Encodes and decodes the comments the build injects into a bundle.

    A marker reads ``/* 📁 @file: src/common/global.css — ⛔ Keep this comment */``
    and always sits on a single line. Paths are relative to the project root
    and written with forward slashes on every platform; they may contain
    spaces. Diagnostics (``/* Circular import: src/a.css */``) and the banner
    are the other injected comments; none of them belong to a source file.
    """

    KEYWORD = "@file:"
    PREFIX = "/* 📁 @file:"
    SEPARATOR = " — "
    SUFFIX = "— ⛔ Keep this comment */"
    BANNER_VERSION_TAG = "Version:"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def encode(self, path: Path | str) -> str:
        """Return the marker comment for ``path``."""
        return f"{self.PREFIX} {self.relative(path)} {self.SUFFIX}"

    def relative(self, path: Path | str) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.root)
            except ValueError:
                candidate = Path(os.path.relpath(candidate, self.root))
        return candidate.as_posix().replace("\\", "/")

    def decode(self, comment: str) -> Optional[str]:
        """Return the path announced by ``comment`` or ``None`` if it is not a marker.

        ``comment`` may be the full ``/* ... */`` text or just its inner value.
        The path runs up to the `` — `` separator; a marker written without
        the separator yields its first whitespace-delimited token.
        """
        body = _strip_delimiters(comment)
        _, keyword, tail = body.partition(self.KEYWORD)
        if not keyword:
            return None
        head, separator, _ = tail.partition(self.SEPARATOR)
        if separator:
            path = head.strip()
            return path or None
        parts = tail.split()
        if not parts:
            return None
        return parts[0]

    def is_marker(self, comment: str) -> bool:
        return self.decode(comment) is not None

    def is_banner(self, comment: str) -> bool:
        """Banner comments carry build metadata and never belong to a source file."""
        body = _strip_delimiters(comment)
        return body.startswith("!") or self.BANNER_VERSION_TAG in body

    def diagnostic(self, kind: str, path: str) -> str:
        return f"/* {kind}: {path} */"

    def is_diagnostic(self, comment: str) -> bool:
        body = _strip_delimiters(comment)
        return "\n" not in body and any(body.startswith(f"{kind}: ") for kind in DIAGNOSTIC_KINDS)

    def is_injected(self, comment: str) -> bool:
        """True for markers, banners and diagnostics."""
        return self.is_marker(comment) or self.is_banner(comment) or self.is_diagnostic(comment)


def _strip_delimiters(comment: str) -> str:
    body = comment.strip()
    if body.startswith("/*"):
        body = body[2:]
    if body.endswith("*/"):
        body = body[:-2]
    return body.strip()


__all__ = [
    "CIRCULAR_IMPORT",
    "DIAGNOSTIC_KINDS",
    "DUPLICATE_IMPORT",
    "FILE_NOT_FOUND",
    "MarkerCodec",
]
