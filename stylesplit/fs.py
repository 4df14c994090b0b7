"""File helpers shared by the pipelines."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .logging import get_logger

_logger = get_logger("fs")


def ensure_parent(path: Path) -> None:
    parent = Path(path).parent
    if not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)
        _logger.debug("Created directory %s", parent)


def write_file_safe(path: Path, content: str) -> None:
    """Write ``content`` to ``path``, creating parent directories as needed."""
    ensure_parent(path)
    Path(path).write_text(content, encoding="utf-8")


def read_file_safe(path: Path) -> Optional[str]:
    """Return the text of ``path`` or ``None`` when it does not exist."""
    candidate = Path(path)
    if not candidate.is_file():
        return None
    return candidate.read_text(encoding="utf-8")


__all__ = ["ensure_parent", "read_file_safe", "write_file_safe"]
