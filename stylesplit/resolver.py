"""Flatten an @import graph into one bundle with file boundary markers."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set

from .config import StyleSplitConfig
from .logging import get_logger
from .markers import CIRCULAR_IMPORT, DUPLICATE_IMPORT, FILE_NOT_FOUND, MarkerCodec
from .models import ResolvedBundle
from .templates import TemplateRenderer

IMPORT_PATTERN = re.compile(r"""@import\s+["']([^"']+)["']\s*;?""")


@dataclass
class _ResolveState:
    visited: Set[str] = field(default_factory=set)
    stack: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)


class ImportResolver:
    """Inlines imported files depth-first and tags every span with its origin.

    Output order is a pre-order, left-to-right walk of the import graph. Each
    file is expanded once; a repeated path becomes an inert comment so cyclic
    graphs always terminate. Missing files become placeholders instead of
    aborting the build.
    """

    def __init__(
        self,
        config: StyleSplitConfig,
        *,
        codec: MarkerCodec | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.codec = codec or MarkerCodec(config.root)
        self.renderer = renderer or TemplateRenderer()
        self.logger = get_logger("resolver")

    def resolve(
        self, entry: Path | None = None, *, build_date: str | None = None
    ) -> ResolvedBundle:
        entry_path = Path(entry) if entry is not None else self.config.entry_path
        state = _ResolveState()
        body = self._resolve_file(Path(os.path.normpath(entry_path)), state)
        banner = self.renderer.banner(self.config.bundle, build_date=build_date)
        self.logger.debug(
            "Resolved %d source files from %s", len(state.sources), self.codec.relative(entry_path)
        )
        return ResolvedBundle(
            content=f"{banner}\n{body}",
            sources=state.sources,
            diagnostics=state.diagnostics,
        )

    def _resolve_file(self, path: Path, state: _ResolveState) -> str:
        key = str(path)
        label = self.codec.relative(path)
        if key in state.visited:
            reason = CIRCULAR_IMPORT if key in state.stack else DUPLICATE_IMPORT
            self.logger.warning("%s skipped: %s", reason, label)
            return self._diagnostic(reason, label, state)
        state.visited.add(key)

        if not path.is_file():
            self.logger.warning("Imported file not found: %s", label)
            return self._diagnostic(FILE_NOT_FOUND, label, state)

        content = path.read_text(encoding="utf-8")
        state.sources.append(label)
        marker = self.codec.encode(path)

        matches = list(IMPORT_PATTERN.finditer(content))
        if not matches:
            return f"{marker}\n{content.strip()}\n"

        pieces: List[str] = []
        state.stack.append(key)
        try:
            position = 0
            for match in matches:
                pieces.append(self._attributed(marker, content[position:match.start()]))
                target = Path(os.path.normpath(path.parent / match.group(1)))
                pieces.append(self._resolve_file(target, state))
                position = match.end()
            pieces.append(self._attributed(marker, content[position:]))
        finally:
            state.stack.pop()
        return "".join(pieces)

    @staticmethod
    def _attributed(marker: str, span: str) -> str:
        trimmed = span.strip()
        if not trimmed:
            return ""
        return f"{marker}\n{trimmed}\n"

    def _diagnostic(self, kind: str, label: str, state: _ResolveState) -> str:
        state.diagnostics.append(f"{kind}: {label}")
        return f"{self.codec.diagnostic(kind, label)}\n"


__all__ = ["IMPORT_PATTERN", "ImportResolver"]
