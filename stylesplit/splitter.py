"""Split a flattened bundle back into per-file contents."""

from __future__ import annotations

import posixpath
from typing import List, Optional, Tuple

from .config import StyleSplitConfig
from .errors import CssSyntaxError, MarkersNotFoundError
from .logging import get_logger
from .markers import MarkerCodec
from .models import QUARANTINE, SegmentMap, SplitResult, join_segments
from .routing import AnchorRouter, MarkerRouter, RoutedNode
from .routing.marker import APPEND, FALLBACK, SWITCH
from .syntax import COMMENT, CssNode, parse_nodes

MODE_MARKERS = "markers"
MODE_ANCHORS = "anchors"
MODES: Tuple[str, ...] = (MODE_MARKERS, MODE_ANCHORS)


class BundleSplitter:
    """Reconstructs source files from bundle text.

    Marker mode is the default and requires at least one file marker; anchor
    mode routes every node by its selectors and is chosen explicitly for
    bundles that were edited or produced without markers.
    """

    def __init__(
        self,
        config: StyleSplitConfig,
        *,
        codec: MarkerCodec | None = None,
        anchor_router: AnchorRouter | None = None,
    ) -> None:
        self.config = config
        self.codec = codec or MarkerCodec(config.root)
        self.anchor_router = anchor_router or AnchorRouter(config, codec=self.codec)
        self.logger = get_logger("splitter")

    def split(self, css: str, *, mode: str = MODE_MARKERS, source: str | None = None) -> SplitResult:
        if mode not in MODES:
            raise ValueError(f"Unknown unbundle mode: {mode!r} (expected one of {', '.join(MODES)})")
        try:
            nodes = parse_nodes(css)
        except CssSyntaxError as exc:
            self.logger.warning("Bundle could not be parsed; quarantining the whole input")
            return SplitResult(mode=mode, quarantine=[css], warnings=[str(exc)])

        if mode == MODE_ANCHORS:
            return self._split_by_anchors(nodes)
        return self._split_by_markers(nodes, source)

    def count_markers(self, nodes: List[CssNode]) -> int:
        return sum(
            1
            for node in nodes
            if node.kind == COMMENT and self.codec.is_marker(node.comment_value or "")
        )

    # ------------------------------------------------------------------
    # Marker mode

    def _split_by_markers(self, nodes: List[CssNode], source: str | None) -> SplitResult:
        result = SplitResult(mode=MODE_MARKERS)
        if not any(node.is_content for node in nodes):
            self.logger.info("Bundle is empty; nothing to unbundle")
            return result
        if self.count_markers(nodes) == 0:
            raise MarkersNotFoundError(source)

        router = MarkerRouter(self.codec, self.anchor_router)
        segments = SegmentMap()
        destinations: List[str] = []
        current: Optional[Tuple[str, List[str]]] = None

        for node in nodes:
            step = router.feed(node)
            if step.action == SWITCH:
                self._close_chunk(current, segments, result)
                path = _normalise(step.path or "")
                current = (path, [])
                if path and path not in destinations:
                    destinations.append(path)
            elif step.action == APPEND and current is not None:
                current[1].append(step.text)
            elif step.action == FALLBACK and step.routed is not None:
                if self._collect(step.routed, segments, result) and step.routed.path not in destinations:
                    destinations.append(step.routed.path)
        self._close_chunk(current, segments, result)

        self.logger.debug("Found %d file markers", router.markers_seen)
        self._emit_files(segments, result)
        result.manifest = self.regenerate_manifest(
            [path for path in destinations if path in result.files]
        )
        return result

    def _close_chunk(
        self,
        current: Optional[Tuple[str, List[str]]],
        segments: SegmentMap,
        result: SplitResult,
    ) -> None:
        if current is None:
            return
        path, parts = current
        text = "".join(parts).strip()
        if not path:
            if text:
                result.warnings.append("Content under a marker without a path was skipped")
            return
        if not _is_inside_project(path):
            result.warnings.append(f"Marker path escapes the project root: {path}")
            if text:
                result.quarantine.append(text)
            return
        segments.add(path, text)

    def _emit_files(self, segments: SegmentMap, result: SplitResult) -> None:
        entry = _normalise(self.config.paths.entry)
        for path, fragments in segments.freeze().items():
            if path == entry:
                if any(fragment.strip() for fragment in fragments):
                    self.logger.warning(
                        "Content attributed to %s is not replayed; the manifest is regenerated", entry
                    )
                continue
            result.files[path] = join_segments(fragments)

    def regenerate_manifest(self, destinations: List[str]) -> str:
        """Return a manifest importing ``destinations`` relative to the entry file."""
        entry = _normalise(self.config.paths.entry)
        quarantine = _normalise(self.config.paths.quarantine)
        manifest_dir = posixpath.dirname(entry)
        lines: List[str] = []
        seen: set[str] = set()
        for destination in destinations:
            path = _normalise(destination)
            if not path or path in {entry, quarantine} or path in seen:
                continue
            seen.add(path)
            lines.append(f'@import "{_import_path(path, manifest_dir)}";')
        return "\n".join(lines) + "\n" if lines else ""

    # ------------------------------------------------------------------
    # Anchor mode

    def _split_by_anchors(self, nodes: List[CssNode]) -> SplitResult:
        result = SplitResult(mode=MODE_ANCHORS)
        segments = SegmentMap()
        for node in nodes:
            routed = self.anchor_router.route(node)
            if routed is not None:
                self._collect(routed, segments, result)
        for path, fragments in segments.freeze().items():
            result.files[path] = join_segments(fragments)
        return result

    def _collect(self, routed: RoutedNode, segments: SegmentMap, result: SplitResult) -> bool:
        """Store a routed node; returns ``False`` when it went to quarantine."""
        if routed.warning:
            result.warnings.append(routed.warning)
        if routed.route.kind == QUARANTINE:
            result.quarantine.append(routed.text)
            return False
        segments.add(routed.path, routed.text)
        return True


def _normalise(path: str) -> str:
    cleaned = path.strip().replace("\\", "/")
    if not cleaned:
        return ""
    return posixpath.normpath(cleaned)


def _is_inside_project(path: str) -> bool:
    return not (path.startswith("/") or path == ".." or path.startswith("../"))


def _import_path(path: str, manifest_dir: str) -> str:
    relative = posixpath.relpath(path, manifest_dir or ".")
    if relative.startswith("../"):
        return relative
    return f"./{relative}"


__all__ = ["BundleSplitter", "MODES", "MODE_ANCHORS", "MODE_MARKERS"]
