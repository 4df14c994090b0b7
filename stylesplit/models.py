"""Core data models shared across stylesplit components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

WIDGET = "widget"
GLOBAL = "global"
QUARANTINE = "quarantine"


@dataclass(frozen=True)
class AnchorRoute:
    """Destination chosen for an unmarked node by inspecting its selectors."""

    kind: str
    anchor: Optional[str] = None

    @classmethod
    def widget(cls, anchor: str) -> "AnchorRoute":
        return cls(WIDGET, anchor)

    @classmethod
    def shared(cls) -> "AnchorRoute":
        return cls(GLOBAL)

    @classmethod
    def quarantined(cls) -> "AnchorRoute":
        return cls(QUARANTINE)


class SegmentMap:
    """Ordered multi-map of destination path to content fragments.

    Fragments are collected during one routing pass and frozen afterwards;
    ``freeze`` returns a read-only view and further ``add`` calls fail.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[str]] = {}
        self._frozen = False

    def add(self, path: str, fragment: str) -> None:
        if self._frozen:
            raise RuntimeError("SegmentMap is frozen")
        self._entries.setdefault(path, []).append(fragment)

    def freeze(self) -> Mapping[str, Tuple[str, ...]]:
        self._frozen = True
        return MappingProxyType({path: tuple(parts) for path, parts in self._entries.items()})

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def join_segments(fragments: Tuple[str, ...] | List[str]) -> str:
    """Concatenate fragments for one file, separated by a blank line."""
    cleaned = [fragment.strip() for fragment in fragments if fragment.strip()]
    if not cleaned:
        return ""
    return "\n\n".join(cleaned) + "\n"


@dataclass
class SplitResult:
    """Outcome of splitting a bundle back into source files."""

    mode: str
    files: Dict[str, str] = field(default_factory=dict)
    quarantine: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    manifest: Optional[str] = None


@dataclass
class ResolvedBundle:
    """Flattened output of the import resolver."""

    content: str
    sources: List[str] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)


@dataclass
class BuildResult:
    """A built bundle written (or ready to be written) to disk."""

    path: Path
    content: str
    sources: List[str]
    diagnostics: List[str]
    pruned: bool


@dataclass
class UnbundleOutcome:
    """Files produced by an unbundle run."""

    written: List[Path]
    anchor_files: int
    quarantine_path: Optional[Path]
    manifest_path: Optional[Path]
    warnings: List[str]
    dry_run: bool = False


@dataclass
class ManifestSyncResult:
    """Comparison of the manifest imports with the files on disk."""

    valid: List[str]
    missing: List[str]
    orphaned: List[str]

    @property
    def in_sync(self) -> bool:
        return not self.missing and not self.orphaned


__all__ = [
    "AnchorRoute",
    "BuildResult",
    "GLOBAL",
    "ManifestSyncResult",
    "QUARANTINE",
    "ResolvedBundle",
    "SegmentMap",
    "SplitResult",
    "UnbundleOutcome",
    "WIDGET",
    "join_segments",
]
