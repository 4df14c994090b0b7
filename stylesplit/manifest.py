"""Compare the entry manifest's imports with the source files on disk."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from .config import StyleSplitConfig
from .fs import read_file_safe, write_file_safe
from .logging import get_logger
from .models import ManifestSyncResult
from .resolver import IMPORT_PATTERN

MANIFEST_STUB = "/* CSS Manifest */\n"


class ManifestSynchronizer:
    """Reports drift between ``@import`` statements and files, and repairs it on request.

    Only the global directory and the anchors directory are scanned, one level
    deep. Orphaned imports are reported but never removed automatically.
    """

    def __init__(self, config: StyleSplitConfig) -> None:
        self.config = config
        self.manifest_path = config.entry_path
        self.logger = get_logger("manifest")

    def parse_imports(self) -> List[str]:
        content = read_file_safe(self.manifest_path)
        if content is None:
            return []
        return [match.group(1) for match in IMPORT_PATTERN.finditer(content)]

    def source_files(self) -> List[Path]:
        files: List[Path] = []
        for directory in (self.config.global_dir, self.config.paths.anchors_dir):
            files.extend(_css_files(self.config.abs(directory)))
        return files

    def to_import_path(self, path: Path) -> str:
        relative = os.path.relpath(path, self.manifest_path.parent).replace("\\", "/")
        if relative.startswith("../"):
            return relative
        return f"./{relative}"

    def to_absolute_path(self, import_path: str) -> Path:
        return Path(os.path.normpath(self.manifest_path.parent / import_path))

    def check(self) -> ManifestSyncResult:
        imports = self.parse_imports()
        sources = self.source_files()
        existing = {str(path) for path in sources}
        imported = {str(self.to_absolute_path(item)) for item in imports}

        valid: List[str] = []
        orphaned: List[str] = []
        for item in imports:
            if str(self.to_absolute_path(item)) in existing:
                valid.append(item)
            else:
                orphaned.append(item)

        missing = [self.to_import_path(path) for path in sources if str(path) not in imported]
        result = ManifestSyncResult(valid=valid, missing=missing, orphaned=orphaned)
        self.logger.debug(
            "Manifest check: %d valid, %d missing, %d orphaned",
            len(valid),
            len(missing),
            len(orphaned),
        )
        return result

    def updated_manifest(self, add_imports: Iterable[str]) -> str:
        """Return the manifest text with ``add_imports`` appended, existing lines untouched."""
        content = read_file_safe(self.manifest_path)
        if content is None:
            content = MANIFEST_STUB
        new_imports = "\n".join(f'@import "{item}";' for item in add_imports)
        if not new_imports:
            return content
        return f"{content.rstrip()}\n{new_imports}\n"

    def repair(self, result: ManifestSyncResult | None = None) -> ManifestSyncResult:
        """Append imports for missing files and return the state before the repair."""
        result = result or self.check()
        if result.missing:
            write_file_safe(self.manifest_path, self.updated_manifest(result.missing))
            self.logger.info("Added %d missing imports to %s", len(result.missing), self.config.rel(self.manifest_path))
        return result


def _css_files(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        Path(os.path.normpath(entry))
        for entry in directory.iterdir()
        if entry.is_file() and entry.suffix == ".css"
    )


__all__ = ["MANIFEST_STUB", "ManifestSynchronizer"]
