"""Pipeline orchestration for build, unbundle and sync flows."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .config import StyleSplitConfig, load_config
from .fs import read_file_safe, write_file_safe
from .logging import get_logger
from .manifest import ManifestSynchronizer
from .markers import MarkerCodec
from .models import BuildResult, ManifestSyncResult, SplitResult, UnbundleOutcome
from .postproc.prune import EmptyNodePruner
from .resolver import ImportResolver
from .splitter import MODE_ANCHORS, MODE_MARKERS, BundleSplitter
from .templates import TemplateRenderer


class Orchestrator:
    """Coordinates the round-trip pipelines for one project directory."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        build_date: str | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.build_date = build_date
        self.logger = get_logger("orchestrator")

    def load(self, path: str | Path) -> StyleSplitConfig:
        project = Path(path).expanduser().resolve()
        return load_config(project)

    def run_build(
        self,
        path: str | Path,
        *,
        prune: Optional[bool] = None,
        write: bool = True,
    ) -> BuildResult:
        """Flatten the entry manifest into the output bundle."""
        config = self.load(path)
        entry = config.entry_path
        if not entry.is_file():
            raise FileNotFoundError(f"Entry manifest not found at {entry}")

        self.logger.info("Building bundle from %s", config.rel(entry))
        codec = MarkerCodec(config.root)
        resolver = ImportResolver(config, codec=codec, renderer=self.renderer)
        resolved = resolver.resolve(entry, build_date=self.build_date)

        should_prune = config.bundle.prune if prune is None else prune
        content = resolved.content
        if should_prune:
            content = EmptyNodePruner(config, codec=codec).prune(content)

        output = config.output_bundle
        if write:
            write_file_safe(output, content)
            self.logger.info("Bundle written to %s (%d bytes)", config.rel(output), len(content))
        for diagnostic in resolved.diagnostics:
            self.logger.warning("Build diagnostic: %s", diagnostic)

        return BuildResult(
            path=output,
            content=content,
            sources=resolved.sources,
            diagnostics=resolved.diagnostics,
            pruned=should_prune,
        )

    def run_unbundle(
        self,
        path: str | Path,
        *,
        mode: str = MODE_MARKERS,
        bundle_path: str | Path | None = None,
        dry_run: bool = False,
    ) -> UnbundleOutcome:
        """Route a bundle's content back to source files."""
        config = self.load(path)
        source = Path(bundle_path) if bundle_path else config.abs(config.paths.input_bundle)
        content = read_file_safe(source)
        if content is None:
            raise FileNotFoundError(
                f"Bundle not found at {source}. Place the CSS bundle at {config.paths.input_bundle}."
            )
        self.logger.info("Read bundle %s (%d bytes)", source, len(content))

        splitter = BundleSplitter(config)
        result = splitter.split(content, mode=mode, source=str(source))
        for warning in result.warnings:
            self.logger.warning("%s", warning)

        written = self._write_files(config, result, dry_run=dry_run)
        anchor_prefix = config.paths.anchors_dir.rstrip("/") + "/"
        anchor_files = sum(1 for item in result.files if item.startswith(anchor_prefix))

        quarantine_path = None
        if result.quarantine:
            quarantine_path = config.abs(config.paths.quarantine)
            if not dry_run:
                write_file_safe(
                    quarantine_path,
                    self.renderer.quarantine(result.quarantine, warnings=result.warnings),
                )
            self.logger.warning(
                "Some CSS could not be parsed or routed; saved to %s", config.paths.quarantine
            )

        manifest_path = None
        if result.manifest:
            manifest_path = config.entry_path
            if not dry_run:
                write_file_safe(manifest_path, result.manifest)
            self.logger.info("Regenerated manifest %s", config.paths.entry)
        elif mode == MODE_ANCHORS:
            self.logger.info("Run `stylesplit sync` to check the manifest imports")

        self.logger.info(
            "Updated %d file(s) (%d anchors)%s",
            len(written),
            anchor_files,
            " (dry-run)" if dry_run else "",
        )
        return UnbundleOutcome(
            written=written,
            anchor_files=anchor_files,
            quarantine_path=quarantine_path,
            manifest_path=manifest_path,
            warnings=list(result.warnings),
            dry_run=dry_run,
        )

    def run_sync(self, path: str | Path, *, fix: bool = False) -> ManifestSyncResult:
        """Report (and optionally repair) drift between the manifest and the source tree."""
        config = self.load(path)
        synchronizer = ManifestSynchronizer(config)
        result = synchronizer.check()
        if result.in_sync:
            self.logger.info("Manifest is in sync (%d imports)", len(result.valid))
            return result
        for item in result.missing:
            self.logger.warning("Not imported in manifest: %s", item)
        for item in result.orphaned:
            self.logger.warning("Imported but missing on disk: %s", item)
        if fix:
            synchronizer.repair(result)
        return result

    def _write_files(
        self, config: StyleSplitConfig, result: SplitResult, *, dry_run: bool
    ) -> List[Path]:
        written: List[Path] = []
        for relative, content in result.files.items():
            target = config.abs(relative)
            if not dry_run:
                write_file_safe(target, content)
            self.logger.debug("%s %s", "Would update" if dry_run else "Updated", relative)
            written.append(target)
        return written


__all__ = ["Orchestrator"]
