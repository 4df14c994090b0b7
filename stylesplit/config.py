"""Configuration loading for stylesplit (.stylesplit.yml)."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".stylesplit.yml"


@dataclass
class PathsConfig:
    """Project-relative locations of sources, bundles and routing targets."""

    entry: str = "src/main.css"
    global_file: str = "src/common/global.css"
    anchors_dir: str = "src/by-css-anchor"
    quarantine: str = "src/quarantine.css"
    input_bundle: str = "input/platform-bundle.css"
    output_dir: str = "dist"


@dataclass
class BundleConfig:
    """Metadata and post-processing switches for built bundles."""

    name: str = "platform-bundle"
    title: str = "Custom Platform Styles"
    version: str = "1.0.0"
    author: str = "Your Company Name"
    prune: bool = True


@dataclass
class AnchorConfig:
    """Selector attribute used to infer the owning file of unmarked rules."""

    attribute: str = "data-css-anchor"
    header_keyword: str = "CSS Anchor"


@dataclass
class StyleSplitConfig:
    """Represents the settings defined in .stylesplit.yml."""

    root: Path
    paths: PathsConfig = field(default_factory=PathsConfig)
    bundle: BundleConfig = field(default_factory=BundleConfig)
    anchors: AnchorConfig = field(default_factory=AnchorConfig)

    def abs(self, relative: str) -> Path:
        """Resolve a project-relative path against the project root."""
        return self.root / relative

    def rel(self, path: Path | str) -> str:
        """Return ``path`` relative to the project root with forward slashes."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.root)
            except ValueError:
                return candidate.as_posix()
        return posixpath.normpath(candidate.as_posix().replace("\\", "/"))

    @property
    def entry_path(self) -> Path:
        return self.abs(self.paths.entry)

    @property
    def global_dir(self) -> str:
        return posixpath.dirname(self.paths.global_file)

    @property
    def output_bundle(self) -> Path:
        return self.abs(self.paths.output_dir) / f"{self.bundle.name}.css"

    def anchor_file(self, value: str) -> str:
        """Return the project-relative file that owns rules tagged with ``value``."""
        return posixpath.join(self.paths.anchors_dir, f"{value}.css")


def load_config(config_path: Path) -> StyleSplitConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return StyleSplitConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    paths = PathsConfig()
    paths_data = _as_dict(data.get("paths"))
    for key in (
        "entry",
        "global_file",
        "anchors_dir",
        "quarantine",
        "input_bundle",
        "output_dir",
    ):
        value = _as_path(paths_data.get(key))
        if value:
            setattr(paths, key, value)

    bundle = BundleConfig()
    bundle_data = _as_dict(data.get("bundle"))
    for key in ("name", "title", "version", "author"):
        value = _as_str(bundle_data.get(key))
        if value:
            setattr(bundle, key, value)
    prune = _as_bool(bundle_data.get("prune"))
    if prune is not None:
        bundle.prune = prune

    anchors = AnchorConfig()
    anchor_data = _as_dict(data.get("anchors"))
    attribute = _as_str(anchor_data.get("attribute"))
    if attribute:
        anchors.attribute = attribute
    header_keyword = _as_str(anchor_data.get("header_keyword"))
    if header_keyword:
        anchors.header_keyword = header_keyword

    return StyleSplitConfig(root=root, paths=paths, bundle=bundle, anchors=anchors)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(value: Any) -> Optional[str]:
    text = _as_str(value)
    if not text:
        return None
    cleaned = posixpath.normpath(text.strip().replace("\\", "/"))
    if cleaned.startswith("/") or cleaned.startswith(".."):
        raise ConfigError(f"Configured path must stay inside the project: {text}")
    return cleaned


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "AnchorConfig",
    "BundleConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "PathsConfig",
    "StyleSplitConfig",
    "load_config",
]
