"""Tests for stylesplit.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from stylesplit.config import StyleSplitConfig, load_config
from stylesplit.errors import ConfigError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, StyleSplitConfig)
    assert config.root == tmp_path.resolve()
    assert config.paths.entry == "src/main.css"
    assert config.paths.global_file == "src/common/global.css"
    assert config.paths.anchors_dir == "src/by-css-anchor"
    assert config.paths.quarantine == "src/quarantine.css"
    assert config.paths.input_bundle == "input/platform-bundle.css"
    assert config.bundle.name == "platform-bundle"
    assert config.bundle.prune is True
    assert config.anchors.attribute == "data-css-anchor"
    assert config.anchors.header_keyword == "CSS Anchor"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".stylesplit.yml"
    config_file.write_text(
        """
paths:
  entry: styles/index.css
  global_file: styles/shared/base.css
  anchors_dir: styles/widgets
  output_dir: build
bundle:
  name: site
  title: "Site Styles"
  version: 2.1.0
  author: Design Team
  prune: false
anchors:
  attribute: data-widget
  header_keyword: Widget
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.paths.entry == "styles/index.css"
    assert config.global_dir == "styles/shared"
    assert config.anchor_file("nav") == "styles/widgets/nav.css"
    assert config.output_bundle == tmp_path.resolve() / "build" / "site.css"
    assert config.bundle.title == "Site Styles"
    assert config.bundle.version == "2.1.0"
    assert config.bundle.prune is False
    assert config.anchors.attribute == "data-widget"
    assert config.anchors.header_keyword == "Widget"
    # Untouched keys keep their defaults.
    assert config.paths.quarantine == "src/quarantine.css"


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".stylesplit.yml").write_text("", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.paths.entry == "src/main.css"


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".stylesplit.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".stylesplit.yml").write_text("paths: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_paths_outside_project(tmp_path: Path) -> None:
    (tmp_path / ".stylesplit.yml").write_text(
        "paths:\n  entry: ../elsewhere/main.css\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_rel_returns_posix_paths(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.rel(config.root / "src" / "common" / "global.css") == "src/common/global.css"
    assert config.rel("src\\by-css-anchor\\nav.css") == "src/by-css-anchor/nav.css"
