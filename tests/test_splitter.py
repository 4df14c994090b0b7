"""Tests for splitting bundles back into source files."""

from __future__ import annotations

from pathlib import Path

import pytest

from stylesplit import splitter as splitter_module
from stylesplit.config import StyleSplitConfig
from stylesplit.errors import CssSyntaxError, MarkersNotFoundError
from stylesplit.splitter import MODE_ANCHORS, BundleSplitter


def _marker(path: str) -> str:
    return f"/* 📁 @file: {path} — ⛔ Keep this comment */"


def _splitter(tmp_path: Path) -> BundleSplitter:
    return BundleSplitter(StyleSplitConfig(root=tmp_path))


def test_marker_mode_routes_by_marker_not_anchor(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            "/*!\n * Styles\n * Version: 1.0.0\n */",
            "",
            _marker("src/common/global.css"),
            '[data-css-anchor="header"] { color: red; }',
            _marker("src/by-css-anchor/footer.css"),
            '[data-css-anchor="footer"] { color: blue; }',
            "",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert result.files == {
        "src/common/global.css": '[data-css-anchor="header"] { color: red; }\n',
        "src/by-css-anchor/footer.css": '[data-css-anchor="footer"] { color: blue; }\n',
    }
    assert result.quarantine == []


def test_marker_mode_regenerates_manifest_in_encounter_order(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            _marker("src/by-css-anchor/nav.css"),
            ".nav { x: 1; }",
            _marker("src/common/global.css"),
            "body { margin: 0; }",
            _marker("src/by-css-anchor/nav.css"),
            ".nav a { x: 2; }",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert result.files["src/by-css-anchor/nav.css"] == ".nav { x: 1; }\n\n.nav a { x: 2; }\n"
    assert result.manifest == (
        '@import "./by-css-anchor/nav.css";\n@import "./common/global.css";\n'
    )


def test_marker_mode_skips_entry_segments(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            _marker("src/main.css"),
            ".stray { x: 1; }",
            _marker("src/common/global.css"),
            "body { margin: 0; }",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert "src/main.css" not in result.files
    assert result.manifest == '@import "./common/global.css";\n'


def test_content_before_first_marker_falls_back_to_anchors(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            '[data-css-anchor="hero"] { x: 1; }',
            _marker("src/common/global.css"),
            "body { margin: 0; }",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert result.files["src/by-css-anchor/hero.css"] == '[data-css-anchor="hero"] { x: 1; }\n'


def test_marker_mode_without_markers_raises(tmp_path: Path) -> None:
    with pytest.raises(MarkersNotFoundError) as excinfo:
        _splitter(tmp_path).split(".a { x: 1; }", source="bundle.css")

    assert "bundle.css" in str(excinfo.value)
    assert "--mode anchors" in str(excinfo.value)


def test_empty_bundle_yields_empty_result(tmp_path: Path) -> None:
    result = _splitter(tmp_path).split("  \n")

    assert result.files == {}
    assert result.quarantine == []
    assert result.warnings == []


def test_marker_paths_outside_project_are_quarantined(tmp_path: Path) -> None:
    bundle = "\n".join([_marker("../outside.css"), ".x { y: 1; }"])

    result = _splitter(tmp_path).split(bundle)

    assert result.files == {}
    assert result.quarantine == [".x { y: 1; }"]
    assert any("escapes the project root" in warning for warning in result.warnings)


def test_anchor_mode_routes_every_node(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            '@import "./common/global.css";',
            '[data-css-anchor="header"] { x: 1; }',
            ".plain { x: 2; }",
            '[data-css-anchor="header"] a { x: 3; }',
            ".broken >",
        ]
    )

    result = _splitter(tmp_path).split(bundle, mode=MODE_ANCHORS)

    assert result.files == {
        "src/by-css-anchor/header.css": (
            '[data-css-anchor="header"] { x: 1; }\n\n[data-css-anchor="header"] a { x: 3; }\n'
        ),
        "src/common/global.css": ".plain { x: 2; }\n",
    }
    assert result.quarantine == [".broken >"]
    assert len(result.warnings) == 1
    assert result.manifest is None


def test_anchor_mode_ignores_markers_for_routing(tmp_path: Path) -> None:
    bundle = "\n".join([_marker("src/common/global.css"), '[data-css-anchor="nav"] { x: 1; }'])

    result = _splitter(tmp_path).split(bundle, mode=MODE_ANCHORS)

    assert result.files == {"src/by-css-anchor/nav.css": '[data-css-anchor="nav"] { x: 1; }\n'}


def test_whole_parse_failure_quarantines_input(tmp_path: Path, monkeypatch) -> None:
    def fail(_css: str):
        raise CssSyntaxError("tokenizer exploded")

    monkeypatch.setattr(splitter_module, "parse_nodes", fail)

    result = _splitter(tmp_path).split(".a { x: 1; }")

    assert result.files == {}
    assert result.quarantine == [".a { x: 1; }"]
    assert result.warnings == ["tokenizer exploded"]


def test_unknown_mode_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        _splitter(tmp_path).split(".a { x: 1; }", mode="selectors")


def test_anchor_mode_quarantines_stray_brace_and_keeps_later_rules(tmp_path: Path) -> None:
    bundle = ".a { x: 1; }\n}\n.b { y: 2; }\n.c { z: 3; }"

    result = _splitter(tmp_path).split(bundle, mode=MODE_ANCHORS)

    assert result.files == {"src/common/global.css": ".a { x: 1; }\n\n.b { y: 2; }\n\n.c { z: 3; }\n"}
    assert result.quarantine == ["}"]
    assert len(result.warnings) == 1


def test_marker_mode_quarantines_stray_brace_inside_segment(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            _marker("src/common/global.css"),
            ".a { x: 1; }",
            "}",
            ".b { y: 2; }",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert result.files == {"src/common/global.css": ".a { x: 1; }\n\n.b { y: 2; }\n"}
    assert result.quarantine == ["}"]
    assert len(result.warnings) == 1


def test_import_diagnostics_do_not_reach_source_files(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            _marker("src/common/global.css"),
            "/* Circular import: src/main.css */",
            "body { margin: 0; }",
        ]
    )

    result = _splitter(tmp_path).split(bundle)

    assert result.files == {"src/common/global.css": "body { margin: 0; }\n"}
