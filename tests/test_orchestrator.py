"""End-to-end tests for the build, unbundle and sync pipelines."""

from __future__ import annotations

import shutil

import pytest

from stylesplit.errors import MarkersNotFoundError
from stylesplit.orchestrator import Orchestrator
from tests._fixtures.project_builder import ProjectBuilder

BUILD_DATE = "2024-01-01T00:00:00Z"

SOURCES = {
    "src/main.css": (
        '@import "./common/global.css";\n'
        '@import "./by-css-anchor/header.css";\n'
        '@import "./by-css-anchor/footer.css";\n'
    ),
    "src/common/global.css": ":root {\n  --brand: #0a66c2;\n}\n\nbody {\n  margin: 0;\n}\n",
    "src/by-css-anchor/header.css": (
        '/**\n * Header\n * CSS Anchor: "header"\n */\n'
        '[data-css-anchor="header"] .title {\n  color: var(--brand);\n}\n\n'
        "@media (max-width: 600px) {\n"
        '  [data-css-anchor="header"] .title { font-size: 1rem; }\n'
        "}\n"
    ),
    "src/by-css-anchor/footer.css": '[data-css-anchor="footer"] {\n  padding: 2rem;\n}\n',
}


def _orchestrator() -> Orchestrator:
    return Orchestrator(build_date=BUILD_DATE)


def _publish_bundle(project_builder: ProjectBuilder) -> None:
    root = project_builder.path()
    target = root / "input" / "platform-bundle.css"
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(root / "dist" / "platform-bundle.css", target)


def test_build_writes_marked_bundle(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)

    result = _orchestrator().run_build(project_builder.path())

    assert result.path == project_builder.config().output_bundle
    written = project_builder.read("dist/platform-bundle.css")
    assert written == result.content
    assert "/* 📁 @file: src/by-css-anchor/footer.css — ⛔ Keep this comment */" in written
    assert result.pruned is True


def test_build_without_entry_raises(project_builder: ProjectBuilder) -> None:
    project_builder.write({"src/common/global.css": "body { margin: 0; }\n"})

    with pytest.raises(FileNotFoundError):
        _orchestrator().run_build(project_builder.path())


def test_build_to_memory_does_not_write(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)

    result = _orchestrator().run_build(project_builder.path(), write=False)

    assert "body" in result.content
    assert not project_builder.exists("dist/platform-bundle.css")


def test_round_trip_restores_sources(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)
    orchestrator = _orchestrator()
    first = orchestrator.run_build(project_builder.path())
    _publish_bundle(project_builder)
    for relative in SOURCES:
        (project_builder.path() / relative).unlink()

    outcome = orchestrator.run_unbundle(project_builder.path())

    for relative, content in SOURCES.items():
        assert project_builder.read(relative) == content
    assert outcome.anchor_files == 2
    assert outcome.quarantine_path is None
    assert outcome.manifest_path == project_builder.config().entry_path

    second = orchestrator.run_build(project_builder.path())
    assert second.content == first.content


def test_unbundle_after_editing_bundle(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)
    orchestrator = _orchestrator()
    orchestrator.run_build(project_builder.path())
    _publish_bundle(project_builder)
    bundle_path = project_builder.path() / "input" / "platform-bundle.css"
    edited = bundle_path.read_text(encoding="utf-8").replace("padding: 2rem;", "padding: 3rem;")
    bundle_path.write_text(edited, encoding="utf-8")

    orchestrator.run_unbundle(project_builder.path())

    assert "padding: 3rem;" in project_builder.read("src/by-css-anchor/footer.css")
    assert project_builder.read("src/common/global.css") == SOURCES["src/common/global.css"]


def test_unbundle_dry_run_writes_nothing(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)
    orchestrator = _orchestrator()
    orchestrator.run_build(project_builder.path())
    _publish_bundle(project_builder)
    (project_builder.path() / "src" / "by-css-anchor" / "footer.css").unlink()

    outcome = orchestrator.run_unbundle(project_builder.path(), dry_run=True)

    assert outcome.dry_run is True
    assert len(outcome.written) == 3
    assert not project_builder.exists("src/by-css-anchor/footer.css")


def test_unbundle_missing_bundle_raises(project_builder: ProjectBuilder) -> None:
    project_builder.write(SOURCES)

    with pytest.raises(FileNotFoundError) as excinfo:
        _orchestrator().run_unbundle(project_builder.path())

    assert "input/platform-bundle.css" in str(excinfo.value)


def test_unbundle_without_markers_raises(project_builder: ProjectBuilder) -> None:
    project_builder.write({"input/platform-bundle.css": ".a { x: 1; }\n"})

    with pytest.raises(MarkersNotFoundError):
        _orchestrator().run_unbundle(project_builder.path())


def test_anchor_unbundle_writes_quarantine(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "input/platform-bundle.css": (
                '[data-css-anchor="hero"] { color: red; }\n'
                ".plain { color: blue; }\n"
                ".broken >\n"
            ),
        }
    )

    outcome = _orchestrator().run_unbundle(project_builder.path(), mode="anchors")

    assert project_builder.read("src/by-css-anchor/hero.css") == '[data-css-anchor="hero"] { color: red; }\n'
    assert project_builder.read("src/common/global.css") == ".plain { color: blue; }\n"
    quarantine = project_builder.read("src/quarantine.css")
    assert "QUARANTINE FILE" in quarantine
    assert quarantine.rstrip().endswith(".broken >")
    assert outcome.manifest_path is None
    assert not project_builder.exists("src/main.css")


def test_sync_fix_adds_unbundled_anchor_files(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.css": '@import "./common/global.css";\n',
            "src/common/global.css": "body { margin: 0; }\n",
            "src/by-css-anchor/hero.css": ".hero { x: 1; }\n",
        }
    )
    orchestrator = _orchestrator()

    report = orchestrator.run_sync(project_builder.path())
    assert report.missing == ["./by-css-anchor/hero.css"]
    assert project_builder.read("src/main.css") == '@import "./common/global.css";\n'

    orchestrator.run_sync(project_builder.path(), fix=True)

    assert orchestrator.run_sync(project_builder.path()).in_sync is True


def test_build_keeps_comments_out_of_pruned_media_rules(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.css": '@import "./common/global.css";\n',
            "src/common/global.css": (
                "@media print {\n  .a { color: red; /* note */ }\n}\n"
                "@media screen { .b {} .c { x: 1; } }\n"
            ),
        }
    )

    result = _orchestrator().run_build(project_builder.path(), write=False)

    assert "/* note */" not in result.content
    assert "color: red;" in result.content
    assert ".b" not in result.content
    assert ".c { x: 1; }" in result.content


def test_build_reports_circular_import_once(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.css": '@import "./common/global.css";\n',
            "src/common/global.css": '@import "../main.css";\n',
        }
    )

    result = _orchestrator().run_build(project_builder.path(), write=False)

    assert result.content.count("Circular import") == 1
    assert "/* Circular import: src/main.css */" in result.content
