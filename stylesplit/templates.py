"""Jinja templates for generated CSS comments."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import BundleConfig


class TemplateRenderer:
    """Renders the bundle banner and the quarantine file header."""

    BANNER_TEMPLATE = "banner.css.j2"
    QUARANTINE_TEMPLATE = "quarantine.css.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def banner(self, bundle: BundleConfig, *, build_date: str | None = None) -> str:
        template = self._env.get_template(self.BANNER_TEMPLATE)
        rendered = template.render(
            title=_comment_safe(bundle.title),
            version=_comment_safe(bundle.version),
            author=_comment_safe(bundle.author),
            build_date=build_date or _timestamp(),
        )
        return rendered.rstrip() + "\n"

    def quarantine(
        self,
        fragments: Sequence[str],
        *,
        warnings: Sequence[str] = (),
        extracted_at: str | None = None,
    ) -> str:
        template = self._env.get_template(self.QUARANTINE_TEMPLATE)
        rendered = template.render(
            extracted_at=extracted_at or _timestamp(),
            warnings=[_comment_safe(warning) for warning in warnings],
            body="\n\n".join(fragment.strip() for fragment in fragments),
        )
        return rendered.rstrip() + "\n"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _comment_safe(value: str) -> str:
    return " ".join(str(value).replace("*/", "* /").split())


__all__ = ["TemplateRenderer"]
