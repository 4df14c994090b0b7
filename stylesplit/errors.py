"""Exception types raised by stylesplit pipelines."""

from __future__ import annotations


class StyleSplitError(RuntimeError):
    """Base class for fatal stylesplit failures."""


class ConfigError(StyleSplitError):
    """Raised when the configuration file cannot be parsed."""


class CssSyntaxError(StyleSplitError):
    """Raised when the CSS parser rejects an entire input."""


class MarkersNotFoundError(StyleSplitError):
    """Raised when marker-based unbundling runs against a bundle without markers."""

    def __init__(self, source: str | None = None) -> None:
        location = f" in {source}" if source else ""
        super().__init__(
            f"No file markers found{location}. "
            "Rebuild the bundle with `stylesplit build` or unbundle with `--mode anchors`."
        )
        self.source = source


__all__ = ["ConfigError", "CssSyntaxError", "MarkersNotFoundError", "StyleSplitError"]
