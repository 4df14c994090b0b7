"""Round-trip CSS bundling: build a marked bundle from modular sources and split it back."""

from .config import StyleSplitConfig, load_config
from .errors import ConfigError, CssSyntaxError, MarkersNotFoundError, StyleSplitError
from .orchestrator import Orchestrator

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "CssSyntaxError",
    "MarkersNotFoundError",
    "Orchestrator",
    "StyleSplitConfig",
    "StyleSplitError",
    "__version__",
    "load_config",
]
