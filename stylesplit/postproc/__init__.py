"""Post-processing passes applied to built bundles."""

from .prune import EmptyNodePruner

__all__ = ["EmptyNodePruner"]
