"""Routing of bundle nodes back to their source files."""

from .anchor import AnchorRouter, RoutedNode
from .marker import MarkerRouter, MarkerStep

__all__ = ["AnchorRouter", "MarkerRouter", "MarkerStep", "RoutedNode"]
