"""Marker-driven routing with anchor fallback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..markers import MarkerCodec
from ..syntax import COMMENT, INVALID, CssNode
from .anchor import AnchorRouter, RoutedNode

NO_DESTINATION = "no-destination"
DESTINATION_ACTIVE = "destination-active"

SWITCH = "switch"
APPEND = "append"
FALLBACK = "fallback"
DROP = "drop"


@dataclass(frozen=True)
class MarkerStep:
    """What to do with one node of the bundle."""

    action: str
    path: Optional[str] = None
    text: str = ""
    routed: Optional[RoutedNode] = None


class MarkerRouter:
    """State machine over the bundle's top-level nodes.

    Starts without a destination. A marker comment moves it to
    ``destination-active`` and every later node belongs to the marker's path
    until the next marker. Nodes seen before any marker, and constructs that
    failed to parse, are classified by the anchor router instead.
    """

    def __init__(self, codec: MarkerCodec, fallback: AnchorRouter) -> None:
        self.codec = codec
        self.fallback = fallback
        self.destination: Optional[str] = None
        self.markers_seen = 0

    @property
    def state(self) -> str:
        return DESTINATION_ACTIVE if self.destination is not None else NO_DESTINATION

    def feed(self, node: CssNode) -> MarkerStep:
        if node.kind == COMMENT:
            value = node.comment_value or ""
            path = self.codec.decode(value)
            if path is not None:
                self.destination = path
                self.markers_seen += 1
                return MarkerStep(SWITCH, path=path)
            if self.codec.is_injected(value):
                return MarkerStep(DROP)

        if self.destination is not None and node.kind != INVALID:
            return MarkerStep(APPEND, path=self.destination, text=node.text)

        routed = self.fallback.route(node)
        if routed is None:
            return MarkerStep(DROP)
        return MarkerStep(FALLBACK, path=routed.path, text=routed.text, routed=routed)


__all__ = [
    "APPEND",
    "DESTINATION_ACTIVE",
    "DROP",
    "FALLBACK",
    "MarkerRouter",
    "MarkerStep",
    "NO_DESTINATION",
    "SWITCH",
]
