"""Selector-attribute routing for unmarked CSS."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Set

from ..config import StyleSplitConfig
from ..markers import MarkerCodec
from ..models import QUARANTINE, WIDGET, AnchorRoute
from ..syntax import (
    AT_RULE,
    COMMENT,
    INVALID,
    RULE,
    CssNode,
    attribute_values,
    split_selector_list,
    walk_rules,
)

# At-rules routed by the anchors of the rules they contain.
_CONDITIONAL_AT_RULES = frozenset({"media", "supports"})
# At-rules that stay in the manifest.
_PASSTHROUGH_AT_RULES = frozenset({"import", "charset"})
# Anchor values that can be used as a file name as-is.
_SAFE_ANCHOR = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


@dataclass
class RoutedNode:
    """A node paired with the file it should be written to."""

    path: str
    text: str
    route: AnchorRoute
    warning: Optional[str] = field(default=None)


class AnchorRouter:
    """Classifies one top-level node using only its own selectors."""

    def __init__(self, config: StyleSplitConfig, *, codec: MarkerCodec | None = None) -> None:
        self.config = config
        self.attribute = config.anchors.attribute
        self.codec = codec or MarkerCodec(config.root)

    def extract_anchors(self, selector_tokens: Iterable[object]) -> Set[str]:
        return set(attribute_values(selector_tokens, self.attribute))

    def route_selectors(self, selectors: Iterable[Iterable[object]]) -> AnchorRoute:
        anchors: Set[str] = set()
        for selector in selectors:
            anchors |= self.extract_anchors(selector)
        return self._route_for(anchors)

    def classify(self, node: CssNode) -> Optional[AnchorRoute]:
        """Return the route for ``node`` or ``None`` when it is not routed at all.

        May raise for malformed constructs; ``route`` turns that into a
        quarantine decision.
        """
        if not node.is_content:
            return None
        if node.kind == INVALID:
            return AnchorRoute.quarantined()
        if node.kind == RULE:
            return self.route_selectors(split_selector_list(node.parsed.prelude))  # type: ignore[union-attr]
        if node.kind == AT_RULE:
            keyword = node.at_keyword
            if keyword in _PASSTHROUGH_AT_RULES:
                return None
            if keyword in _CONDITIONAL_AT_RULES:
                anchors: Set[str] = set()
                for rule in walk_rules(node.parsed):
                    for selector in split_selector_list(rule.prelude):  # type: ignore[attr-defined]
                        anchors |= self.extract_anchors(selector)
                return self._route_for(anchors)
            return AnchorRoute.shared()
        if node.kind == COMMENT:
            value = node.comment_value or ""
            if self.codec.is_injected(value):
                return None
            return AnchorRoute.shared()
        return AnchorRoute.shared()

    def route(self, node: CssNode) -> Optional[RoutedNode]:
        """Route ``node``, quarantining it when it is invalid or processing fails."""
        try:
            route = self.classify(node)
        except Exception as exc:  # quarantine and continue
            return RoutedNode(
                path=self.config.paths.quarantine,
                text=node.text,
                route=AnchorRoute.quarantined(),
                warning=f"Error processing node at line {node.line}: {exc}",
            )
        if route is None:
            return None
        warning = None
        if route.kind == QUARANTINE:
            warning = f"Failed to parse CSS at line {node.line}: {node.error or 'invalid construct'}"
        return RoutedNode(path=self.path_for(route), text=node.text, route=route, warning=warning)

    def path_for(self, route: AnchorRoute) -> str:
        if route.kind == WIDGET and route.anchor and _SAFE_ANCHOR.match(route.anchor):
            return self.config.anchor_file(route.anchor)
        if route.kind == QUARANTINE:
            return self.config.paths.quarantine
        return self.config.paths.global_file

    @staticmethod
    def _route_for(anchors: Set[str]) -> AnchorRoute:
        if len(anchors) == 1:
            return AnchorRoute.widget(next(iter(anchors)))
        return AnchorRoute.shared()


__all__ = ["AnchorRouter", "RoutedNode"]
