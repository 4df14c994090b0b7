"""Removes vestigial nodes from a built bundle."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Set

from tinycss2.ast import AtRule, QualifiedRule

from ..config import StyleSplitConfig
from ..logging import get_logger
from ..markers import MarkerCodec
from ..syntax import (
    AT_RULE,
    COMMENT,
    GROUP_AT_RULES,
    RULE,
    WHITESPACE,
    CssNode,
    attribute_values,
    block_children,
    has_declarations,
    parse_nodes,
    render_nodes,
)

_PASSTHROUGH_AT_RULES = frozenset({"import", "charset"})
_CONTENT_TYPES = frozenset({"qualified-rule", "at-rule", "declaration"})

Transform = Callable[[object], Optional[object]]


class EmptyNodePruner:
    """Strips rules, at-rules and comments left behind by placeholder source files.

    Passes run in a fixed order:

    1. rules without declarations;
    2. block at-rules left without rules, at-rules or declarations;
    3. file headers with no following rule, or whose rule belongs to a
       different anchor than the header names;
    4. remaining single-line comments, file markers and import
       diagnostics excepted;
    5. file markers with nothing left after them.

    Nodes a pass does not touch keep their original source text.
    """

    def __init__(self, config: StyleSplitConfig, *, codec: MarkerCodec | None = None) -> None:
        self.attribute = config.anchors.attribute
        self.header_keyword = config.anchors.header_keyword
        self._header_pattern = re.compile(
            re.escape(self.header_keyword) + r""":\s*["']([^"']+)["']"""
        )
        self.codec = codec or MarkerCodec(config.root)
        self.logger = get_logger("prune")

    def prune(self, css: str) -> str:
        nodes = parse_nodes(css)
        before = sum(1 for node in nodes if node.is_content)
        for step in (
            self.drop_empty_rules,
            self.drop_empty_at_rules,
            self.drop_stale_headers,
            self.drop_inline_comments,
            self.drop_orphan_markers,
        ):
            nodes = step(nodes)
        after = sum(1 for node in nodes if node.is_content)
        self.logger.debug("Pruned %d top-level nodes", before - after)
        text = render_nodes(nodes).strip()
        return f"{text}\n" if text else ""

    # ------------------------------------------------------------------
    # Passes

    def drop_empty_rules(self, nodes: Sequence[CssNode]) -> List[CssNode]:
        def transform(child: object) -> Optional[object]:
            if child.type == "qualified-rule" and not has_declarations(child):  # type: ignore[attr-defined]
                return None
            if _is_group(child):
                return _rebuild_group(child, transform)
            return child

        return self._apply(nodes, transform)

    def drop_empty_at_rules(self, nodes: Sequence[CssNode]) -> List[CssNode]:
        def transform(child: object) -> Optional[object]:
            if child.type != "at-rule" or child.content is None:  # type: ignore[attr-defined]
                return child
            if child.lower_at_keyword in _PASSTHROUGH_AT_RULES:  # type: ignore[attr-defined]
                return child
            if _is_group(child):
                child = _rebuild_group(child, transform)
            if not _has_content(child):
                return None
            return child

        return self._apply(nodes, transform)

    def drop_stale_headers(self, nodes: Sequence[CssNode]) -> List[CssNode]:
        dropped: Set[int] = set()
        for index, node in enumerate(nodes):
            if not self.is_file_header(node):
                continue
            header_anchor = self.header_anchor(node)
            if header_anchor is None:
                dropped.add(index)
                continue
            next_rule = self._next_rule(nodes, index)
            if next_rule is None or self.rule_anchor(next_rule) != header_anchor:
                dropped.add(index)
        return _without(nodes, dropped)

    def drop_inline_comments(self, nodes: Sequence[CssNode]) -> List[CssNode]:
        def transform(child: object) -> Optional[object]:
            child_type = child.type  # type: ignore[attr-defined]
            if child_type == "comment":
                return None if self._is_inline_comment(child.value) else child  # type: ignore[attr-defined]
            if _is_group(child):
                return _rebuild_group(child, transform)
            if child_type in {"qualified-rule", "at-rule"} and child.content is not None:  # type: ignore[attr-defined]
                return self._strip_block_comments(child)
            return child

        return self._apply(nodes, transform)

    def drop_orphan_markers(self, nodes: Sequence[CssNode]) -> List[CssNode]:
        dropped: Set[int] = set()
        pending: Optional[int] = None
        for index, node in enumerate(nodes):
            if not node.is_content:
                continue
            if self._is_marker(node):
                if pending is not None:
                    dropped.add(pending)
                pending = index
            else:
                pending = None
        if pending is not None:
            dropped.add(pending)
        return _without(nodes, dropped)

    # ------------------------------------------------------------------
    # Header helpers

    def is_file_header(self, node: CssNode) -> bool:
        value = node.comment_value
        if value is None:
            return False
        return "\n" in value and f"{self.header_keyword}:" in value

    def header_anchor(self, node: CssNode) -> Optional[str]:
        match = self._header_pattern.search(node.comment_value or "")
        return match.group(1) if match else None

    def rule_anchor(self, node: CssNode) -> Optional[str]:
        values = attribute_values(node.parsed.prelude, self.attribute)  # type: ignore[union-attr]
        return values[0] if values else None

    def _next_rule(self, nodes: Sequence[CssNode], index: int) -> Optional[CssNode]:
        for sibling in nodes[index + 1:]:
            if sibling.kind == RULE:
                return sibling
            if self.is_file_header(sibling):
                return None
        return None

    # ------------------------------------------------------------------
    # Internal helpers

    def _apply(self, nodes: Sequence[CssNode], transform: Transform) -> List[CssNode]:
        dropped: Set[int] = set()
        result: List[CssNode] = list(nodes)
        for index, node in enumerate(nodes):
            if self._is_marker(node):
                continue
            if node.kind == COMMENT or (node.kind in {RULE, AT_RULE} and node.parsed is not None):
                replacement = transform(node.parsed)
                if replacement is None:
                    dropped.add(index)
                elif replacement is not node.parsed:
                    result[index] = CssNode(
                        node.kind,
                        replacement.serialize(),  # type: ignore[attr-defined]
                        node.line,
                        replacement,
                    )
        return _without(result, dropped)

    def _is_marker(self, node: CssNode) -> bool:
        return node.kind == COMMENT and self.codec.is_marker(node.comment_value or "")

    def _is_inline_comment(self, value: str) -> bool:
        if "\n" in value:
            return False
        return not (self.codec.is_marker(value) or self.codec.is_diagnostic(value))

    def _strip_block_comments(self, rule: object) -> object:
        content = rule.content  # type: ignore[attr-defined]
        kept = [
            token
            for token in content
            if not (token.type == "comment" and self._is_inline_comment(token.value))
        ]
        if len(kept) == len(content):
            return rule
        return _with_content(rule, _collapse_whitespace(kept))


def _is_group(node: object) -> bool:
    return (
        getattr(node, "type", None) == "at-rule"
        and node.content is not None  # type: ignore[attr-defined]
        and node.lower_at_keyword in GROUP_AT_RULES  # type: ignore[attr-defined]
    )


def _has_content(at_rule: object) -> bool:
    return any(
        child.type in _CONTENT_TYPES  # type: ignore[attr-defined]
        for child in block_children(at_rule, skip_whitespace=True)
    )


def _rebuild_group(at_rule: object, transform: Transform) -> object:
    """Apply ``transform`` to every child of a group at-rule.

    Returns ``at_rule`` itself when nothing changed, or when its block holds a
    construct tinycss2 could not parse (such blocks are left untouched).
    """
    children = block_children(at_rule)
    if any(child.type == "error" for child in children):  # type: ignore[attr-defined]
        return at_rule
    kept: List[object] = []
    changed = False
    skip_whitespace = False
    for child in children:
        if child.type == "whitespace":  # type: ignore[attr-defined]
            if not skip_whitespace:
                kept.append(child)
            skip_whitespace = False
            continue
        skip_whitespace = False
        replacement = transform(child)
        if replacement is None:
            changed = True
            skip_whitespace = True
            continue
        if replacement is not child:
            changed = True
        kept.append(replacement)
    if not changed:
        return at_rule
    return _with_content(at_rule, kept)


def _with_content(node: object, content: List[object]) -> object:
    if node.type == "qualified-rule":  # type: ignore[attr-defined]
        return QualifiedRule(
            node.source_line,  # type: ignore[attr-defined]
            node.source_column,  # type: ignore[attr-defined]
            node.prelude,  # type: ignore[attr-defined]
            content,
        )
    return AtRule(
        node.source_line,  # type: ignore[attr-defined]
        node.source_column,  # type: ignore[attr-defined]
        node.at_keyword,  # type: ignore[attr-defined]
        node.lower_at_keyword,  # type: ignore[attr-defined]
        node.prelude,  # type: ignore[attr-defined]
        content,
    )


def _collapse_whitespace(tokens: List[object]) -> List[object]:
    collapsed: List[object] = []
    for token in tokens:
        if (
            token.type == "whitespace"  # type: ignore[attr-defined]
            and collapsed
            and collapsed[-1].type == "whitespace"  # type: ignore[attr-defined]
        ):
            continue
        collapsed.append(token)
    return collapsed


def _without(nodes: Sequence[CssNode], dropped: Set[int]) -> List[CssNode]:
    """Remove ``dropped`` indexes together with the whitespace that follows each."""
    if not dropped:
        return list(nodes)
    kept: List[CssNode] = []
    skip_whitespace = False
    for index, node in enumerate(nodes):
        if index in dropped:
            skip_whitespace = True
            continue
        if node.kind == WHITESPACE and skip_whitespace:
            skip_whitespace = False
            continue
        skip_whitespace = False
        kept.append(node)
    return kept


__all__ = ["EmptyNodePruner"]
