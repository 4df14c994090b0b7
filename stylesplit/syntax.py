"""Top-level CSS node extraction on top of tinycss2.

tinycss2 parses stylesheets into rule objects but does not keep the source
text of each rule. The bundle tooling needs that text byte-for-byte, so the
stylesheet is first tokenized as a flat component value list, grouped into
top-level constructs the way CSS Syntax Level 3 consumes a list of
rules, and every group is sliced out of the source by token position before
it is handed back to tinycss2 for structured inspection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence

import tinycss2

from .errors import CssSyntaxError

RULE = "rule"
AT_RULE = "at-rule"
COMMENT = "comment"
WHITESPACE = "whitespace"
INVALID = "invalid"

# At-rules whose block holds rules rather than declarations.
GROUP_AT_RULES = frozenset(
    {
        "media",
        "supports",
        "layer",
        "container",
        "document",
        "scope",
        "starting-style",
        "keyframes",
        "-webkit-keyframes",
        "-moz-keyframes",
    }
)

_NEWLINE = re.compile("\n")


@dataclass(frozen=True)
class CssNode:
    """A top-level construct together with its verbatim source text."""

    kind: str
    text: str
    line: int
    parsed: object | None = None
    error: str | None = None

    @property
    def at_keyword(self) -> Optional[str]:
        if self.kind != AT_RULE or self.parsed is None:
            return None
        return self.parsed.lower_at_keyword  # type: ignore[attr-defined]

    @property
    def comment_value(self) -> Optional[str]:
        """Inner text of a comment node, without the ``/*`` ``*/`` delimiters."""
        if self.kind != COMMENT or self.parsed is None:
            return None
        return self.parsed.value  # type: ignore[attr-defined]

    @property
    def is_content(self) -> bool:
        return self.kind != WHITESPACE


def normalize_newlines(css: str) -> str:
    """Apply the newline normalisation tinycss2 performs before tokenizing."""
    return css.replace("\r\n", "\n").replace("\r", "\n").replace("\f", "\n")


def parse_nodes(css: str) -> List[CssNode]:
    """Split ``css`` into top-level nodes, whitespace runs included.

    Raises ``CssSyntaxError`` when the tokenizer rejects the input outright.
    A construct that cannot be completed (for example a selector without a
    block at the end of the input) is returned as an ``INVALID`` node holding
    its raw text; it never aborts the parse.
    """
    if not isinstance(css, str):
        raise CssSyntaxError(f"Expected CSS text, got {type(css).__name__}")
    source = normalize_newlines(css)
    try:
        tokens = tinycss2.parse_component_value_list(source, skip_comments=False)
    except Exception as exc:
        raise CssSyntaxError(f"Failed to parse CSS: {exc}") from exc

    index = _LineIndex(source)
    nodes: List[CssNode] = []
    count = len(tokens)
    position = 0
    while position < count:
        token = tokens[position]
        start = index.offset(token)
        if token.type == "whitespace":
            nodes.append(CssNode(WHITESPACE, token.value, token.source_line, token))
            position += 1
            continue
        if token.type == "comment":
            end = index.offset(tokens[position + 1]) if position + 1 < count else len(source)
            nodes.append(CssNode(COMMENT, source[start:end], token.source_line, token))
            position += 1
            continue

        is_at_rule = token.type == "at-keyword"
        cursor = position
        terminated = False
        broken: Optional[str] = None
        while cursor < count:
            current = tokens[cursor]
            if current.type == "error":
                # A stray "}" or similar ends the construct; only its text is invalid.
                broken = current.message
                break
            if current.type == "{} block":
                terminated = True
                break
            if is_at_rule and current.type == "literal" and current.value == ";":
                terminated = True
                break
            cursor += 1

        if broken is not None:
            end = index.offset(tokens[cursor + 1]) if cursor + 1 < count else len(source)
            nodes.append(CssNode(INVALID, source[start:end], token.source_line, error=broken))
            position = cursor + 1
            continue

        if terminated:
            end = index.offset(tokens[cursor + 1]) if cursor + 1 < count else len(source)
            text = source[start:end]
            nodes.append(_structured_node(text, token.source_line))
            position = cursor + 1
            continue

        text = source[start:].rstrip()
        if is_at_rule:
            # An at-rule closed by the end of input is still valid CSS.
            nodes.append(_structured_node(text, token.source_line))
        else:
            nodes.append(
                CssNode(
                    INVALID,
                    text,
                    token.source_line,
                    error="EOF reached before {} block for a qualified rule",
                )
            )
        trailing = source[start + len(text):]
        if trailing:
            nodes.append(CssNode(WHITESPACE, trailing, token.source_line))
        break
    return nodes


def render_nodes(nodes: Iterable[CssNode]) -> str:
    return "".join(node.text for node in nodes)


def _structured_node(text: str, line: int) -> CssNode:
    parsed = tinycss2.parse_one_rule(text, skip_comments=False)
    if parsed.type == "error":
        return CssNode(INVALID, text, line, error=parsed.message)
    kind = RULE if parsed.type == "qualified-rule" else AT_RULE
    return CssNode(kind, text, line, parsed)


class _LineIndex:
    """Maps tinycss2 (line, column) positions back to string offsets."""

    def __init__(self, source: str) -> None:
        self._starts = [0] + [match.end() for match in _NEWLINE.finditer(source)]

    def offset(self, token: object) -> int:
        line = token.source_line  # type: ignore[attr-defined]
        column = token.source_column  # type: ignore[attr-defined]
        return self._starts[line - 1] + column - 1


# ----------------------------------------------------------------------
# Selector helpers


def split_selector_list(prelude: Sequence[object]) -> List[List[object]]:
    """Split a rule prelude on top-level commas."""
    selectors: List[List[object]] = [[]]
    for token in prelude:
        if getattr(token, "type", None) == "literal" and token.value == ",":  # type: ignore[attr-defined]
            selectors.append([])
            continue
        selectors[-1].append(token)
    return [selector for selector in selectors if _significant(selector)]


def attribute_values(tokens: Iterable[object], attribute: str) -> List[str]:
    """Return every ``[attribute=value]`` value found in a selector, in order.

    Only exact-match attribute selectors count. Values may be quoted with
    either quote style or written as a bare identifier. Matches nested inside
    functional pseudo-classes such as ``:is()`` are included.
    """
    wanted = attribute.lower()
    values: List[str] = []
    for token in tokens:
        token_type = getattr(token, "type", None)
        if token_type == "[] block":
            value = _attribute_match(token.content, wanted)  # type: ignore[attr-defined]
            if value is not None:
                values.append(value)
        elif token_type == "function":
            values.extend(attribute_values(token.arguments, attribute))  # type: ignore[attr-defined]
        elif token_type in {"() block", "{} block"}:
            values.extend(attribute_values(token.content, attribute))  # type: ignore[attr-defined]
    return values


def _attribute_match(content: Sequence[object], wanted: str) -> Optional[str]:
    parts = [
        token
        for token in content
        if getattr(token, "type", None) not in {"whitespace", "comment"}
    ]
    if len(parts) < 3:
        return None
    name, operator, value = parts[0], parts[1], parts[2]
    if name.type != "ident" or name.lower_value != wanted:  # type: ignore[attr-defined]
        return None
    if operator.type != "literal" or operator.value != "=":  # type: ignore[attr-defined]
        return None
    if value.type not in {"string", "ident"}:  # type: ignore[attr-defined]
        return None
    return value.value  # type: ignore[attr-defined]


def _significant(tokens: Sequence[object]) -> bool:
    return any(getattr(token, "type", None) not in {"whitespace", "comment"} for token in tokens)


# ----------------------------------------------------------------------
# Block helpers


def block_children(rule: object, *, skip_whitespace: bool = False) -> List[object]:
    """Parse the block of a rule or at-rule into child nodes."""
    content = getattr(rule, "content", None)
    if content is None:
        return []
    if getattr(rule, "type", None) == "at-rule" and rule.lower_at_keyword in GROUP_AT_RULES:  # type: ignore[attr-defined]
        return tinycss2.parse_rule_list(
            content, skip_comments=False, skip_whitespace=skip_whitespace
        )
    return tinycss2.parse_blocks_contents(
        content, skip_comments=False, skip_whitespace=skip_whitespace
    )


def has_declarations(rule: object) -> bool:
    return any(child.type == "declaration" for child in block_children(rule, skip_whitespace=True))


def walk_rules(node: object) -> Iterator[object]:
    """Yield qualified rules nested anywhere inside an at-rule block."""
    for child in block_children(node, skip_whitespace=True):
        if child.type == "qualified-rule":
            yield child
        elif child.type == "at-rule" and child.content is not None:
            yield from walk_rules(child)


__all__ = [
    "AT_RULE",
    "COMMENT",
    "CssNode",
    "GROUP_AT_RULES",
    "INVALID",
    "RULE",
    "WHITESPACE",
    "attribute_values",
    "block_children",
    "has_declarations",
    "normalize_newlines",
    "parse_nodes",
    "render_nodes",
    "split_selector_list",
    "walk_rules",
]
