"""Document model for parsed HTML fragments."""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Union

# Nesting deeper than this is flattened to text when a tree is built
# from parsed markup. Every traversal in this package recurses.
MAX_DEPTH = 200

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})


@dataclass(frozen=True)
class Text:
    """A run of character data (already entity-decoded)."""

    data: str


@dataclass(frozen=True)
class Element:
    """An element node. Attribute names are not guaranteed unique."""

    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple["Node", ...] = field(default_factory=tuple)

    def get(self, name: str) -> str | None:
        """Return the first value of attribute ``name``, if any."""
        for key, value in self.attrs:
            if key == name:
                return value
        return None


Node = Union[Element, Text]

# A fragment: an ordered sequence of top-level nodes.
Document = tuple[Node, ...]


def text_length(doc: Document) -> int:
    """Number of characters in all text nodes of ``doc``."""
    total = 0
    for node in doc:
        if isinstance(node, Text):
            total += len(node.data)
        else:
            total += text_length(node.children)
    return total


def text_content(doc: Document) -> str:
    """Concatenate the text nodes of ``doc`` depth-first."""
    parts: list[str] = []
    for node in doc:
        if isinstance(node, Text):
            parts.append(node.data)
        else:
            parts.append(text_content(node.children))
    return "".join(parts)


def _attrs_to_string(attrs: tuple[tuple[str, str], ...]) -> str:
    return "".join(f' {name}="{html.escape(value, quote=True)}"' for name, value in attrs)


def to_string(doc: Document) -> str:
    """Serialize ``doc`` back to HTML markup."""
    parts: list[str] = []
    for node in doc:
        if isinstance(node, Text):
            parts.append(html.escape(node.data, quote=False))
        elif node.tag in VOID_ELEMENTS and not node.children:
            parts.append(f"<{node.tag}{_attrs_to_string(node.attrs)}>")
        else:
            parts.append(
                f"<{node.tag}{_attrs_to_string(node.attrs)}>"
                f"{to_string(node.children)}</{node.tag}>"
            )
    return "".join(parts)
