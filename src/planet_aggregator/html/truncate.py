"""Length-bounded prefixes of a Document."""

from __future__ import annotations

from planet_aggregator.html.document import Document, Element, Node, Text

ELLIPSIS = "…"

# Stripped so a truncated excerpt can sit on the same page as the full
# post without duplicating anchors.
ANCHOR_ATTRS = frozenset({"id", "name"})


def _prefix_of_nodes(doc: Document, budget: int) -> tuple[int, list[Node]]:
    prefix: list[Node] = []
    for node in doc:
        if budget <= 0:
            break
        budget, node = _prefix_of_node(node, budget)
        prefix.append(node)
    return budget, prefix


def _prefix_of_node(node: Node, budget: int) -> tuple[int, Node]:
    if isinstance(node, Text):
        remaining = budget - len(node.data)
        if remaining >= 0:
            return remaining, node
        return remaining, Text(node.data[:budget] + ELLIPSIS)
    attrs = tuple((n, v) for n, v in node.attrs if n not in ANCHOR_ATTRS)
    budget, children = _prefix_of_nodes(node.children, budget)
    return budget, Element(node.tag, attrs, tuple(children))


def truncate(doc: Document, max_chars: int) -> Document:
    """Keep the first ``max_chars`` text characters of ``doc``.

    Only text nodes count towards the length. A cut text node ends with an
    ellipsis. Elements keep their nesting; everything after the cut point
    is dropped.
    """
    _, prefix = _prefix_of_nodes(doc, max_chars)
    return tuple(prefix)
