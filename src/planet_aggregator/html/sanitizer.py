"""Turn untrusted post content into a clean Document.

Content is parsed leniently with BeautifulSoup's ``html.parser`` builder,
which does not enforce HTML 4 content models. Blogspot, for one, puts
``<font>`` inside ``<pre>`` and we want to keep that rather than reject it.
"""

from __future__ import annotations

import html
import logging
import xml.etree.ElementTree as ET
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction, Tag

from planet_aggregator.html.document import MAX_DEPTH, Document, Element, Node, Text

logger = logging.getLogger(__name__)

# Things that posts should not contain
UNDESIRED_TAGS = frozenset({"style", "script"})
UNDESIRED_ATTRS = frozenset({"id"})

# Attribute holding the link to resolve, per element
_LINK_ATTRS = {"a": "href", "img": "src"}

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def _node_of_soup(el, depth: int) -> Node | None:
    if isinstance(el, Tag):
        if depth >= MAX_DEPTH:
            return Text(el.get_text())
        attrs = tuple((name, str(value)) for name, value in el.attrs.items())
        children = []
        for child in el.children:
            node = _node_of_soup(child, depth + 1)
            if node is not None:
                children.append(node)
        return Element(el.name, attrs, tuple(children))
    if isinstance(el, _SKIPPED_STRINGS):
        return None
    return Text(str(el))


def parse_html(text: str) -> Document:
    """Parse ``text`` into a Document, decoding character references.

    Never raises: if the markup cannot be parsed at all, the whole string
    becomes a single text node (and is escaped on serialization).
    """
    try:
        soup = BeautifulSoup(text, "html.parser", multi_valued_attributes=None)
        nodes = (_node_of_soup(child, 0) for child in soup.children)
        return tuple(node for node in nodes if node is not None)
    except Exception as e:
        logger.debug("Could not parse markup, keeping it as text: %s", e)
        return (Text(text),)


def _resolve_url(base: str, value: str) -> str:
    try:
        return urljoin(base, value.strip())
    except ValueError:
        # e.g. a malformed IPv6 host; leave the link alone
        return value


def resolve_links(doc: Document, base: str | None) -> Document:
    """Resolve ``<a href>`` and ``<img src>`` against ``base``."""
    if not base:
        return doc
    return tuple(_resolve_links_el(node, base) for node in doc)


def _resolve_links_el(node: Node, base: str) -> Node:
    if isinstance(node, Text):
        return node
    link_attr = _LINK_ATTRS.get(node.tag)
    attrs = node.attrs
    if link_attr is not None and node.get(link_attr) is not None:
        attrs = tuple(
            (name, _resolve_url(base, value) if name == link_attr else value)
            for name, value in attrs
        )
    return Element(node.tag, attrs, resolve_links(node.children, base))


def remove_undesired(doc: Document) -> Document:
    """Drop denylisted elements (with their subtree) and attributes."""
    result = []
    for node in doc:
        if isinstance(node, Text):
            result.append(node)
        elif node.tag not in UNDESIRED_TAGS:
            attrs = tuple((n, v) for n, v in node.attrs if n not in UNDESIRED_ATTRS)
            result.append(Element(node.tag, attrs, remove_undesired(node.children)))
    return tuple(result)


def html_of_text(text: str, base: str | None = None) -> Document:
    """Parse, resolve links against ``base`` and strip undesired content."""
    return remove_undesired(resolve_links(parse_html(text), base))


def _local_name(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def markup_to_text(markup: ET.Element) -> str:
    """Serialize the children of ``markup`` to a markup string.

    Walks the tree with an explicit stack. Elements nested deeper than
    ``MAX_DEPTH`` lose their tags and contribute only their text.
    """
    parts = [html.escape(markup.text or "", quote=False)]
    stack = [(child, 1, False) for child in reversed(markup)]
    while stack:
        el, depth, closing = stack.pop()
        keep_tag = depth < MAX_DEPTH and isinstance(el.tag, str)
        if closing:
            if keep_tag and (len(el) or el.text):
                parts.append(f"</{_local_name(el.tag)}>")
            parts.append(html.escape(el.tail or "", quote=False))
            continue
        if keep_tag:
            attrs = "".join(
                f' {_local_name(name)}="{html.escape(value, quote=True)}"'
                for name, value in el.attrib.items()
            )
            empty = not len(el) and not el.text
            parts.append(f"<{_local_name(el.tag)}{attrs}{' /' if empty else ''}>")
        parts.append(html.escape(el.text or "", quote=False))
        stack.append((el, depth, True))
        stack.extend((child, depth + 1, False) for child in reversed(el))
    return "".join(parts)


def html_of_markup(markup: ET.Element, base: str | None = None) -> Document:
    """Sanitize the children of an XHTML container element.

    XML content is not trusted to be sensible HTML, so it is written back
    to a string and parsed again as HTML.
    """
    return html_of_text(markup_to_text(markup), base)


def sanitize(raw: str | ET.Element, base: str | None = None) -> Document:
    """Sanitize raw text or an XHTML container element."""
    if isinstance(raw, ET.Element):
        return html_of_markup(raw, base)
    return html_of_text(raw, base)
