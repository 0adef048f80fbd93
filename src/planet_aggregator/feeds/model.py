"""Structured feeds, one variant per source format.

These are what the normalizer consumes. ``planet_aggregator.feeds.fetcher``
builds them from feedparser results.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from planet_aggregator.html.document import text_content
from planet_aggregator.html.sanitizer import markup_to_text, parse_html


# Atom content kinds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class HtmlContent:
    base: str | None
    html: str


@dataclass(frozen=True)
class XhtmlContent:
    """XHTML content. ``markup`` is the container ``<div>`` element."""

    base: str | None
    markup: ET.Element


@dataclass(frozen=True)
class MimeContent:
    mime: str
    data: str


@dataclass(frozen=True)
class SrcContent:
    src: str
    mime: str | None = None


Content = Union[TextContent, HtmlContent, XhtmlContent, MimeContent, SrcContent]
TextConstruct = Union[TextContent, HtmlContent, XhtmlContent]


def text_of_construct(construct: TextConstruct) -> str:
    """Flatten an Atom text construct (e.g. a title) to a plain string."""
    if isinstance(construct, TextContent):
        return construct.text
    if isinstance(construct, HtmlContent):
        return text_content(parse_html(construct.html))
    return text_content(parse_html(markup_to_text(construct.markup)))


# Atom
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AtomLink:
    href: str
    rel: str = "alternate"


@dataclass(frozen=True)
class AtomPerson:
    name: str
    email: str | None = None


@dataclass(frozen=True)
class AtomEntry:
    title: TextConstruct
    updated: datetime | None
    published: datetime | None = None
    links: tuple[AtomLink, ...] = ()
    content: Content | None = None
    summary: TextConstruct | None = None
    authors: tuple[AtomPerson, ...] = ()


@dataclass(frozen=True)
class AtomFeed:
    entries: tuple[AtomEntry, ...] = ()


# RSS 2.0
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoryAll:
    title: str
    base: str | None
    description: str


@dataclass(frozen=True)
class StoryTitle:
    title: str


@dataclass(frozen=True)
class StoryDescription:
    base: str | None
    description: str


Story = Union[StoryAll, StoryTitle, StoryDescription]


@dataclass(frozen=True)
class Guid:
    value: str
    permalink: bool = True


@dataclass(frozen=True)
class ItemContent:
    """``content:encoded``; an empty value means the item has none."""

    base: str | None = None
    value: str = ""


@dataclass(frozen=True)
class Rss2Item:
    story: Story
    content: ItemContent = ItemContent()
    link: str | None = None
    guid: Guid | None = None
    author: str | None = None
    pub_date: datetime | None = None


@dataclass(frozen=True)
class Rss2Channel:
    items: tuple[Rss2Item, ...] = ()


# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BrokenFeed:
    reason: str


Feed = Union[AtomFeed, Rss2Channel, BrokenFeed]


@dataclass(frozen=True)
class Contributor:
    name: str
    url: str
    feed: Feed
    feed_url: str = ""
