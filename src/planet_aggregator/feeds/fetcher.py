"""Fetch contributor feeds and adapt feedparser results to our feed model."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any

import feedparser
import requests

from planet_aggregator.config import ContributorConfig
from planet_aggregator.feeds.model import (
    AtomEntry,
    AtomFeed,
    AtomLink,
    AtomPerson,
    BrokenFeed,
    Content,
    Contributor,
    Feed,
    Guid,
    HtmlContent,
    ItemContent,
    MimeContent,
    Rss2Channel,
    Rss2Item,
    StoryAll,
    StoryDescription,
    StoryTitle,
    TextContent,
    XhtmlContent,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = "PlanetAggregator/0.1.0"


def _to_datetime(parsed: Any) -> datetime | None:
    """feedparser's ``*_parsed`` values are UTC struct_time tuples."""
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]
    return root


def _content_of_detail(detail: dict[str, Any] | None) -> Content | None:
    """Map a feedparser content/detail dict to a content kind by MIME type."""
    if not detail:
        return None
    mime = detail.get("type") or "text/plain"
    value = detail.get("value", "")
    base = detail.get("base") or None
    if mime == "text/plain":
        return TextContent(value)
    if mime == "text/html":
        return HtmlContent(base, value)
    if mime == "application/xhtml+xml":
        try:
            markup = ET.fromstring(f"<div>{value}</div>")
        except ET.ParseError:
            # Not well-formed XML (named entities, usually)
            return HtmlContent(base, value)
        return XhtmlContent(base, _strip_namespaces(markup))
    return MimeContent(mime, value)


def _atom_entry(entry: dict[str, Any]) -> AtomEntry:
    links = tuple(
        AtomLink(href=link["href"], rel=link.get("rel") or "alternate")
        for link in entry.get("links", [])
        if link.get("href")
    )

    content = None
    content_list = entry.get("content") or []
    if content_list:
        content = _content_of_detail(content_list[0])

    summary = _content_of_detail(entry.get("summary_detail"))
    if isinstance(summary, MimeContent):
        summary = TextContent(summary.data)

    title = _content_of_detail(entry.get("title_detail"))
    if not isinstance(title, (TextContent, HtmlContent, XhtmlContent)):
        title = TextContent(entry.get("title", ""))

    authors = tuple(
        AtomPerson(name=a.get("name", ""), email=a.get("email"))
        for a in entry.get("authors", [])
    )

    return AtomEntry(
        title=title,
        updated=_to_datetime(entry.get("updated_parsed")),
        published=_to_datetime(entry.get("published_parsed")),
        links=links,
        content=content,
        summary=summary,
        authors=authors,
    )


def _rss2_item(entry: dict[str, Any], permalink: bool | None = None) -> Rss2Item:
    title = entry.get("title", "")
    summary = entry.get("summary_detail") or {}
    description = summary.get("value", "")
    base = summary.get("base") or None
    if title and description:
        story = StoryAll(title, base, description)
    elif description:
        story = StoryDescription(base, description)
    else:
        story = StoryTitle(title)

    content = ItemContent()
    content_list = entry.get("content") or []
    if content_list:
        content = ItemContent(content_list[0].get("base") or None, content_list[0].get("value", ""))

    guid = None
    if entry.get("id"):
        if permalink is None:
            permalink = bool(entry.get("guidislink"))
        guid = Guid(entry["id"], permalink=permalink)

    author_detail = entry.get("author_detail") or {}
    author = author_detail.get("email") or entry.get("author")

    return Rss2Item(
        story=story,
        content=content,
        link=entry.get("link") or None,
        guid=guid,
        author=author,
        pub_date=_to_datetime(entry.get("published_parsed")),
    )


def _local_name(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def guid_permalinks(content: bytes) -> list[bool | None] | None:
    """Read the ``isPermaLink`` flag of each item's guid from a raw RSS document.

    feedparser's ``guidislink`` is False whenever the item also has a
    ``<link>``, so it cannot tell a permalink guid apart from an opaque one.

    Returns:
        One flag per item in document order (None for items without a guid),
        or None if the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.debug("Could not read guid attributes: %s", e)
        return None
    flags: list[bool | None] = []
    for item in root.iter():
        if _local_name(item.tag) != "item":
            continue
        guid = next((child for child in item if _local_name(child.tag) == "guid"), None)
        if guid is None:
            flags.append(None)
        else:
            flags.append(guid.get("isPermaLink", "true").strip().lower() != "false")
    return flags


def feed_of_parsed(parsed: dict[str, Any], permalinks: list[bool | None] | None = None) -> Feed:
    """Adapt a ``feedparser.parse`` result to the feed model.

    ``permalinks`` are the per-item guid flags from ``guid_permalinks``. They
    are ignored unless there is exactly one per entry.
    """
    version = parsed.get("version") or ""
    entries = parsed.get("entries", [])
    if version.startswith("atom"):
        return AtomFeed(tuple(_atom_entry(e) for e in entries))
    if version.startswith("rss"):
        if permalinks is None or len(permalinks) != len(entries):
            permalinks = [None] * len(entries)
        return Rss2Channel(tuple(_rss2_item(e, p) for e, p in zip(entries, permalinks)))
    reason = parsed.get("bozo_exception") or "unrecognized feed format"
    return BrokenFeed(str(reason))


def fetch_feed(url: str, timeout: int = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> Feed:
    """Download and parse a feed.

    Raises:
        requests.RequestException: If the download fails.
    """
    resp = requests.get(url, headers={"User-Agent": user_agent}, timeout=timeout)
    resp.raise_for_status()

    headers = {k.lower(): v for k, v in resp.headers.items()}
    # Base URI for relative links in the document
    headers["content-location"] = resp.url or url
    parsed = feedparser.parse(
        resp.content,
        response_headers=headers,
        sanitize_html=False,
        resolve_relative_uris=False,
    )
    permalinks = None
    if (parsed.get("version") or "").startswith("rss"):
        permalinks = guid_permalinks(resp.content)
    return feed_of_parsed(parsed, permalinks)


def fetch_contributor(
    cfg: ContributorConfig,
    timeout: int = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Contributor:
    """Fetch a contributor's feed. Failures give a broken feed, never raise."""
    try:
        feed = fetch_feed(cfg.feed, timeout=timeout, user_agent=user_agent)
    except Exception as e:
        logger.warning("Failed to fetch feed %s: %s", cfg.feed, e)
        feed = BrokenFeed(str(e))
    else:
        if isinstance(feed, BrokenFeed):
            logger.warning("Feed of %s is broken: %s", cfg.name, feed.reason)
    return Contributor(name=cfg.name, url=cfg.url, feed=feed, feed_url=cfg.feed)


def fetch_contributors(
    cfgs: list[ContributorConfig],
    timeout: int = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> list[Contributor]:
    return [fetch_contributor(c, timeout=timeout, user_agent=user_agent) for c in cfgs]
