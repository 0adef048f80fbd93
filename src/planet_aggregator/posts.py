"""Normalize feed entries into posts and aggregate them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from planet_aggregator.feeds.model import (
    AtomEntry,
    AtomFeed,
    BrokenFeed,
    Content,
    Contributor,
    HtmlContent,
    Rss2Channel,
    Rss2Item,
    StoryAll,
    StoryTitle,
    TextContent,
    XhtmlContent,
    text_of_construct,
)
from planet_aggregator.html.document import Document
from planet_aggregator.html.sanitizer import html_of_markup, html_of_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Post:
    """Our representation of a post, whatever feed it came from."""

    title: str
    link: str | None
    date: datetime | None
    contributor: Contributor
    author: str
    email: str
    description: Document


def _html_of_content(content: Content | None) -> Document | None:
    """Sanitize Atom content, or None if there is nothing usable."""
    if isinstance(content, TextContent):
        return html_of_text(content.text)
    if isinstance(content, HtmlContent):
        return html_of_text(content.html, content.base)
    if isinstance(content, XhtmlContent):
        return html_of_markup(content.markup, content.base)
    # MimeContent and SrcContent are not inlined
    return None


def post_of_atom(contributor: Contributor, entry: AtomEntry) -> Post:
    link = next((ln.href for ln in entry.links if ln.rel == "alternate"), None)
    if link is None and entry.links:
        link = entry.links[0].href

    date = entry.published if entry.published is not None else entry.updated

    desc = _html_of_content(entry.content)
    if desc is None:
        desc = _html_of_content(entry.summary)
    if desc is None:
        desc = ()

    author = entry.authors[0].name if entry.authors else ""
    return Post(
        title=text_of_construct(entry.title),
        link=link,
        date=date,
        contributor=contributor,
        author=author,
        email="",
        description=desc,
    )


def _html_of_item(item: Rss2Item, base: str | None, description: str) -> Document:
    # content:encoded, when present, carries the full post
    if item.content.value:
        return html_of_text(item.content.value, item.content.base)
    return html_of_text(description, base)


def post_of_rss2(contributor: Contributor, item: Rss2Item) -> Post:
    story = item.story
    if isinstance(story, StoryAll):
        title, desc = story.title, _html_of_item(item, story.base, story.description)
    elif isinstance(story, StoryTitle):
        title, desc = story.title, ()
    else:
        title, desc = "", _html_of_item(item, story.base, story.description)

    guid = item.guid
    if guid is not None and guid.permalink:
        link = guid.value
    elif item.link:
        link = item.link
    elif guid is not None:
        # Some feeds set isPermaLink="false" yet give no other URL.
        link = guid.value
    else:
        link = None

    return Post(
        title=title,
        link=link,
        date=item.pub_date,
        contributor=contributor,
        author=contributor.name,
        email=item.author or "",
        description=desc,
    )


def posts_of_contributor(contributor: Contributor) -> list[Post]:
    """Normalize every entry of a contributor's feed. Broken feeds give none."""
    feed = contributor.feed
    if isinstance(feed, AtomFeed):
        return [post_of_atom(contributor, e) for e in feed.entries]
    if isinstance(feed, Rss2Channel):
        return [post_of_rss2(contributor, it) for it in feed.items]
    if isinstance(feed, BrokenFeed):
        logger.debug("Skipping broken feed of %s: %s", contributor.name, feed.reason)
    return []


def sort_posts(posts: list[Post]) -> list[Post]:
    """Most recent first, undated posts last in their original order."""
    dated = [p for p in posts if p.date is not None]
    undated = [p for p in posts if p.date is None]
    dated.sort(key=lambda p: p.date, reverse=True)
    return dated + undated


def get_posts(
    contributors: list[Contributor],
    limit: int | None = None,
    offset: int = 0,
) -> list[Post]:
    """Aggregate the posts of all contributors, newest first.

    Args:
        contributors: Contributors with their already-fetched feeds.
        limit: Maximum number of posts to return. None keeps all.
        offset: Number of leading posts to skip. Non-positive is a no-op.

    Returns:
        The requested page of posts.
    """
    posts: list[Post] = []
    for contributor in contributors:
        posts.extend(posts_of_contributor(contributor))
    logger.info("Aggregated %d posts from %d contributors", len(posts), len(contributors))

    posts = sort_posts(posts)
    posts = posts[max(offset, 0):]
    if limit is not None:
        posts = posts[:max(limit, 0)]
    return posts
