"""Build output feed entries from posts."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from planet_aggregator.html.document import to_string
from planet_aggregator.html.truncate import truncate
from planet_aggregator.posts import Post


@dataclass(frozen=True)
class Person:
    name: str
    uri: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class Link:
    href: str
    rel: str = "alternate"


@dataclass(frozen=True)
class OutputEntry:
    """An Atom entry. ``content`` and ``summary`` are HTML strings."""

    id: str
    title: str
    updated: datetime
    content: str
    authors: tuple[Person, ...]
    contributors: tuple[Person, ...]
    links: tuple[Link, ...] = ()
    summary: str | None = None
    title_type: str = "text"
    content_type: str = "html"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def entry_id(post: Post) -> str:
    """The post link, or a stable hash of the title when there is none."""
    if post.link:
        return post.link
    return hashlib.md5(post.title.encode("utf-8"), usedforsecurity=False).hexdigest()


def build_entry(
    post: Post,
    now: Callable[[], datetime] = utcnow,
    excerpt_length: int | None = None,
) -> OutputEntry:
    """Project a post onto an Atom entry.

    Args:
        post: The post to convert.
        now: Clock used when the post has no date (Atom requires one).
        excerpt_length: If set, also fill ``summary`` with the description
            truncated to this many characters.
    """
    summary = None
    if excerpt_length is not None:
        summary = to_string(truncate(post.description, excerpt_length))

    return OutputEntry(
        id=entry_id(post),
        title=post.title,
        updated=post.date if post.date is not None else now(),
        content=to_string(post.description),
        authors=(Person(name=post.author, email=post.email),),
        contributors=(Person(name=post.contributor.name, uri=post.contributor.url or None),),
        links=(Link(post.link),) if post.link else (),
        summary=summary,
    )


def build_entries(
    posts: list[Post],
    now: Callable[[], datetime] = utcnow,
    excerpt_length: int | None = None,
) -> list[OutputEntry]:
    return [build_entry(p, now=now, excerpt_length=excerpt_length) for p in posts]
