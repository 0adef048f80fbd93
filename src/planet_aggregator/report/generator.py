"""Render aggregated entries as an Atom document."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from planet_aggregator.report.entries import OutputEntry, utcnow

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def rfc3339(date: datetime) -> str:
    """Format a timestamp for Atom: '2026-02-26T07:30:00Z'."""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_feed(
    entries: list[OutputEntry],
    title: str,
    url: str = "",
    feed_id: str | None = None,
    updated: datetime | None = None,
) -> str:
    """Render the Atom document for ``entries``.

    Args:
        entries: Entries in output order.
        title: Feed title.
        url: Home page of the planet, used as the alternate link.
        feed_id: Atom feed id. Defaults to ``url``.
        updated: Feed timestamp. Defaults to the newest entry, or now.

    Returns:
        The rendered XML as a string.
    """
    if updated is None:
        updated = max((e.updated for e in entries), default=None) or utcnow()

    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["rfc3339"] = rfc3339

    template = env.get_template("planet.atom.j2")

    return template.render(
        title=title,
        url=url,
        feed_id=feed_id or url,
        updated=updated,
        entries=entries,
    )


def write_feed(rendered: str, output_path: Path | str) -> Path:
    """Write a rendered feed to ``output_path``, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered, encoding="utf-8")
    logger.info("Feed written to %s", output_path)
    return output_path
