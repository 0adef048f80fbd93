"""CLI entry point using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import typer

from planet_aggregator.config import get_project_root, load_config, load_contributors
from planet_aggregator.feeds.fetcher import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, fetch_contributors
from planet_aggregator.feeds.model import BrokenFeed, Contributor

app = typer.Typer(
    name="planet-aggregator",
    help="Aggregate contributor blogs into a single planet feed.",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load(config_path: Optional[Path]) -> tuple[dict[str, Any], list[Contributor]]:
    """Load the config and fetch every contributor's feed."""
    try:
        cfg = load_config(config_path)
        contributor_cfgs = load_contributors(cfg)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    fetch_cfg = cfg.get("fetch", {})
    typer.echo(f"Fetching {len(contributor_cfgs)} feeds...", err=True)
    contributors = fetch_contributors(
        contributor_cfgs,
        timeout=fetch_cfg.get("timeout", DEFAULT_TIMEOUT),
        user_agent=fetch_cfg.get("user_agent", DEFAULT_USER_AGENT),
    )
    return cfg, contributors


def _page(cfg: dict, limit: Optional[int], offset: Optional[int]) -> tuple[Optional[int], int]:
    """Pagination from the command line, falling back to the config."""
    planet_cfg = cfg.get("planet", {})
    if limit is None:
        limit = planet_cfg.get("limit")
    if offset is None:
        offset = planet_cfg.get("offset", 0)
    return limit, offset


@app.command()
def aggregate(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of entries."),
    offset: Optional[int] = typer.Option(None, "--offset", help="Number of newest entries to skip."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Where to write the Atom feed. Defaults to planet.output, else stdout.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Fetch all contributors and write the aggregated Atom feed."""
    _setup_logging(verbose)

    cfg, contributors = _load(config_path)
    limit, offset = _page(cfg, limit, offset)
    planet_cfg = cfg.get("planet", {})

    from planet_aggregator.posts import get_posts
    from planet_aggregator.report.entries import build_entries
    from planet_aggregator.report.generator import render_feed, write_feed

    posts = get_posts(contributors, limit=limit, offset=offset)
    entries = build_entries(posts, excerpt_length=planet_cfg.get("excerpt_length"))
    rendered = render_feed(
        entries,
        title=planet_cfg.get("title", "Planet"),
        url=planet_cfg.get("url", ""),
        feed_id=planet_cfg.get("id"),
    )

    output = output or planet_cfg.get("output")
    if output:
        output = Path(output)
        if not output.is_absolute():
            output = get_project_root() / output
        write_feed(rendered, output)
        typer.echo(f"{len(entries)} entries written to {output}", err=True)
    else:
        typer.echo(rendered)


@app.command()
def posts(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of posts."),
    offset: Optional[int] = typer.Option(None, "--offset", help="Number of newest posts to skip."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """List the aggregated posts, newest first."""
    _setup_logging(verbose)

    cfg, contributors = _load(config_path)
    limit, offset = _page(cfg, limit, offset)

    from planet_aggregator.posts import get_posts

    for post in get_posts(contributors, limit=limit, offset=offset):
        date = post.date.strftime("%Y-%m-%d") if post.date else "----------"
        typer.echo(f"{date}  {post.contributor.name}: {post.title}")


@app.command()
def check(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Report which contributor feeds cannot be fetched or parsed."""
    _setup_logging(verbose)

    _, contributors = _load(config_path)

    broken = 0
    for c in contributors:
        if isinstance(c.feed, BrokenFeed):
            broken += 1
            typer.echo(f"  {c.name}: broken ({c.feed.reason})")
        else:
            typer.echo(f"  {c.name}: OK")

    if broken:
        typer.echo(f"\n{broken} of {len(contributors)} feeds are broken.", err=True)
        raise typer.Exit(1)
    typer.echo(f"\nAll {len(contributors)} feeds OK.")
