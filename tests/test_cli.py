"""Tests for the command line interface."""

from datetime import datetime, timezone
from unittest.mock import patch

from typer.testing import CliRunner

from planet_aggregator.cli import app
from planet_aggregator.feeds.model import BrokenFeed, Contributor, Rss2Channel, Rss2Item, StoryAll

runner = CliRunner()

_CONFIG = """
planet:
  title: Test Planet
  url: http://planet.example.com/
  excerpt_length: 3
contributors:
  - name: Alice
    url: http://alice.example.com/
    feed: http://alice.example.com/rss
  - name: Bob
    feed: http://bob.example.com/rss
"""


def _contributors():
    items = (
        Rss2Item(story=StoryAll("Older", None, "<p>old</p>"), link="http://alice.example.com/1",
                 pub_date=datetime(2020, 1, 1, tzinfo=timezone.utc)),
        Rss2Item(story=StoryAll("Newer", None, "<p>new</p>"), link="http://alice.example.com/2",
                 pub_date=datetime(2021, 1, 1, tzinfo=timezone.utc)),
    )
    return [
        Contributor(name="Alice", url="http://alice.example.com/", feed=Rss2Channel(items)),
        Contributor(name="Bob", url="", feed=BrokenFeed("404")),
    ]


def _config(tmp_path):
    path = tmp_path / "planet.yaml"
    path.write_text(_CONFIG)
    return path


class TestPostsCommand:
    def test_lists_newest_first(self, tmp_path):
        with patch("planet_aggregator.cli.fetch_contributors", return_value=_contributors()):
            result = runner.invoke(app, ["posts", "--config", str(_config(tmp_path))])

        assert result.exit_code == 0
        assert result.output.index("Newer") < result.output.index("Older")

    def test_limit(self, tmp_path):
        with patch("planet_aggregator.cli.fetch_contributors", return_value=_contributors()):
            result = runner.invoke(app, ["posts", "--config", str(_config(tmp_path)), "--limit", "1"])

        assert "Newer" in result.output
        assert "Older" not in result.output


class TestAggregateCommand:
    def test_writes_feed(self, tmp_path):
        out = tmp_path / "out" / "planet.atom"
        with patch("planet_aggregator.cli.fetch_contributors", return_value=_contributors()):
            result = runner.invoke(app, [
                "aggregate", "--config", str(_config(tmp_path)), "--output", str(out), "--offset", "1",
            ])

        assert result.exit_code == 0
        rendered = out.read_text(encoding="utf-8")
        assert "<title>Test Planet</title>" in rendered
        assert "Older" in rendered
        assert "Newer" not in rendered
        assert "&lt;p&gt;old&lt;/p&gt;" in rendered

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["aggregate", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1


class TestCheckCommand:
    def test_reports_broken_feeds(self, tmp_path):
        with patch("planet_aggregator.cli.fetch_contributors", return_value=_contributors()):
            result = runner.invoke(app, ["check", "--config", str(_config(tmp_path))])

        assert result.exit_code == 1
        assert "Alice: OK" in result.output
        assert "Bob: broken (404)" in result.output

    def test_all_ok(self, tmp_path):
        with patch("planet_aggregator.cli.fetch_contributors", return_value=_contributors()[:1]):
            result = runner.invoke(app, ["check", "--config", str(_config(tmp_path))])

        assert result.exit_code == 0
