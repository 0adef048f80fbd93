"""Tests for document truncation."""

import pytest

from planet_aggregator.html.document import Element, Text, text_content, text_length
from planet_aggregator.html.sanitizer import html_of_text
from planet_aggregator.html.truncate import ELLIPSIS, truncate


DOC = (
    Element("p", (("id", "first"), ("class", "c")), (Text("Hello "), Element("b", (), (Text("world"),)))),
    Element("p", (), (Text("Second"),)),
)


class TestTruncate:
    def test_cuts_inside_nested_text(self):
        assert truncate(DOC, 8) == (
            Element("p", (("class", "c"),), (Text("Hello "), Element("b", (), (Text("wo" + ELLIPSIS),)))),
        )

    def test_exact_budget_drops_later_siblings(self):
        assert truncate(DOC, 11) == (
            Element("p", (("class", "c"),), (Text("Hello "), Element("b", (), (Text("world"),)))),
        )

    def test_large_budget_keeps_everything(self):
        result = truncate(DOC, 100)
        assert text_content(result) == "Hello worldSecond"
        assert len(result) == 2

    def test_zero_budget_is_empty(self):
        assert truncate(DOC, 0) == ()

    def test_negative_budget_is_empty(self):
        assert truncate(DOC, -5) == ()

    def test_strips_id_and_name(self):
        doc = (Element("a", (("name", "x"), ("href", "h"), ("id", "y")), (Text("link"),)),)
        assert truncate(doc, 10) == (Element("a", (("href", "h"),), (Text("link"),)),)

    def test_empty_elements_survive_before_cut(self):
        doc = (Element("div", (), (Element("img", (("src", "a.png"),)), Text("abc"))),)
        assert truncate(doc, 2) == (
            Element("div", (), (Element("img", (("src", "a.png"),)), Text("ab" + ELLIPSIS))),
        )

    def test_top_level_text(self):
        assert truncate((Text("abcdef"), Text("gh")), 3) == (Text("abc" + ELLIPSIS),)

    @pytest.mark.parametrize("n", [0, 1, 5, 6, 7, 11, 12, 16, 17, 50])
    def test_length_bound_and_prefix(self, n):
        full = text_content(DOC)
        result = truncate(DOC, n)
        assert text_length(result) <= n + 1
        assert text_content(result).removesuffix(ELLIPSIS) == full[:n]
        if n >= len(full):
            assert text_length(result) == len(full)

    def test_sanitized_post(self):
        doc = html_of_text("<h1>Title</h1><p>Body of the <em>post</em>.</p>")
        assert text_content(truncate(doc, 9)) == "TitleBody" + ELLIPSIS
        assert text_content(truncate(doc, 17)) == "TitleBody of the "
