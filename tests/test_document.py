"""Tests for the document model."""

from planet_aggregator.html.document import Element, Text, text_content, text_length, to_string


DOC = (
    Element("p", (("class", "intro"),), (Text("Hello "), Element("b", (), (Text("world"),)))),
    Text(" & more"),
)


class TestTextLength:
    def test_counts_only_text(self):
        assert text_length(DOC) == len("Hello world & more")

    def test_empty(self):
        assert text_length(()) == 0

    def test_element_without_text(self):
        assert text_length((Element("img", (("src", "a.png"),)),)) == 0

    def test_counts_characters_not_bytes(self):
        assert text_length((Text("héllo…"),)) == 6


class TestTextContent:
    def test_depth_first_order(self):
        assert text_content(DOC) == "Hello world & more"


class TestToString:
    def test_serializes_nesting_and_attributes(self):
        assert to_string(DOC) == '<p class="intro">Hello <b>world</b></p> &amp; more'

    def test_escapes_attribute_values(self):
        doc = (Element("a", (("title", 'say "hi" <now>'),), (Text("x"),)),)
        assert to_string(doc) == '<a title="say &quot;hi&quot; &lt;now&gt;">x</a>'

    def test_void_elements_have_no_closing_tag(self):
        doc = (Text("a"), Element("br"), Element("img", (("src", "i.png"),)))
        assert to_string(doc) == 'a<br><img src="i.png">'

    def test_empty_non_void_element_is_closed(self):
        assert to_string((Element("span"),)) == "<span></span>"

    def test_duplicate_attributes_kept(self):
        doc = (Element("a", (("rel", "a"), ("rel", "b"))),)
        assert to_string(doc) == '<a rel="a" rel="b"></a>'

    def test_element_get_returns_first_value(self):
        el = Element("a", (("rel", "a"), ("rel", "b")))
        assert el.get("rel") == "a"
        assert el.get("href") is None
