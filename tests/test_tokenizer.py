"""Tests for crawler.parsers.tokenizer module."""

from __future__ import annotations

from crawlkit.crawler import Page, Tag, Text
from crawlkit.crawler.parsers import HTMLTokenizer, tokenize


def tokens_of(html: str, **kwargs) -> list:
    result = tokenize(html, **kwargs)
    assert result is not None
    return result


def words_of(html: str) -> list[str]:
    return [token.text for token in tokens_of(html) if isinstance(token, Text)]


class TestTokens:
    def test_tags_and_words_with_offsets(self):
        html = "<p>Hello world</p>"
        tokens = tokens_of(html)

        assert [type(token) for token in tokens] == [Tag, Text, Text, Tag]
        start, hello, world, end = tokens
        assert start.name == "p" and start.is_start_tag
        assert end.name == "p" and end.is_end_tag
        assert (start.start, start.end) == (0, 3)
        assert html[hello.start : hello.end] == "Hello"
        assert html[world.start : world.end] == "world"
        assert (end.start, end.end) == (14, 18)

    def test_tag_names_are_case_folded(self):
        tag = tokens_of("<DiV CLASS=x></DIV>")[0]
        assert tag.name == "div"
        assert tag.get_html_attribute("class") == "x"

    def test_words_split_on_tags_without_whitespace(self):
        assert words_of("one<b>two</b>three") == ["one", "two", "three"]

    def test_lone_less_than_is_a_word(self):
        assert words_of("a < b") == ["a", "<", "b"]

    def test_comment_becomes_a_bang_tag(self):
        html = "x<!-- a > b -->y"
        tokens = tokens_of(html)
        comment = tokens[1]
        assert isinstance(comment, Tag)
        assert comment.name == "!"
        assert html[comment.start : comment.end] == "<!-- a > b -->"
        assert [t.text for t in tokens if isinstance(t, Text)] == ["x", "y"]

    def test_directive_becomes_a_bang_tag(self):
        tokens = tokens_of("<!DOCTYPE html><p>")
        assert tokens[0].name == "!"
        assert tokens[1].name == "p"

    def test_end_tag_with_trailing_junk(self):
        tag = tokens_of("</a junk>")[0]
        assert tag.is_end_tag
        assert tag.name == "a"

    def test_nameless_end_tag_is_dropped(self):
        tokens = tokens_of("<p>a</>b</p>")
        tags = [token for token in tokens if isinstance(token, Tag)]
        assert [(tag.name, tag.is_end_tag) for tag in tags] == [("p", False), ("p", True)]
        assert words_of("<p>a</>b</p>") == ["a", "b"]


class TestAttributes:
    def test_quoted_unquoted_and_valueless(self):
        tag = tokens_of("<input type=checkbox name='n' value=\"v 1\" checked>")[0]
        assert tag.attributes == ["type", "name", "value", "checked"]
        assert tag.get_html_attribute("type") == "checkbox"
        assert tag.get_html_attribute("name") == "n"
        assert tag.get_html_attribute("value") == "v 1"
        assert tag.get_html_attribute("checked") == "true"

    def test_self_closing_slash_is_ignored(self):
        tag = tokens_of('<img src="x.gif"/>')[0]
        assert tag.name == "img"
        assert tag.get_html_attribute("src") == "x.gif"
        assert tag.end == len('<img src="x.gif"/>')

    def test_entities_decoded_in_attribute_values(self):
        tag = tokens_of('<a href="q?a=1&amp;b=2&#33;">')[0]
        assert tag.get_html_attribute("href") == "q?a=1&b=2!"


class TestEntities:
    def test_named_and_numeric_entities(self):
        assert words_of("caf&eacute; &lt;b&gt; &#65;&#x42;") == ["café", "<b>", "AB"]

    def test_unknown_entity_is_kept_verbatim(self):
        assert words_of("&bogus; &") == ["&bogus;", "&"]

    def test_entity_without_semicolon(self):
        assert words_of("a&amp b") == ["a&", "b"]

    def test_letters_after_entity_name_extend_it(self):
        assert words_of("a&ampb") == ["a&ampb"]

    def test_pending_entity_at_end_of_input_is_flushed(self):
        assert words_of("fish&amp") == ["fish&"]
        assert words_of("x&#66") == ["xB"]


class TestNonHtml:
    def test_plain_text_beyond_prefix_is_rejected(self):
        page = Page("word " * 50, content_type="text/plain")
        assert HTMLTokenizer(valid_html_prefix=100).tokenize(page) is None
        assert page.tokens is None

    def test_early_tag_marks_content_as_html(self):
        page = Page("<b>bold</b> " + "word " * 50)
        assert HTMLTokenizer(valid_html_prefix=100).tokenize(page) is not None
        assert len(page.words) == 51

    def test_declared_html_is_never_rejected(self):
        page = Page("word " * 50, content_type="text/html; charset=utf-8")
        assert HTMLTokenizer(valid_html_prefix=100).tokenize(page) is not None

    def test_tokenize_stores_words_and_tags_on_page(self):
        page = Page("<p>a b</p>")
        HTMLTokenizer().tokenize(page)
        assert [w.text for w in page.words] == ["a", "b"]
        assert [t.name for t in page.tags] == ["p", "p"]
        assert len(page.tokens) == 4
