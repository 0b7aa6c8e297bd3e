"""Tests for crawler.page module."""

from __future__ import annotations

import pytest

from conftest import FakeFetcher, page_html
from crawlkit.crawler import FetchError, Link, Page

URL = "http://example.com/"
HTML = "<p>Hello <b>big</b> world</p>"


def download(site: dict[str, str], url: str = URL, **kwargs) -> tuple[Link, Page]:
    link = Link(url)
    page = Page.download(link, None, FakeFetcher(site, **kwargs))
    return link, page


class TestFromHtml:
    def test_parses_string_content(self):
        page = Page.from_html(URL, HTML)
        assert page.is_parsed
        assert page.is_html
        assert page.url == URL
        assert page.depth == 0
        assert page.root.to_html() == HTML

    def test_substring_text_keeps_whole_words_only(self):
        page = Page.from_html(URL, HTML)
        assert page.substring_text(0, page.end) == "Hello big world"
        assert page.substring_text(0, 16) == "Hello big"
        assert page.substring_text(4, 16) == "big"

    def test_string_pages_ignore_discard(self):
        page = Page.from_html(URL, HTML)
        page.discard_content()
        assert page.content == HTML
        assert page.is_parsed

    def test_should_parse_by_content_type(self):
        assert Page("x").should_parse()
        assert Page("x", content_type="TEXT/HTML; charset=utf-8").should_parse()
        assert Page("x", content_type="content/unknown").should_parse()
        assert not Page("x", content_type="application/json").should_parse()

    def test_description_prefers_title(self):
        page = Page.from_html(URL, "<title>Home</title>")
        assert page.to_description() == "Home [http://example.com/]"
        assert Page.from_html(URL, "<p>x").to_description() == URL


class TestDownload:
    def test_attaches_parsed_page_to_link(self):
        link, page = download({URL: page_html("Index", "a.html")})
        assert link.page is page
        assert page.origin is link
        assert page.response_code == 200
        assert page.title == "Index"
        assert [child.url for child in page.get_links()] == ["http://example.com/a.html"]
        assert page.content_bytes == page.content.encode("utf-8")

    def test_fetch_failure_leaves_link_without_page(self):
        link = Link("http://example.com/missing.html")
        with pytest.raises(FetchError, match="404"):
            Page.download(link, None, FakeFetcher({}))
        assert link.page is None

    def test_non_html_is_not_parsed(self):
        _, page = download({URL: "<b>not markup</b>"}, content_type="text/plain")
        assert not page.is_parsed
        assert page.content == "<b>not markup</b>"
        assert page.get_links() == []

    def test_image_detection(self):
        _, page = download({URL: "GIF89a...."}, content_type="application/octet-stream")
        assert page.is_image


class TestDiscardContent:
    def test_discard_drops_parse_but_keeps_links(self):
        _, page = download({URL: page_html("Index", "a.html", "b.html")})
        links = page.get_links()
        assert links[0].parent is not None

        page.discard_content()

        assert page.content is None
        assert page.tokens is None
        assert page.elements is None
        assert page.root is None
        assert page.title == "Index"
        assert [link.url for link in page.get_links()] == [link.url for link in links]
        assert links[0].parent is None
        assert links[0].sibling is None

    def test_keep_content_takes_an_extra_lock(self):
        _, page = download({URL: page_html("Index")})
        page.keep_content()

        page.discard_content()
        assert page.content is not None
        assert page.is_parsed

        page.discard_content()
        assert page.content is None
