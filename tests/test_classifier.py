"""Tests for crawler.classifier module."""

from __future__ import annotations

from crawlkit.crawler import Page, StandardClassifier

DIR_URL = "http://example.com/dir/"

HTML = (
    '<a href="#top">self</a>'
    '<a href="other.html">sibling</a>'
    '<a href="sub/deep.html">down</a>'
    '<a href="/">up</a>'
    '<a href="http://other.org/">away</a>'
    '<a href="http://example.com:8080/dir/x.html">other port</a>'
    '<img src="pic.gif">'
    '<script src="app.js"></script>'
    '<a href="mailto:someone@example.com">mail</a>'
    '<form action="search" method="post"></form>'
)


def classified(url: str = DIR_URL, html: str = HTML) -> tuple[Page, dict[str, set[str]]]:
    page = Page.from_html(url, html)
    StandardClassifier().classify(page)
    labels = {}
    for link in page.links:
        labels[link.url] = set(link.labels)
    return page, labels


class TestPageLabels:
    def test_directory_page_is_root(self):
        page, _ = classified()
        assert page.has_label("root")

    def test_index_page_is_root(self):
        page, _ = classified("http://example.com/dir/index.html", "<p>x")
        assert page.has_label("root")

    def test_ordinary_page_is_not_root(self):
        page, _ = classified("http://example.com/dir/page.html", "<p>x")
        assert not page.has_label("root")


class TestLinkLabels:
    def test_locality(self):
        _, labels = classified()
        assert labels["http://example.com/dir/#top"] == {"local", "same-page", "hyperlink"}
        assert labels["http://example.com/dir/other.html"] == {"local", "sibling", "hyperlink"}
        assert labels["http://example.com/dir/sub/deep.html"] == {"local", "descendent", "hyperlink"}
        assert labels["http://example.com/"] == {"local", "ancestor", "hyperlink"}

    def test_remote(self):
        _, labels = classified()
        assert labels["http://other.org/"] == {"remote", "hyperlink"}
        assert labels["http://example.com:8080/dir/x.html"] == {"remote", "hyperlink"}
        assert labels["mailto:someone@example.com"] == {"remote"}

    def test_kinds(self):
        _, labels = classified()
        assert labels["http://example.com/dir/pic.gif"] == {"local", "sibling", "image"}
        assert labels["http://example.com/dir/app.js"] == {"local", "sibling", "code"}
        assert labels["http://example.com/dir/search"] == {"local", "sibling", "form"}

    def test_base_url_counts_as_local(self):
        html = '<base href="http://mirror.example/docs/"><a href="page.html">x</a>'
        page, labels = classified("http://example.com/dir/", html)
        assert page.base_url == "http://mirror.example/docs/"
        assert "local" in labels["http://mirror.example/docs/page.html"]
