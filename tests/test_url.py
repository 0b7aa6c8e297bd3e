"""Tests for crawler.url module."""

from __future__ import annotations

import pytest

from crawlkit.crawler.url import (
    MalformedURLError,
    directory_url,
    effective_port,
    page_url,
    parent_url,
    resolve_url,
    same_server,
    service_url,
    split_path,
    url_directory,
    url_file,
    url_filename,
    url_host,
    url_port,
    url_query,
    url_ref,
)


class TestResolve:
    def test_relative_against_base(self):
        assert resolve_url("http://example.com/a/b.html", "../c.html") == "http://example.com/c.html"
        assert resolve_url("http://example.com/a/b.html", "#frag") == "http://example.com/a/b.html#frag"
        assert resolve_url("http://example.com/a/", "  d.html ") == "http://example.com/a/d.html"

    def test_absolute_without_base(self):
        assert resolve_url(None, "https://example.com/x") == "https://example.com/x"
        assert resolve_url(None, "mailto:someone@example.com") == "mailto:someone@example.com"

    @pytest.mark.parametrize(
        "href",
        [
            "",
            "relative.html",
            "javascript:void(0)",
            "http://",
            "http://example.com:port/",
        ],
    )
    def test_malformed(self, href):
        with pytest.raises(MalformedURLError):
            resolve_url(None, href)

    def test_malformed_is_a_value_error(self):
        assert issubclass(MalformedURLError, ValueError)


class TestParts:
    URL = "http://Example.com:8080/a/b.html?x=1#top"

    def test_components(self):
        assert url_host(self.URL) == "example.com"
        assert url_port(self.URL) == 8080
        assert url_file(self.URL) == "/a/b.html?x=1"
        assert url_directory(self.URL) == "/a/"
        assert url_filename(self.URL) == "b.html"
        assert url_query(self.URL) == "x=1"
        assert url_ref(self.URL) == "top"

    def test_missing_components(self):
        url = "http://example.com"
        assert url_port(url) == -1
        assert effective_port(url) == 80
        assert effective_port("https://example.com/") == 443
        assert url_query(url) is None
        assert url_ref(url) is None
        assert split_path(url) == ("/", "")

    def test_derived_urls(self):
        assert page_url(self.URL) == "http://Example.com:8080/a/b.html?x=1"
        assert service_url(self.URL) == "http://Example.com:8080/a/b.html"
        assert directory_url(self.URL) == "http://Example.com:8080/a/"

    def test_parent_url(self):
        assert parent_url("http://example.com/a/b/c.html") == "http://example.com/a/b/"
        assert parent_url("http://example.com/a/b/") == "http://example.com/a/"
        assert parent_url("http://example.com/a/") == "http://example.com/"
        assert parent_url("http://example.com/") == "http://example.com/"

    def test_same_server(self):
        assert same_server("http://example.com/", "http://EXAMPLE.com:80/x")
        assert not same_server("http://example.com/", "https://example.com/")
        assert not same_server("http://example.com/", "http://example.org/")
