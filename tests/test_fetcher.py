"""Tests for crawler.fetcher module."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from crawlkit.crawler import (
    DEFAULT_DOWNLOAD_PARAMETERS,
    CancelToken,
    FetchCancelled,
    FetchError,
    Fetcher,
    Link,
    Page,
)
from crawlkit.crawler.fetcher import parse_http_date


def make_response(body: bytes = b"<p>hi</p>", status: int = 200, headers=None, url: str = "http://example.com/"):
    response = MagicMock()
    response.status_code = status
    response.reason = "OK" if status < 300 else "Not Found"
    response.headers = headers if headers is not None else {"Content-Type": "text/html; charset=utf-8"}
    response.url = url
    response.encoding = "utf-8"
    response.iter_content.return_value = [body]
    return response


def make_fetcher(response) -> tuple[Fetcher, MagicMock]:
    session = MagicMock()
    session.get.return_value = response
    session.post.return_value = response
    return Fetcher(session_factory=lambda: session), session


class TestOpen:
    def test_get_strips_fragment_and_sends_user_agent(self):
        fetcher, session = make_fetcher(make_response())
        response = fetcher.open(Link("http://example.com/#top"))

        args, kwargs = session.get.call_args
        assert args == ("http://example.com/",)
        assert kwargs["headers"]["User-Agent"] == "crawlkit/0.1"
        assert kwargs["stream"] is True
        assert response.status_code == 200
        assert response.text() == "<p>hi</p>"
        assert response.content_type == "text/html; charset=utf-8"

    def test_download_params_shape_headers_and_timeout(self):
        fetcher, session = make_fetcher(make_response())
        dp = (
            DEFAULT_DOWNLOAD_PARAMETERS.change_user_agent("bot/2")
            .change_use_caches(False)
            .change_accepted_mime_types("text/html")
            .change_download_timeout(7)
        )
        fetcher.open(Link("http://example.com/"), dp)

        kwargs = session.get.call_args.kwargs
        assert kwargs["headers"]["User-Agent"] == "bot/2"
        assert kwargs["headers"]["Accept"] == "text/html"
        assert kwargs["headers"]["Cache-Control"] == "no-cache"
        assert kwargs["timeout"] == 7

    def test_no_timeout_when_disabled(self):
        fetcher, session = make_fetcher(make_response())
        fetcher.open(Link("http://example.com/"), DEFAULT_DOWNLOAD_PARAMETERS.change_download_timeout(-1))
        assert session.get.call_args.kwargs["timeout"] is None

    def test_post_form_sends_query_as_body(self):
        page = Page.from_html(
            "http://example.com/",
            '<form action="/post.cgi" method="post"><input name="a" value="1">'
            '<input type="submit" name="go" value="x"></form>',
        )
        button = page.links[1]
        fetcher, session = make_fetcher(make_response())
        fetcher.open(button)

        args, kwargs = session.post.call_args
        assert args == ("http://example.com/post.cgi",)
        assert kwargs["data"] == "a=1&go=x"
        assert not session.get.called

    def test_close_closes_sessions(self):
        fetcher, session = make_fetcher(make_response())
        fetcher.open(Link("http://example.com/"))
        fetcher.close()
        session.close.assert_called_once()


class TestFailures:
    def test_http_error_status(self):
        fetcher, _ = make_fetcher(make_response(status=404))
        with pytest.raises(FetchError, match="404 Not Found"):
            fetcher.open(Link("http://example.com/"))

    def test_request_exception_is_wrapped(self):
        fetcher, session = make_fetcher(make_response())
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(FetchError, match="ConnectionError"):
            fetcher.open(Link("http://example.com/"))

    def test_body_over_size_limit(self):
        fetcher, _ = make_fetcher(make_response(body=b"x" * 2000))
        dp = DEFAULT_DOWNLOAD_PARAMETERS.change_max_page_size(1)
        with pytest.raises(FetchError, match="Page greater than 1024 bytes"):
            fetcher.open(Link("http://example.com/"), dp)

    def test_declared_length_over_limit(self):
        response = make_response(headers={"Content-Type": "text/html", "Content-Length": "5000"})
        fetcher, _ = make_fetcher(response)
        dp = DEFAULT_DOWNLOAD_PARAMETERS.change_max_page_size(1)
        with pytest.raises(FetchError, match="Page greater than"):
            fetcher.open(Link("http://example.com/"), dp)
        response.iter_content.assert_not_called()

    def test_unsupported_protocol(self):
        fetcher, session = make_fetcher(make_response())
        with pytest.raises(FetchError, match="unsupported protocol"):
            fetcher.open(Link("mailto:someone@example.com"))
        assert not session.get.called

    def test_cancelled_token(self):
        fetcher, session = make_fetcher(make_response())
        token = CancelToken()
        token.cancel()
        with pytest.raises(FetchCancelled):
            fetcher.open(Link("http://example.com/"), cancel=token)
        assert not session.get.called


class TestHelpers:
    def test_parse_http_date(self):
        assert parse_http_date("Wed, 21 Oct 2015 07:28:00 GMT") == 1445412480.0
        assert parse_http_date("not a date") is None
        assert parse_http_date(None) is None

    def test_text_falls_back_for_unknown_charset(self):
        fetcher, _ = make_fetcher(make_response(body="café".encode("utf-8")))
        response = fetcher.open(Link("http://example.com/"))
        response.encoding = "no-such-codec"
        assert response.text() == "café"
