"""Shared fixtures: an in-memory site served by a fake fetcher."""

from __future__ import annotations

import threading
from typing import Iterable

import pytest

from crawlkit.crawler import FetchCancelled, FetchError, FetchResponse
from crawlkit.crawler.events import CrawlListener, LinkListener


class FakeFetcher:
    """Serves HTML from a dict keyed by page URL.

    URLs listed in `hang` block until their cancel token fires, then raise
    `FetchCancelled`, which is how a stalled download looks to the crawler.
    """

    def __init__(
        self,
        site: dict[str, str],
        *,
        hang: Iterable[str] = (),
        content_type: str = "text/html; charset=utf-8",
    ) -> None:
        self.site = dict(site)
        self.hang = set(hang)
        self.content_type = content_type
        self.requested: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def open(self, link, download_params=None, *, cancel=None) -> FetchResponse:
        url = link.page_url
        with self._lock:
            self.requested.append(url)

        if url in self.hang:
            if cancel is None or not cancel.wait(10.0):
                raise FetchError(f"hung fetch of {url} was never cancelled")
            raise FetchCancelled(f"download of {url} cancelled")

        if url not in self.site:
            raise FetchError("404 Not Found")

        return FetchResponse(
            requested_url=url,
            url=url,
            status_code=200,
            reason="OK",
            body=self.site[url].encode("utf-8"),
            headers={"Content-Type": self.content_type},
            content_type=self.content_type,
            encoding="utf-8",
        )

    def close(self) -> None:
        self.closed = True


class RecordingListener(CrawlListener, LinkListener):
    """Keeps every crawl and link event it receives."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.crawl_events = []
        self.link_events = []

    def dispatch(self, event) -> None:
        with self._lock:
            self.crawl_events.append(event)
        super().dispatch(event)

    def crawled(self, event) -> None:
        with self._lock:
            self.link_events.append(event)

    def urls_with(self, status) -> list[str]:
        with self._lock:
            return [event.link.url for event in self.link_events if event.status == status]

    def states(self) -> list:
        with self._lock:
            return [event.state for event in self.crawl_events]


def page_html(title: str, *hrefs: str) -> str:
    anchors = "".join(f'<li><a href="{href}">{href}</a>' for href in hrefs)
    return f"<html><head><title>{title}</title></head><body><ul>{anchors}</ul></body></html>"


@pytest.fixture
def small_site() -> dict[str, str]:
    """index -> a, b; a -> b, c; b -> index; c -> d; d is a leaf."""

    return {
        "http://example.com/": page_html("Index", "a.html", "b.html"),
        "http://example.com/a.html": page_html("A", "b.html", "c.html"),
        "http://example.com/b.html": page_html("B", "/"),
        "http://example.com/c.html": page_html("C", "d.html"),
        "http://example.com/d.html": page_html("D"),
    }


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()
