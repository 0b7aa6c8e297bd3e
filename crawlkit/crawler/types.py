"""Core type definitions for the crawler.

This module is intentionally dependency-light so other crawler modules can import
shared enums and records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CrawlState(str, Enum):
    """Lifecycle states of a crawler."""

    CLEARED = "cleared"
    STARTED = "started"
    PAUSED = "paused"
    STOPPED = "stopped"
    TIMED_OUT = "timed_out"


class LinkStatus(str, Enum):
    """Progress of a link through the crawler, in the order it is reached."""

    NONE = "none"
    SKIPPED = "skipped"
    ALREADY_VISITED = "already visited"
    TOO_DEEP = "too deep"
    QUEUED = "queued"
    RETRIEVING = "retrieving"
    ERROR = "error"
    DOWNLOADED = "downloaded"
    VISITED = "visited"


NETWORK_LINK_STATUSES = frozenset(
    {
        LinkStatus.RETRIEVING,
        LinkStatus.DOWNLOADED,
        LinkStatus.VISITED,
        LinkStatus.ERROR,
    }
)


class HttpMethod(str, Enum):
    """Request methods a link can resolve to."""

    GET = "GET"
    POST = "POST"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for summaries."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    links_queued: int = 0
    links_skipped: int = 0
    links_already_visited: int = 0
    links_too_deep: int = 0

    retrieving: int = 0
    downloaded: int = 0
    visited: int = 0
    errors: int = 0
    bytes_downloaded: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def merge(self, other: "CrawlStats") -> None:
        self.links_queued += other.links_queued
        self.links_skipped += other.links_skipped
        self.links_already_visited += other.links_already_visited
        self.links_too_deep += other.links_too_deep
        self.retrieving += other.retrieving
        self.downloaded += other.downloaded
        self.visited += other.visited
        self.errors += other.errors
        self.bytes_downloaded += other.bytes_downloaded

    def to_json(self) -> JSONDict:
        return {
            "links_queued": self.links_queued,
            "links_skipped": self.links_skipped,
            "links_already_visited": self.links_already_visited,
            "links_too_deep": self.links_too_deep,
            "retrieving": self.retrieving,
            "downloaded": self.downloaded,
            "visited": self.visited,
            "errors": self.errors,
            "bytes_downloaded": self.bytes_downloaded,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


__all__ = [
    "CrawlState",
    "CrawlStats",
    "HttpMethod",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "LinkStatus",
    "NETWORK_LINK_STATUSES",
    "utc_now_iso",
]
