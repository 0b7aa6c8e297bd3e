"""Thread-safe crawl statistics gathered from crawler events."""

from __future__ import annotations

import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from .events import CrawlEvent, CrawlListener, LinkEvent, LinkListener
from .types import CrawlStats, LinkStatus, utc_now_iso


class StatsCollector(CrawlListener, LinkListener):
    """Collect and summarize crawl statistics.

    Register the collector as both a crawl listener and a link listener. Link
    events arrive from worker threads, so every update takes the lock.
    """

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()

        self._status_counts: dict[str, int] = defaultdict(int)
        self._error_type_counts: dict[str, int] = defaultdict(int)
        self._content_type_counts: dict[str, int] = defaultdict(int)
        self._state_changes: list[tuple[str, str]] = []

    def started(self, event: CrawlEvent) -> None:
        with self._lock:
            if self._core.finished_at is not None:
                self._core.finished_at = None
            self._state_changes.append((event.name, utc_now_iso()))

    def stopped(self, event: CrawlEvent) -> None:
        with self._lock:
            self._core.finish()
            self._state_changes.append((event.name, utc_now_iso()))

    def timed_out(self, event: CrawlEvent) -> None:
        self.stopped(event)

    def paused(self, event: CrawlEvent) -> None:
        with self._lock:
            self._state_changes.append((event.name, utc_now_iso()))

    def cleared(self, event: CrawlEvent) -> None:
        with self._lock:
            self._state_changes.append((event.name, utc_now_iso()))

    def crawled(self, event: LinkEvent) -> None:
        """Record one link status change."""

        status = event.status
        with self._lock:
            self._status_counts[status.value] += 1

            if status == LinkStatus.QUEUED:
                self._core.links_queued += 1
            elif status == LinkStatus.SKIPPED:
                self._core.links_skipped += 1
            elif status == LinkStatus.ALREADY_VISITED:
                self._core.links_already_visited += 1
            elif status == LinkStatus.TOO_DEEP:
                self._core.links_too_deep += 1
            elif status == LinkStatus.RETRIEVING:
                self._core.retrieving += 1
            elif status == LinkStatus.VISITED:
                self._core.visited += 1
            elif status == LinkStatus.ERROR:
                self._core.errors += 1
                err_type = event.exception.__class__.__name__ if event.exception else "Unknown"
                self._error_type_counts[err_type] += 1
            elif status == LinkStatus.DOWNLOADED:
                self._core.downloaded += 1
                page = event.link.page
                if page is not None:
                    if page.content_bytes is not None:
                        self._core.bytes_downloaded += len(page.content_bytes)
                    kind = (page.content_type or "unknown").split(";", 1)[0].strip().lower()
                    self._content_type_counts[kind or "unknown"] += 1

    def snapshot(self) -> CrawlStats:
        """Return a copy of the core `CrawlStats` record."""

        with self._lock:
            copy = CrawlStats(started_at=self._core.started_at, finished_at=self._core.finished_at)
            copy.merge(self._core)
            return copy

    def finish(self) -> None:
        with self._lock:
            self._core.finish()

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        with self._lock:
            core = self._core.to_json()

            start = _parse_iso_utc(self._core.started_at)
            end = (
                _parse_iso_utc(self._core.finished_at)
                if self._core.finished_at
                else datetime.now(timezone.utc)
            )
            duration_seconds = max(0.0, (end - start).total_seconds())

            return {
                **core,
                "duration_seconds": duration_seconds,
                "throughput": {
                    "downloaded_per_second": (
                        self._core.downloaded / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                    "visited_per_second": (
                        self._core.visited / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                },
                "status_counts": dict(self._status_counts),
                "error_type_counts": dict(self._error_type_counts),
                "content_type_counts": dict(self._content_type_counts),
                "state_changes": [
                    {"state": state, "at": at} for state, at in self._state_changes
                ],
            }


def _parse_iso_utc(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["StatsCollector"]
