"""Periodic re-crawling on a background thread."""

from __future__ import annotations

import logging
import threading

from .scheduler import Crawler
from .types import CrawlState


LOGGER = logging.getLogger(__name__)


class Chronicle:
    """Run a crawler again every `interval` seconds.

    Each tick stops the current crawl if it is still going, then the crawl
    thread starts the next run from the roots.
    """

    def __init__(self, crawler: Crawler, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.crawler = crawler
        self.interval = interval
        self.runs = 0

        self._cond = threading.Condition()
        self._running = False
        self._triggered = False
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticker: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
            self._triggered = False
            self._stopped.clear()

        name = self.crawler.name
        self._thread = threading.Thread(target=self._loop, name=f"{name}-chronicle", daemon=True)
        self._ticker = threading.Thread(target=self._tick, name=f"{name}-chronicle-timer", daemon=True)
        self._thread.start()
        self._ticker.start()

    def stop(self) -> None:
        """Stop the current crawl and end the schedule."""

        with self._cond:
            if not self._running:
                return
            self._running = False
            self._stopped.set()
            self._cond.notify_all()
        self.crawler.stop()

    def join(self, timeout: float | None = None) -> None:
        for thread in (self._thread, self._ticker):
            if thread is not None:
                thread.join(timeout)

    def _tick(self) -> None:
        while not self._stopped.wait(self.interval):
            self.crawler.stop()
            with self._cond:
                self._triggered = True
                self._cond.notify_all()

    def _loop(self) -> None:
        while True:
            with self._cond:
                if not self._running:
                    return
            if self.crawler.state == CrawlState.TIMED_OUT:
                self.crawler.clear()

            LOGGER.info("%s: chronicle run %d", self.crawler.name, self.runs + 1)
            self.crawler.run()
            self.runs += 1

            with self._cond:
                self._cond.wait_for(lambda: self._triggered or not self._running)
                self._triggered = False


__all__ = ["Chronicle"]
