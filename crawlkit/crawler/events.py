"""Crawl and link events, listener interfaces, and a logging event monitor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .types import NETWORK_LINK_STATUSES, CrawlState, LinkStatus

if TYPE_CHECKING:
    from .element import Link


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CrawlEvent:
    """A crawler changed state."""

    crawler: Any
    state: CrawlState

    @property
    def name(self) -> str:
        return self.state.value

    def __str__(self) -> str:
        return f"{getattr(self.crawler, 'name', 'crawler')}: {self.name}"


@dataclass(frozen=True, slots=True)
class LinkEvent:
    """A link reached a new status; ERROR events carry the cause."""

    crawler: Any
    status: LinkStatus
    link: "Link"
    exception: BaseException | None = None

    @property
    def name(self) -> str:
        return self.status.value

    def __str__(self) -> str:
        if self.status == LinkStatus.ERROR and self.exception is not None:
            cause = str(self.exception) or self.exception.__class__.__name__
        else:
            cause = self.name
        return f"{cause}: {self.link.to_description()}"


class CrawlListener:
    """Receives crawler state changes. Override the hooks of interest."""

    def started(self, event: CrawlEvent) -> None:
        pass

    def stopped(self, event: CrawlEvent) -> None:
        pass

    def cleared(self, event: CrawlEvent) -> None:
        pass

    def timed_out(self, event: CrawlEvent) -> None:
        pass

    def paused(self, event: CrawlEvent) -> None:
        pass

    def dispatch(self, event: CrawlEvent) -> None:
        """Route an event to the hook for its state."""

        handler = {
            CrawlState.STARTED: self.started,
            CrawlState.STOPPED: self.stopped,
            CrawlState.CLEARED: self.cleared,
            CrawlState.TIMED_OUT: self.timed_out,
            CrawlState.PAUSED: self.paused,
        }[event.state]
        handler(event)


class LinkListener:
    """Receives every link status change."""

    def crawled(self, event: LinkEvent) -> None:
        pass


class EventLog(CrawlListener, LinkListener):
    """Report crawl and link events through `logging`.

    By default only network events (retrieving, downloaded, visited, error)
    are reported; `only_network_events=False` reports every link status.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        only_network_events: bool = True,
        level: int = logging.INFO,
    ) -> None:
        self.logger = logger or LOGGER
        self.only_network_events = only_network_events
        self.level = level

    def started(self, event: CrawlEvent) -> None:
        self.logger.log(self.level, "%s started", _crawler_name(event))

    def stopped(self, event: CrawlEvent) -> None:
        self.logger.log(self.level, "%s finished", _crawler_name(event))

    def cleared(self, event: CrawlEvent) -> None:
        self.logger.log(self.level, "%s cleared", _crawler_name(event))

    def timed_out(self, event: CrawlEvent) -> None:
        self.logger.log(self.level, "%s timed out", _crawler_name(event))

    def paused(self, event: CrawlEvent) -> None:
        self.logger.log(self.level, "%s paused", _crawler_name(event))

    def crawled(self, event: LinkEvent) -> None:
        if self.only_network_events and event.status not in NETWORK_LINK_STATUSES:
            return
        if event.status == LinkStatus.ERROR:
            self.logger.warning("%s", event)
            return
        self.logger.log(self.level, "%s", event)


def _crawler_name(event: CrawlEvent) -> str:
    return getattr(event.crawler, "name", "crawler")


__all__ = [
    "CrawlEvent",
    "CrawlListener",
    "EventLog",
    "LinkEvent",
    "LinkListener",
]
