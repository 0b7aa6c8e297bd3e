"""Multi-threaded crawl scheduler.

A `Crawler` owns two priority queues of links. The fetch queue holds links
waiting for a worker thread to download them; the crawl queue holds every link
that has been submitted but not yet processed or evicted, so its length is the
number of pages left. One reentrant lock guards the queues together with the
visited set and counters. Workers wait on the fetch-ready condition; the
thread inside `run()` waits on the crawl-changed condition.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from .classifier import Classifier, StandardClassifier
from .config import DEFAULT_DOWNLOAD_PARAMETERS, CrawlConfig, DownloadParameters
from .constants import (
    DEFAULT_CRAWLER_NAME,
    DEFAULT_DEPTH_FIRST,
    DEFAULT_IGNORE_VISITED_LINKS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SYNCHRONOUS,
    WORKER_JOIN_TIMEOUT_SECONDS,
)
from .element import Link
from .events import CrawlEvent, CrawlListener, LinkEvent, LinkListener
from .fetcher import CancelToken, FetchError, Fetcher
from .page import Page
from .parsers.html_parser import HTMLParser
from .priority_queue import PriorityQueue
from .robots import RobotExclusion
from .types import CrawlState, LinkStatus

if TYPE_CHECKING:
    from .predicates import Action, LinkPredicate, PagePredicate


LOGGER = logging.getLogger(__name__)

WEB: tuple[str, ...] | None = None
SERVER: tuple[str, ...] | None = ("local",)
SUBTREE: tuple[str, ...] | None = ("sibling", "descendent")

HYPERLINKS: tuple[str, ...] | None = ("hyperlink",)
HYPERLINKS_AND_IMAGES: tuple[str, ...] | None = ("hyperlink", "image")
ALL_LINKS: tuple[str, ...] | None = None

DOMAIN_PRESETS: dict[str, tuple[str, ...] | None] = {
    "web": WEB,
    "server": SERVER,
    "subtree": SUBTREE,
}

LINK_TYPE_PRESETS: dict[str, tuple[str, ...] | None] = {
    "hyperlinks": HYPERLINKS,
    "hyperlinks_and_images": HYPERLINKS_AND_IMAGES,
    "all_links": ALL_LINKS,
}

_POLL_SECONDS = 0.5
# States in which a crawl has ended and no worker will pick up new links.
_ENDED_STATES = frozenset({CrawlState.STOPPED, CrawlState.TIMED_OUT})


class _Worm:
    """Bookkeeping for one worker thread."""

    __slots__ = ("index", "thread", "link", "dead", "cancel")

    def __init__(self, index: int) -> None:
        self.index = index
        self.thread: threading.Thread | None = None
        self.link: Link | None = None
        self.dead = False
        self.cancel = CancelToken()

    def die(self) -> None:
        self.dead = True
        self.cancel.cancel()


def _as_labels(
    value: str | Sequence[str] | None,
    presets: dict[str, tuple[str, ...] | None],
    key: str,
) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized not in presets:
            raise ValueError(f"{key} must be one of {sorted(presets)}, got {value!r}")
        return presets[normalized]
    return tuple(value)


class Crawler:
    """Crawl the web from a set of roots.

    Subclass and override `visit()` and `should_visit()`, or plug in
    predicates and an action. `run()` blocks until the crawl leaves the
    STARTED state; another thread or a listener may pause it.
    """

    def __init__(
        self,
        name: str = DEFAULT_CRAWLER_NAME,
        *,
        fetcher: Fetcher | None = None,
        parser: HTMLParser | None = None,
    ) -> None:
        self._name = name
        self.fetcher = fetcher or Fetcher()
        self.parser = parser or HTMLParser()
        self._robot_exclusion: RobotExclusion | None = None

        self._roots: list[Link] = []
        self._crawled_roots: list[Link] = []
        self._domain: tuple[str, ...] | None = WEB
        self._link_type: tuple[str, ...] | None = HYPERLINKS
        self.max_depth = DEFAULT_MAX_DEPTH
        self.depth_first = DEFAULT_DEPTH_FIRST
        self.synchronous = DEFAULT_SYNCHRONOUS
        self.ignore_visited_links = DEFAULT_IGNORE_VISITED_LINKS
        self.download_params: DownloadParameters = DEFAULT_DOWNLOAD_PARAMETERS

        self._link_predicate: LinkPredicate | None = None
        self._page_predicate: PagePredicate | None = None
        self._action: Action | None = None
        self._classifiers: list[Classifier] = []
        self._crawl_listeners: list[CrawlListener] = []
        self._link_listeners: list[LinkListener] = []

        self._lock = threading.RLock()
        self._fetch_ready = threading.Condition(self._lock)
        self._crawl_changed = threading.Condition(self._lock)
        self._fetch_queue: PriorityQueue[Link] = PriorityQueue()
        self._crawl_queue: PriorityQueue[Link] = PriorityQueue()
        self._visited: set[str] = set()
        self._worms: list[_Worm] = []

        self._state = CrawlState.CLEARED
        self.pages_visited = 0
        self.links_tested = 0

        self.add_classifier(StandardClassifier())

    @classmethod
    def from_config(
        cls,
        config: CrawlConfig,
        *,
        fetcher: Fetcher | None = None,
        parser: HTMLParser | None = None,
    ) -> "Crawler":
        """Build a crawler whose settings mirror a `CrawlConfig`."""

        crawler = cls(config.name, fetcher=fetcher, parser=parser)
        crawler.set_roots([Link(url) for url in config.roots])
        crawler.domain = config.domain
        crawler.link_type = config.link_type
        crawler.max_depth = config.max_depth
        crawler.depth_first = config.depth_first
        crawler.synchronous = config.synchronous
        crawler.ignore_visited_links = config.ignore_visited_links
        crawler.download_params = config.download
        return crawler

    # Configuration

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value
        self._robot_exclusion = None

    @property
    def robot_exclusion(self) -> RobotExclusion:
        with self._lock:
            if self._robot_exclusion is None:
                user_agent = self.download_params.user_agent or self._name
                self._robot_exclusion = RobotExclusion(user_agent, self.fetcher, self.download_params)
            return self._robot_exclusion

    @robot_exclusion.setter
    def robot_exclusion(self, value: RobotExclusion | None) -> None:
        self._robot_exclusion = value

    @property
    def domain(self) -> tuple[str, ...] | None:
        """Labels a link must carry one of to be followed; None means any domain."""

        return self._domain

    @domain.setter
    def domain(self, value: str | Sequence[str] | None) -> None:
        self._domain = _as_labels(value, DOMAIN_PRESETS, "domain")

    @property
    def link_type(self) -> tuple[str, ...] | None:
        """Labels a link must carry one of to be followed; None means any kind."""

        return self._link_type

    @link_type.setter
    def link_type(self, value: str | Sequence[str] | None) -> None:
        self._link_type = _as_labels(value, LINK_TYPE_PRESETS, "link_type")

    @property
    def roots(self) -> list[Link]:
        return list(self._roots)

    def set_root(self, root: Link | str) -> None:
        self._roots = [_as_link(root)]

    def set_roots(self, roots: Iterable[Link | str]) -> None:
        self._roots = [_as_link(root) for root in roots]

    def add_root(self, root: Link | str) -> None:
        self._roots.append(_as_link(root))

    def remove_all_roots(self) -> None:
        self._roots = []

    @property
    def root_hrefs(self) -> str:
        """Root URLs separated by spaces."""

        return " ".join(root.url for root in self._roots)

    @root_hrefs.setter
    def root_hrefs(self, hrefs: str) -> None:
        self._roots = [Link(href) for href in hrefs.split()]

    @property
    def crawled_roots(self) -> list[Link]:
        return list(self._crawled_roots)

    @property
    def link_predicate(self) -> "LinkPredicate | None":
        return self._link_predicate

    @link_predicate.setter
    def link_predicate(self, predicate: "LinkPredicate | None") -> None:
        self._link_predicate = self._swap_hooks(self._link_predicate, predicate)

    @property
    def page_predicate(self) -> "PagePredicate | None":
        return self._page_predicate

    @page_predicate.setter
    def page_predicate(self, predicate: "PagePredicate | None") -> None:
        self._page_predicate = self._swap_hooks(self._page_predicate, predicate)

    @property
    def action(self) -> "Action | None":
        return self._action

    @action.setter
    def action(self, action: "Action | None") -> None:
        self._action = self._swap_hooks(self._action, action)

    def _swap_hooks(self, old: Any, new: Any) -> Any:
        if old is new:
            return new
        if old is not None:
            old.disconnected(self)
        if new is not None:
            new.connected(self)
        return new

    @property
    def classifiers(self) -> list[Classifier]:
        return list(self._classifiers)

    def add_classifier(self, classifier: Classifier) -> None:
        """Insert a classifier, keeping the list ordered by ascending priority."""

        if classifier in self._classifiers:
            return
        for index, existing in enumerate(self._classifiers):
            if existing.priority > classifier.priority:
                self._classifiers.insert(index, classifier)
                return
        self._classifiers.append(classifier)

    def remove_classifier(self, classifier: Classifier) -> None:
        if classifier in self._classifiers:
            self._classifiers.remove(classifier)

    def add_crawl_listener(self, listener: CrawlListener) -> None:
        if listener not in self._crawl_listeners:
            self._crawl_listeners.append(listener)

    def remove_crawl_listener(self, listener: CrawlListener) -> None:
        if listener in self._crawl_listeners:
            self._crawl_listeners.remove(listener)

    def add_link_listener(self, listener: LinkListener) -> None:
        if listener not in self._link_listeners:
            self._link_listeners.append(listener)

    def remove_link_listener(self, listener: LinkListener) -> None:
        if listener in self._link_listeners:
            self._link_listeners.remove(listener)

    # Counters and state

    @property
    def state(self) -> CrawlState:
        return self._state

    @property
    def pages_left(self) -> int:
        """Links submitted but not yet processed or evicted."""

        with self._lock:
            return len(self._crawl_queue)

    @property
    def active_threads(self) -> int:
        """Workers currently downloading a link."""

        with self._lock:
            return sum(1 for worm in self._worms if worm.link is not None and not worm.dead)

    def queued_links(self) -> list[Link]:
        """Links waiting to be visited, lowest priority first."""

        with self._lock:
            return sorted(self._crawl_queue.elements(), key=lambda link: link.priority)

    # Hooks

    def visit(self, page: Page) -> None:
        """Called for every page that passes the page predicate."""

    def should_visit(self, link: Link) -> bool:
        """Called for every link that passes the filters; True to follow it."""

        return True

    # Visited set

    def visited(self, link: Link) -> bool:
        with self._lock:
            return link.page_url in self._visited

    def mark_visited(self, link: Link) -> None:
        with self._lock:
            self._visited.add(link.page_url)

    def clear_visited(self) -> None:
        with self._lock:
            self._visited.clear()

    # Crawl control

    def run(self) -> None:
        """Start or resume the crawl and block until it leaves the STARTED state.

        A stopped crawler is cleared first. A cleared crawler is seeded from its
        roots; a paused one resumes with the links it already had queued.
        """

        if self._state == CrawlState.STOPPED:
            self.clear()
        self._crawled_roots = list(self._roots)

        if self._state == CrawlState.CLEARED and self._crawled_roots:
            increment = 1.0 / len(self._crawled_roots)
            for index, root in enumerate(self._crawled_roots):
                root.priority = index * increment
                self.submit(root)

        with self._lock:
            self._state = CrawlState.STARTED
        LOGGER.info("%s started (%d pages left)", self._name, self.pages_left)
        self._send_crawl_event(CrawlState.STARTED)

        crawl_timer = None
        if self.download_params.has_crawl_timeout:
            crawl_timer = threading.Timer(self.download_params.crawl_timeout, self.timed_out)
            crawl_timer.daemon = True
            crawl_timer.start()

        with self._lock:
            count = max(self.download_params.max_threads, 1)
            self._worms = [self._start_worm(index) for index in range(count)]

        finished = False
        try:
            finished = self._coordinate()
        finally:
            if crawl_timer is not None:
                crawl_timer.cancel()
            self._retire_worms()

        if finished:
            LOGGER.info("%s finished after %d pages", self._name, self.pages_visited)
            self._send_crawl_event(CrawlState.STOPPED)

    def _coordinate(self) -> bool:
        """Wait for the crawl to drain; returns True if it ran out of links."""

        while True:
            with self._lock:
                if self._state != CrawlState.STARTED:
                    return False
                if not self._crawl_queue:
                    self._state = CrawlState.STOPPED
                    return True

                link = None
                if self.synchronous:
                    head = self._crawl_queue.get_min()
                    if head is not None and head.status == LinkStatus.DOWNLOADED:
                        link = head
                if link is None:
                    self._crawl_changed.wait(_POLL_SECONDS)
                    continue

            try:
                self.process(link)
            except Exception as exc:
                self._evict(link, exc)

    def _retire_worms(self) -> None:
        with self._lock:
            worms = self._worms
            self._worms = []
            paused = self._state == CrawlState.PAUSED
            for worm in worms:
                worm.die()
                if worm.link is None:
                    continue
                if paused:
                    self._fetch_queue.put(worm.link)
                else:
                    self._crawl_queue.delete(worm.link)
            self._fetch_ready.notify_all()

        current = threading.current_thread()
        for worm in worms:
            if worm.thread is not None and worm.thread is not current:
                worm.thread.join(timeout=WORKER_JOIN_TIMEOUT_SECONDS)
        LOGGER.debug("%s retired %d workers", self._name, len(worms))

    def pause(self) -> None:
        """Pause a running crawl; `run()` returns and a later `run()` resumes."""

        with self._lock:
            if self._state != CrawlState.STARTED:
                return
            self._state = CrawlState.PAUSED
            self._crawl_changed.notify_all()
        LOGGER.info("%s paused", self._name)
        self._send_crawl_event(CrawlState.PAUSED)

    def stop(self) -> None:
        """Stop a running or paused crawl and empty both queues."""

        with self._lock:
            if self._state not in (CrawlState.STARTED, CrawlState.PAUSED):
                return
            self._state = CrawlState.STOPPED
            self._fetch_queue.clear()
            self._crawl_queue.clear()
            self._crawl_changed.notify_all()
            self._fetch_ready.notify_all()
        LOGGER.info("%s stopped", self._name)
        self._send_crawl_event(CrawlState.STOPPED)

    def timed_out(self) -> None:
        """End a running crawl because the crawl timeout expired."""

        with self._lock:
            if self._state != CrawlState.STARTED:
                return
            self._state = CrawlState.TIMED_OUT
            self._fetch_queue.clear()
            self._crawl_queue.clear()
            self._crawl_changed.notify_all()
            self._fetch_ready.notify_all()
        LOGGER.info("%s timed out", self._name)
        self._send_crawl_event(CrawlState.TIMED_OUT)

    def clear(self) -> None:
        """Stop the crawl and forget its progress so the next `run()` starts over."""

        self.stop()
        with self._lock:
            self.pages_visited = 0
            self.links_tested = 0
            self._visited.clear()
            self._fetch_queue.clear()
            self._crawl_queue.clear()
            roots = self._crawled_roots
            self._crawled_roots = []
            self._state = CrawlState.CLEARED
        for root in roots:
            root.disconnect()
        LOGGER.info("%s cleared", self._name)
        self._send_crawl_event(CrawlState.CLEARED)

    # Scheduling

    def submit(self, link: Link) -> None:
        """Queue a link for crawling and mark its page as visited."""

        self._submit(link, claim=False)

    def _submit(self, link: Link, *, claim: bool) -> bool:
        with self._lock:
            if self._state in _ENDED_STATES:
                LOGGER.debug("%s ended, not queueing %s", self._name, link.url)
                return False
            key = link.page_url
            if claim and key in self._visited:
                claimed = False
            else:
                self._visited.add(key)
                claimed = True

        if not claimed:
            self._send_link_event(link, LinkStatus.ALREADY_VISITED)
            return False

        self._send_link_event(link, LinkStatus.QUEUED)
        with self._lock:
            if self._state in _ENDED_STATES:
                return False
            self._crawl_queue.put(link)
            self._fetch_queue.put(link)
            self._fetch_ready.notify_all()
        return True

    def expand(self, page: Page) -> None:
        """Test each link on a page and submit the ones the crawl should follow."""

        links = page.links or []
        if not links:
            return

        with self._lock:
            visited_so_far = self.pages_visited
        priority = float(-visited_so_far if self.depth_first else visited_so_far)
        increment = 1.0 / len(links)

        for link in links:
            link.priority = priority
            priority += increment
            link.download_params = self.download_params
            with self._lock:
                self.links_tested += 1

            if self.ignore_visited_links and self.visited(link):
                self._send_link_event(link, LinkStatus.ALREADY_VISITED)
            elif not self._passes_filters(link):
                self._send_link_event(link, LinkStatus.SKIPPED)
            elif link.depth >= self.max_depth:
                self._send_link_event(link, LinkStatus.TOO_DEEP)
            else:
                self._submit(link, claim=self.ignore_visited_links)

    def _passes_filters(self, link: Link) -> bool:
        if self._link_type is not None and not link.has_any_labels(self._link_type):
            return False
        if self._domain is not None and not link.has_any_labels(self._domain):
            return False
        if self._link_predicate is not None and not self._link_predicate.should_visit(link):
            return False
        return self.should_visit(link)

    def process(self, link: Link) -> None:
        """Classify, visit and expand a downloaded link's page, then retire the link."""

        page = link.page
        if page is None:
            raise ValueError(f"no page downloaded for {link.url}")

        for classifier in list(self._classifiers):
            classifier.classify(page)

        with self._lock:
            self.pages_visited += 1
        if self._page_predicate is None or self._page_predicate.should_act_on(page):
            if self._action is not None:
                self._action.visit(page)
            self.visit(page)

        self.expand(page)
        self._send_link_event(link, LinkStatus.VISITED)

        with self._lock:
            self._crawl_queue.delete(link)
            self._crawl_changed.notify_all()

    # Workers

    def _start_worm(self, index: int) -> _Worm:
        worm = _Worm(index)
        worm.thread = threading.Thread(
            target=self._fetch,
            args=(worm,),
            name=f"{self._name}-worker-{index}",
            daemon=True,
        )
        worm.thread.start()
        return worm

    def _fetch(self, worm: _Worm) -> None:
        LOGGER.debug("Worker %d started", worm.index)
        while True:
            with self._lock:
                link = None
                while not worm.dead:
                    link = self._fetch_queue.delete_min()
                    if link is not None:
                        break
                    self._fetch_ready.wait(_POLL_SECONDS)
                if worm.dead or link is None:
                    LOGGER.debug("Worker %d exiting", worm.index)
                    return
                worm.link = link

            try:
                self._download(worm, link)

                with self._lock:
                    if worm.dead:
                        return
                    worm.link = None
                self._send_link_event(link, LinkStatus.DOWNLOADED)

                if self.synchronous:
                    with self._lock:
                        self._crawl_changed.notify_all()
                else:
                    self.process(link)
            except Exception as exc:
                with self._lock:
                    if worm.dead and worm.link is link:
                        return
                    worm.link = None
                self._evict(link, exc)

    def _download(self, worm: _Worm, link: Link) -> None:
        dp = link.download_params or self.download_params
        self._send_link_event(link, LinkStatus.RETRIEVING)

        timer = None
        if dp.has_download_timeout:
            timer = threading.Timer(
                dp.download_timeout,
                self._fetch_timed_out,
                args=(worm, link, dp.download_timeout),
            )
            timer.daemon = True
            timer.start()
        try:
            if dp.obey_robot_exclusion and self.robot_exclusion.disallowed(link.url):
                raise FetchError("disallowed by robots.txt")
            Page.download(link, dp, self.fetcher, parser=self.parser, cancel=worm.cancel)
        finally:
            if timer is not None:
                timer.cancel()

    def _fetch_timed_out(self, worm: _Worm, link: Link, timeout: float) -> None:
        with self._lock:
            if worm.dead or worm.link is not link:
                return
            worm.die()
            if worm.index < len(self._worms) and self._worms[worm.index] is worm:
                self._worms[worm.index] = self._start_worm(worm.index)

        self._evict(link, FetchError(f"Timeout after {timeout:g} seconds"))
        if worm.thread is not None:
            worm.thread.join(timeout=WORKER_JOIN_TIMEOUT_SECONDS)

    def _evict(self, link: Link, exc: BaseException) -> None:
        LOGGER.warning("Evicting %s (%s: %s)", link.url, exc.__class__.__name__, exc)
        self._send_link_event(link, LinkStatus.ERROR, exc)
        with self._lock:
            self._crawl_queue.delete(link)
            self._crawl_changed.notify_all()

    # Events

    def _send_crawl_event(self, state: CrawlState) -> None:
        event = CrawlEvent(self, state)
        for listener in list(self._crawl_listeners):
            listener.dispatch(event)

    def _send_link_event(
        self,
        link: Link,
        status: LinkStatus,
        exception: BaseException | None = None,
    ) -> None:
        link.status = status
        if exception is not None:
            link.set_label("exception", str(exception))
        event = LinkEvent(self, status, link, exception)
        for listener in list(self._link_listeners):
            listener.crawled(event)

    def __str__(self) -> str:
        return self._name


def _as_link(root: Link | str) -> Link:
    return root if isinstance(root, Link) else Link(root)


__all__ = [
    "ALL_LINKS",
    "Crawler",
    "DOMAIN_PRESETS",
    "HYPERLINKS",
    "HYPERLINKS_AND_IMAGES",
    "LINK_TYPE_PRESETS",
    "SERVER",
    "SUBTREE",
    "WEB",
]
