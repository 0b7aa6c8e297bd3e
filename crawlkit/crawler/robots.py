"""robots.txt exclusion with a per-site parser cache."""

from __future__ import annotations

import logging
import threading
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

from .config import DEFAULT_DOWNLOAD_PARAMETERS, DownloadParameters
from .constants import ROBOTS_TIMEOUT_SECONDS
from .element import Link
from .fetcher import FetchError, Fetcher
from .url import HTTP_SCHEMES, MalformedURLError, url_protocol


LOGGER = logging.getLogger(__name__)


class RobotExclusion:
    """Answer "may this user agent fetch that URL?" from each site's robots.txt.

    Rules are fetched once per site (scheme, host and port) and cached. A site
    whose robots.txt cannot be fetched or parsed has no rules.
    """

    def __init__(
        self,
        user_agent: str,
        fetcher: Fetcher | None = None,
        download_params: DownloadParameters | None = None,
    ) -> None:
        self.user_agent = user_agent or "*"
        self.fetcher = fetcher or Fetcher()
        base = download_params or DEFAULT_DOWNLOAD_PARAMETERS
        timeout = ROBOTS_TIMEOUT_SECONDS
        if base.has_download_timeout:
            timeout = min(timeout, base.download_timeout)
        self.download_params = base.change_download_timeout(timeout).change_max_page_size(-1)

        self._lock = threading.Lock()
        self._cache: dict[str, RobotFileParser | None] = {}

    def disallowed(self, url: str) -> bool:
        """True when the site's robots.txt forbids this user agent from `url`."""

        try:
            protocol = url_protocol(url)
            if protocol not in HTTP_SCHEMES:
                return False
            site = _site_key(url)
        except MalformedURLError:
            return False

        with self._lock:
            cached = site in self._cache
            parser = self._cache.get(site)

        if not cached:
            parser = self._load(site)
            with self._lock:
                parser = self._cache.setdefault(site, parser)

        if parser is None:
            return False
        return not parser.can_fetch(self.user_agent, url)

    def clear(self) -> None:
        """Forget every cached robots.txt."""

        with self._lock:
            self._cache.clear()

    def _load(self, site: str) -> RobotFileParser | None:
        robots_url = f"{site}/robots.txt"
        try:
            response = self.fetcher.open(Link(robots_url), self.download_params)
        except (FetchError, MalformedURLError) as exc:
            LOGGER.debug("No robots.txt for %s (%s: %s)", site, exc.__class__.__name__, exc)
            return None

        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(response.text().splitlines())
        return parser


def _site_key(url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        raise MalformedURLError(f"no host in {url}")
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


__all__ = ["RobotExclusion"]
