"""Tests for crawler.robots module."""

from __future__ import annotations

from conftest import FakeFetcher
from crawlkit.crawler import DEFAULT_DOWNLOAD_PARAMETERS, RobotExclusion

ROBOTS = "http://example.com/robots.txt"


def exclusion(robots_txt: str | None, user_agent: str = "crawlkit") -> tuple[RobotExclusion, FakeFetcher]:
    site = {} if robots_txt is None else {ROBOTS: robots_txt}
    fetcher = FakeFetcher(site, content_type="text/plain")
    return RobotExclusion(user_agent, fetcher), fetcher


class TestDisallowed:
    def test_disallowed_path(self):
        robots, _ = exclusion("User-agent: *\nDisallow: /private/\n")
        assert robots.disallowed("http://example.com/private/page.html")
        assert not robots.disallowed("http://example.com/public.html")

    def test_rules_for_named_agent(self):
        text = "User-agent: badbot\nDisallow: /\n"
        bad, _ = exclusion(text, user_agent="badbot")
        good, _ = exclusion(text, user_agent="goodbot")
        assert bad.disallowed("http://example.com/page.html")
        assert not good.disallowed("http://example.com/page.html")

    def test_missing_robots_allows_everything(self):
        robots, fetcher = exclusion(None)
        assert not robots.disallowed("http://example.com/private/page.html")
        assert fetcher.requested == [ROBOTS]

    def test_non_http_urls_are_never_disallowed(self):
        robots, fetcher = exclusion("User-agent: *\nDisallow: /\n")
        assert not robots.disallowed("ftp://example.com/file.txt")
        assert not robots.disallowed("mailto:someone@example.com")
        assert fetcher.requested == []


class TestCache:
    def test_robots_fetched_once_per_site(self):
        robots, fetcher = exclusion("User-agent: *\nDisallow: /private/\n")
        robots.disallowed("http://example.com/a.html")
        robots.disallowed("http://example.com/private/b.html")
        robots.disallowed("http://EXAMPLE.com/c.html")
        assert fetcher.requested == [ROBOTS]

    def test_other_port_is_another_site(self):
        robots, fetcher = exclusion(None)
        robots.disallowed("http://example.com/a.html")
        robots.disallowed("http://example.com:8080/a.html")
        assert fetcher.requested == [ROBOTS, "http://example.com:8080/robots.txt"]

    def test_clear_forgets_rules(self):
        robots, fetcher = exclusion("User-agent: *\nDisallow: /private/\n")
        robots.disallowed("http://example.com/a.html")
        robots.clear()
        robots.disallowed("http://example.com/a.html")
        assert fetcher.requested == [ROBOTS, ROBOTS]


class TestDownloadParams:
    def test_robots_fetch_is_bounded_and_unsized(self):
        dp = DEFAULT_DOWNLOAD_PARAMETERS.change_download_timeout(3).change_max_page_size(5)
        robots = RobotExclusion("crawlkit", FakeFetcher({}), dp)
        assert robots.download_params.download_timeout == 3
        assert robots.download_params.max_page_bytes is None

        robots = RobotExclusion("crawlkit", FakeFetcher({}))
        assert robots.download_params.download_timeout == 10.0
