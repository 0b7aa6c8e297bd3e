"""Tests for the crawl CLI entrypoint."""

from __future__ import annotations

import json

import pytest

from conftest import FakeFetcher
from crawlkit import crawl
from crawlkit.crawler import CrawlConfig, save_config


@pytest.fixture
def fake_fetcher(monkeypatch, small_site) -> FakeFetcher:
    fetcher = FakeFetcher(small_site)
    monkeypatch.setattr("crawlkit.crawler.scheduler.Fetcher", lambda: fetcher)
    monkeypatch.setattr(crawl, "setup_logging", lambda log_file, verbose: None)
    return fetcher


class TestBuildConfig:
    def test_flags_override_defaults(self):
        args = crawl.parse_args(
            [
                "--root",
                "http://example.com/",
                "--max_depth",
                "2",
                "--breadth_first",
                "--max_threads",
                "3",
                "--crawl_timeout",
                "30",
                "--obey_robots",
                "--domain",
                "server",
            ]
        )
        config = crawl.build_config(args)

        assert config.roots == ["http://example.com/"]
        assert config.max_depth == 2
        assert config.depth_first is False
        assert config.domain == "server"
        assert config.download.max_threads == 3
        assert config.download.crawl_timeout == 30.0
        assert config.download.obey_robot_exclusion is True

    def test_depth_first_defaults_to_config(self, tmp_path):
        path = save_config(CrawlConfig(roots=["http://example.com/"], depth_first=False), tmp_path / "c.yaml")
        config = crawl.build_config(crawl.parse_args(["--config", str(path)]))
        assert config.depth_first is False

    def test_roots_flag_replaces_config_roots(self, tmp_path):
        path = save_config(
            CrawlConfig(roots=["http://example.com/"], name="from-file", max_depth=4),
            tmp_path / "c.json",
        )
        args = crawl.parse_args(["--config", str(path), "--root", "http://example.org/"])
        config = crawl.build_config(args)

        assert config.roots == ["http://example.org/"]
        assert config.name == "from-file"
        assert config.max_depth == 4

    def test_missing_roots(self):
        with pytest.raises(ValueError, match="No roots provided"):
            crawl.build_config(crawl.parse_args([]))


class TestMain:
    def test_runs_crawl_and_prints_summary(self, fake_fetcher, capsys):
        assert crawl.main(["--root", "http://example.com/", "--max_threads", "2"]) == 0

        out = capsys.readouterr().out
        assert "=== Crawl Complete ===" in out
        assert "state: stopped" in out
        assert "pages_visited: 5" in out
        assert "visited: 5" in out
        assert fake_fetcher.closed

    def test_prints_stats_json(self, fake_fetcher, capsys):
        assert crawl.main(["--root", "http://example.com/", "--print_stats_json"]) == 0

        out = capsys.readouterr().out
        payload = json.loads(out.split("--- Full Stats JSON ---", 1)[1])
        assert payload["visited"] == 5
        assert payload["errors"] == 0

    def test_config_error_exit_code(self, fake_fetcher):
        assert crawl.main([]) == 2
        assert crawl.main(["--root", "not a url"]) == 2
        assert fake_fetcher.requested == []
