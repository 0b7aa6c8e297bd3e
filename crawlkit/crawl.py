"""CLI entrypoint for running a crawl."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from crawlkit.crawler import CrawlConfig, Crawler, EventLog, StatsCollector, load_config
from crawlkit.crawler.config import DOMAIN_CHOICES, LINK_TYPE_CHOICES


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl the web from one or more root URLs.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--root",
        action="append",
        default=[],
        help="Root URL (repeatable). Overrides config roots if provided.",
    )
    parser.add_argument("--name", type=str, default=None, help="Crawler name.")

    parser.add_argument("--domain", type=str, choices=list(DOMAIN_CHOICES), default=None)
    parser.add_argument("--link_type", type=str, choices=list(LINK_TYPE_CHOICES), default=None)
    parser.add_argument("--max_depth", type=int, default=None)
    parser.add_argument("--max_threads", type=int, default=None)
    parser.add_argument(
        "--depth_first",
        dest="depth_first",
        action="store_true",
        default=None,
        help="Visit newly found links before older ones (default comes from config).",
    )
    parser.add_argument(
        "--breadth_first",
        dest="depth_first",
        action="store_false",
        help="Visit links in the order they were found.",
    )
    parser.add_argument(
        "--synchronous",
        action="store_true",
        help="Process pages one at a time in priority order.",
    )

    parser.add_argument(
        "--download_timeout",
        type=float,
        default=None,
        help="Seconds per page download. Use 0 or negative to disable.",
    )
    parser.add_argument(
        "--crawl_timeout",
        type=float,
        default=None,
        help="Seconds for the whole crawl. Use 0 or negative to disable.",
    )
    parser.add_argument(
        "--max_page_size",
        type=int,
        default=None,
        help="Largest page to download, in KB. Use 0 or negative to disable.",
    )
    parser.add_argument("--user_agent", type=str, default=None)
    parser.add_argument(
        "--obey_robots",
        action="store_true",
        help="Obey robots.txt exclusions.",
    )

    parser.add_argument(
        "--log_file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "--all_events",
        action="store_true",
        help="Log every link event, not only network events.",
    )
    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config is not None:
        payload = load_config(args.config).to_dict()
    else:
        payload = {"roots": list(args.root)}

    if args.root:
        payload["roots"] = list(args.root)

    if not payload.get("roots"):
        raise ValueError("No roots provided. Use --config or at least one --root.")

    if args.name is not None:
        payload["name"] = args.name
    if args.domain is not None:
        payload["domain"] = args.domain
    if args.link_type is not None:
        payload["link_type"] = args.link_type
    if args.max_depth is not None:
        payload["max_depth"] = args.max_depth
    if args.depth_first is not None:
        payload["depth_first"] = args.depth_first
    if args.synchronous:
        payload["synchronous"] = True

    download = dict(payload.get("download") or {})
    if args.max_threads is not None:
        download["max_threads"] = args.max_threads
    if args.download_timeout is not None:
        download["download_timeout"] = args.download_timeout
    if args.crawl_timeout is not None:
        download["crawl_timeout"] = args.crawl_timeout
    if args.max_page_size is not None:
        download["max_page_size"] = args.max_page_size
    if args.user_agent is not None:
        download["user_agent"] = args.user_agent
    if args.obey_robots:
        download["obey_robot_exclusion"] = True
    payload["download"] = download

    return CrawlConfig.from_dict(payload)


def setup_logging(log_file: Path | None, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(crawler: Crawler, stats: dict[str, Any], *, print_stats_json: bool) -> None:
    print("\n=== Crawl Complete ===")
    print(f"crawler: {crawler.name}")
    print(f"state: {crawler.state.value}")
    print(f"roots: {crawler.root_hrefs}")
    print(f"pages_visited: {crawler.pages_visited}")
    print(f"links_tested: {crawler.links_tested}")
    print(f"pages_left: {crawler.pages_left}")

    print("\n--- Core Stats ---")
    for key in [
        "links_queued",
        "links_skipped",
        "links_already_visited",
        "links_too_deep",
        "downloaded",
        "visited",
        "errors",
        "bytes_downloaded",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    try:
        config = build_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info(
        "Starting crawl: name=%s, roots=%d, domain=%s, link_type=%s, max_depth=%d",
        config.name,
        len(config.roots),
        config.domain,
        config.link_type,
        config.max_depth,
    )

    crawler = Crawler.from_config(config)
    stats = StatsCollector()
    event_log = EventLog(only_network_events=not args.all_events)
    for listener in (stats, event_log):
        crawler.add_crawl_listener(listener)
        crawler.add_link_listener(listener)

    try:
        crawler.run()
    except KeyboardInterrupt:
        crawler.stop()
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1
    finally:
        crawler.fetcher.close()

    stats.finish()
    print_summary(crawler, stats.to_json(), print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
