"""Default values shared by crawler configuration, fetcher, and scheduler."""

from __future__ import annotations


DEFAULT_CRAWLER_NAME = "crawlkit"
DEFAULT_USER_AGENT = "crawlkit/0.1"

DEFAULT_MAX_THREADS = 4
DEFAULT_MAX_PAGE_SIZE_KB = 100
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS = 60.0
DEFAULT_CRAWL_TIMEOUT_SECONDS = -1.0
DEFAULT_OBEY_ROBOT_EXCLUSION = False
DEFAULT_INTERACTIVE = True
DEFAULT_USE_CACHES = True

DEFAULT_MAX_DEPTH = 5
DEFAULT_DEPTH_FIRST = True
DEFAULT_SYNCHRONOUS = False
DEFAULT_IGNORE_VISITED_LINKS = True
DEFAULT_DOMAIN = "web"
DEFAULT_LINK_TYPE = "hyperlinks"

# A page with no tag inside this many characters is treated as non-HTML.
VALID_HTML_PREFIX = 10000

FETCH_CHUNK_SIZE = 8192
ROBOTS_TIMEOUT_SECONDS = 10.0
WORKER_JOIN_TIMEOUT_SECONDS = 5.0

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")


__all__ = [
    "DEFAULT_CRAWLER_NAME",
    "DEFAULT_CRAWL_TIMEOUT_SECONDS",
    "DEFAULT_DEPTH_FIRST",
    "DEFAULT_DOMAIN",
    "DEFAULT_DOWNLOAD_TIMEOUT_SECONDS",
    "DEFAULT_IGNORE_VISITED_LINKS",
    "DEFAULT_INTERACTIVE",
    "DEFAULT_LINK_TYPE",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_PAGE_SIZE_KB",
    "DEFAULT_MAX_THREADS",
    "DEFAULT_OBEY_ROBOT_EXCLUSION",
    "DEFAULT_SYNCHRONOUS",
    "DEFAULT_USER_AGENT",
    "DEFAULT_USE_CACHES",
    "FETCH_CHUNK_SIZE",
    "JSON_INDENT",
    "ROBOTS_TIMEOUT_SECONDS",
    "SUPPORTED_CONFIG_SUFFIXES",
    "VALID_HTML_PREFIX",
    "WORKER_JOIN_TIMEOUT_SECONDS",
]
