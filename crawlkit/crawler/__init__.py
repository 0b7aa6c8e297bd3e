"""Crawler package: page model, HTML parsing, scheduling, and crawl policy."""

from .chronicle import Chronicle
from .classifier import Classifier, StandardClassifier
from .config import (
    DEFAULT_DOWNLOAD_PARAMETERS,
    NO_LIMITS,
    CrawlConfig,
    DownloadParameters,
    load_config,
    save_config,
)
from .element import Element, Form, FormButton, Link
from .events import CrawlEvent, CrawlListener, EventLog, LinkEvent, LinkListener
from .fetcher import CancelToken, FetchCancelled, FetchError, Fetcher, FetchResponse
from .page import Page
from .parsers import HTMLParser, HTMLParserConfig, HTMLTokenizer, TreeBuilder, tokenize
from .predicates import (
    Action,
    AndPredicate,
    CallbackAction,
    LabelPredicate,
    LinkPredicate,
    NotPredicate,
    OrPredicate,
    PagePredicate,
)
from .priority_queue import PriorityQueue
from .region import Region, Tag, TagName, Text
from .robots import RobotExclusion
from .scheduler import (
    ALL_LINKS,
    HYPERLINKS,
    HYPERLINKS_AND_IMAGES,
    SERVER,
    SUBTREE,
    WEB,
    Crawler,
)
from .stats import StatsCollector
from .types import CrawlState, CrawlStats, HttpMethod, LinkStatus, utc_now_iso
from .url import MalformedURLError, resolve_url

__all__ = [
    "ALL_LINKS",
    "Action",
    "AndPredicate",
    "CallbackAction",
    "CancelToken",
    "Chronicle",
    "Classifier",
    "CrawlConfig",
    "CrawlEvent",
    "CrawlListener",
    "CrawlState",
    "CrawlStats",
    "Crawler",
    "DEFAULT_DOWNLOAD_PARAMETERS",
    "DownloadParameters",
    "Element",
    "EventLog",
    "FetchCancelled",
    "FetchError",
    "FetchResponse",
    "Fetcher",
    "Form",
    "FormButton",
    "HTMLParser",
    "HTMLParserConfig",
    "HTMLTokenizer",
    "HYPERLINKS",
    "HYPERLINKS_AND_IMAGES",
    "HttpMethod",
    "LabelPredicate",
    "Link",
    "LinkEvent",
    "LinkListener",
    "LinkPredicate",
    "LinkStatus",
    "MalformedURLError",
    "NO_LIMITS",
    "NotPredicate",
    "OrPredicate",
    "Page",
    "PagePredicate",
    "PriorityQueue",
    "Region",
    "RobotExclusion",
    "SERVER",
    "SUBTREE",
    "StandardClassifier",
    "StatsCollector",
    "Tag",
    "TagName",
    "Text",
    "TreeBuilder",
    "WEB",
    "load_config",
    "resolve_url",
    "save_config",
    "tokenize",
    "utc_now_iso",
]
