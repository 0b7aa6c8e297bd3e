"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_CRAWLER_NAME,
    DEFAULT_CRAWL_TIMEOUT_SECONDS,
    DEFAULT_DEPTH_FIRST,
    DEFAULT_DOMAIN,
    DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    DEFAULT_IGNORE_VISITED_LINKS,
    DEFAULT_INTERACTIVE,
    DEFAULT_LINK_TYPE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGE_SIZE_KB,
    DEFAULT_MAX_THREADS,
    DEFAULT_OBEY_ROBOT_EXCLUSION,
    DEFAULT_SYNCHRONOUS,
    DEFAULT_USE_CACHES,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict
from .url import MalformedURLError, resolve_url


DOMAIN_CHOICES = ("web", "server", "subtree")
LINK_TYPE_CHOICES = ("hyperlinks", "hyperlinks_and_images", "all_links")


def _as_float(value: Any, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_choice(value: Any, key: str, choices: tuple[str, ...]) -> str:
    normalized = str(value).strip().lower()
    if normalized not in choices:
        raise ValueError(f"Invalid value for '{key}': {value!r}. Choose one of {choices}")
    return normalized


@dataclass(frozen=True, slots=True)
class DownloadParameters:
    """Immutable fetch policy for one link or a whole crawl.

    Instances are shared as defaults, so every `change_*` method returns a new
    copy instead of mutating in place. Sizes are in kilobytes and timeouts in
    seconds; zero or negative values mean "no limit".
    """

    max_threads: int = DEFAULT_MAX_THREADS
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE_KB
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
    crawl_timeout: float = DEFAULT_CRAWL_TIMEOUT_SECONDS
    obey_robot_exclusion: bool = DEFAULT_OBEY_ROBOT_EXCLUSION
    interactive: bool = DEFAULT_INTERACTIVE
    use_caches: bool = DEFAULT_USE_CACHES
    accepted_mime_types: str | None = None
    user_agent: str | None = None

    def __post_init__(self) -> None:
        if self.max_threads < 0:
            raise ValueError("max_threads must be >= 0")

    @property
    def max_page_bytes(self) -> int | None:
        """Page size limit in bytes, or None when unlimited."""

        if self.max_page_size <= 0:
            return None
        return self.max_page_size * 1024

    @property
    def has_download_timeout(self) -> bool:
        return self.download_timeout > 0

    @property
    def has_crawl_timeout(self) -> bool:
        return self.crawl_timeout > 0

    def change_max_threads(self, max_threads: int) -> "DownloadParameters":
        return replace(self, max_threads=max_threads)

    def change_max_page_size(self, max_page_size: int) -> "DownloadParameters":
        return replace(self, max_page_size=max_page_size)

    def change_download_timeout(self, download_timeout: float) -> "DownloadParameters":
        return replace(self, download_timeout=download_timeout)

    def change_crawl_timeout(self, crawl_timeout: float) -> "DownloadParameters":
        return replace(self, crawl_timeout=crawl_timeout)

    def change_obey_robot_exclusion(self, obey: bool) -> "DownloadParameters":
        return replace(self, obey_robot_exclusion=obey)

    def change_interactive(self, interactive: bool) -> "DownloadParameters":
        return replace(self, interactive=interactive)

    def change_use_caches(self, use_caches: bool) -> "DownloadParameters":
        return replace(self, use_caches=use_caches)

    def change_accepted_mime_types(self, accepted: str | None) -> "DownloadParameters":
        return replace(self, accepted_mime_types=accepted)

    def change_user_agent(self, user_agent: str | None) -> "DownloadParameters":
        return replace(self, user_agent=user_agent)

    def to_dict(self) -> JSONDict:
        return dict(asdict(self))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "DownloadParameters":
        """Build parameters from a parsed mapping, keeping defaults for missing keys."""

        payload = dict(payload or {})
        unknown = set(payload) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown download parameter(s): {sorted(unknown)}")

        defaults = cls()
        return cls(
            max_threads=_as_int(payload.get("max_threads", defaults.max_threads), "max_threads"),
            max_page_size=_as_int(
                payload.get("max_page_size", defaults.max_page_size),
                "max_page_size",
            ),
            download_timeout=_as_float(
                payload.get("download_timeout", defaults.download_timeout),
                "download_timeout",
            ),
            crawl_timeout=_as_float(
                payload.get("crawl_timeout", defaults.crawl_timeout),
                "crawl_timeout",
            ),
            obey_robot_exclusion=_as_bool(
                payload.get("obey_robot_exclusion", defaults.obey_robot_exclusion),
                "obey_robot_exclusion",
            ),
            interactive=_as_bool(payload.get("interactive", defaults.interactive), "interactive"),
            use_caches=_as_bool(payload.get("use_caches", defaults.use_caches), "use_caches"),
            accepted_mime_types=_as_optional_str(payload.get("accepted_mime_types")),
            user_agent=_as_optional_str(payload.get("user_agent")),
        )


DEFAULT_DOWNLOAD_PARAMETERS = DownloadParameters()

NO_LIMITS = (
    DEFAULT_DOWNLOAD_PARAMETERS.change_max_page_size(-1)
    .change_download_timeout(-1)
    .change_crawl_timeout(-1)
)


@dataclass(slots=True)
class CrawlConfig:
    """Top-level crawler configuration used to build a `Crawler`."""

    roots: list[str] = field(default_factory=list)
    name: str = DEFAULT_CRAWLER_NAME

    domain: str = DEFAULT_DOMAIN
    link_type: str = DEFAULT_LINK_TYPE
    max_depth: int = DEFAULT_MAX_DEPTH
    depth_first: bool = DEFAULT_DEPTH_FIRST
    synchronous: bool = DEFAULT_SYNCHRONOUS
    ignore_visited_links: bool = DEFAULT_IGNORE_VISITED_LINKS

    download: DownloadParameters = field(default_factory=DownloadParameters)

    def __post_init__(self) -> None:
        self.roots = [root.strip() for root in self.roots if root and root.strip()]
        for root in self.roots:
            try:
                resolve_url(None, root)
            except MalformedURLError as exc:
                raise ValueError(f"Invalid root URL {root!r}: {exc}") from exc

        self.name = self.name.strip() or DEFAULT_CRAWLER_NAME
        self.domain = _as_choice(self.domain, "domain", DOMAIN_CHOICES)
        self.link_type = _as_choice(self.link_type, "link_type", LINK_TYPE_CHOICES)

        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")

    def to_dict(self) -> JSONDict:
        """Serialize config for reproducibility."""

        return {
            "roots": list(self.roots),
            "name": self.name,
            "domain": self.domain,
            "link_type": self.link_type,
            "max_depth": self.max_depth,
            "depth_first": self.depth_first,
            "synchronous": self.synchronous,
            "ignore_visited_links": self.ignore_visited_links,
            "download": self.download.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        roots = payload.get("roots") or []
        if isinstance(roots, str):
            roots = roots.split()

        return cls(
            roots=[str(root) for root in list(roots)],
            name=str(payload.get("name", DEFAULT_CRAWLER_NAME)),
            domain=str(payload.get("domain", DEFAULT_DOMAIN)),
            link_type=str(payload.get("link_type", DEFAULT_LINK_TYPE)),
            max_depth=_as_int(payload.get("max_depth", DEFAULT_MAX_DEPTH), "max_depth"),
            depth_first=_as_bool(payload.get("depth_first", DEFAULT_DEPTH_FIRST), "depth_first"),
            synchronous=_as_bool(payload.get("synchronous", DEFAULT_SYNCHRONOUS), "synchronous"),
            ignore_visited_links=_as_bool(
                payload.get("ignore_visited_links", DEFAULT_IGNORE_VISITED_LINKS),
                "ignore_visited_links",
            ),
            download=DownloadParameters.from_dict(payload.get("download")),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def _check_suffix(config_path: Path) -> str:
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )
    return suffix


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = _check_suffix(config_path)

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"JSON config at {config_path} must be an object at top level")
    else:
        payload = _load_yaml(config_path)

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> Path:
    """Write CrawlConfig to JSON/YAML path based on its suffix."""

    config_path = Path(path)
    suffix = _check_suffix(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.to_dict()
    if suffix == ".json":
        config_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    else:
        config_path.write_text(
            yaml.safe_dump(payload, sort_keys=True, allow_unicode=True),
            encoding="utf-8",
        )
    return config_path


__all__ = [
    "CrawlConfig",
    "DEFAULT_DOWNLOAD_PARAMETERS",
    "DOMAIN_CHOICES",
    "DownloadParameters",
    "LINK_TYPE_CHOICES",
    "NO_LIMITS",
    "load_config",
    "save_config",
]
