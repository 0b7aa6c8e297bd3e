"""URL resolution and decomposition helpers shared by links, pages, and classifiers."""

from __future__ import annotations

import posixpath
import re
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit


KNOWN_SCHEMES = ("http", "https", "ftp", "file", "gopher", "mailto", "jar")
HIERARCHICAL_SCHEMES = ("http", "https", "ftp", "gopher")
HTTP_SCHEMES = ("http", "https")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21, "gopher": 70}


class MalformedURLError(ValueError):
    """Raised when a URL cannot be resolved into an absolute, usable form."""


def resolve_url(base_url: str | None, href: str) -> str:
    """Resolve `href` against `base_url` and validate the result.

    Raises `MalformedURLError` when the result is not absolute, uses an unknown
    scheme, or is syntactically broken.
    """

    candidate = (href or "").strip()
    if not base_url and not candidate:
        raise MalformedURLError("empty URL")

    try:
        absolute = urljoin(base_url, candidate) if base_url else candidate
        parts = urlsplit(absolute)
        # Accessing the port validates it.
        parts.port
    except ValueError as exc:
        raise MalformedURLError(f"{candidate!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if not scheme or not _SCHEME_RE.match(scheme):
        raise MalformedURLError(f"no protocol: {candidate!r}")
    if scheme not in KNOWN_SCHEMES:
        raise MalformedURLError(f"unknown protocol: {scheme}")
    if scheme in HIERARCHICAL_SCHEMES and not parts.hostname:
        raise MalformedURLError(f"missing host: {absolute!r}")

    return absolute


def page_url(url: str) -> str:
    """Return URL with its fragment removed."""

    return urldefrag(url).url


def service_url(url: str) -> str:
    """Return URL with query and fragment removed."""

    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def url_protocol(url: str) -> str:
    return urlsplit(url).scheme.lower()


def url_host(url: str) -> str:
    """Return the lowercased host of a URL, or an empty string."""

    return (urlsplit(url).hostname or "").lower()


def url_port(url: str) -> int:
    """Return the explicit port of a URL, or -1 when none is given."""

    try:
        port = urlsplit(url).port
    except ValueError:
        return -1
    return -1 if port is None else port


def effective_port(url: str) -> int:
    """Return the explicit port, falling back to the scheme's default port."""

    port = url_port(url)
    if port != -1:
        return port
    return _DEFAULT_PORTS.get(url_protocol(url), -1)


def url_file(url: str) -> str:
    """Return path plus query, as requested from the server."""

    parts = urlsplit(url)
    if parts.query:
        return f"{parts.path}?{parts.query}"
    return parts.path


def url_query(url: str) -> str | None:
    query = urlsplit(url).query
    return query or None


def url_ref(url: str) -> str | None:
    fragment = urlsplit(url).fragment
    return fragment or None


def split_path(url: str) -> tuple[str, str]:
    """Split the URL path into (directory, filename).

    The directory always ends with `/`; the filename may be empty.
    """

    path = urlsplit(url).path or "/"
    if not path.startswith("/"):
        path = "/" + path
    slash = path.rfind("/")
    return path[: slash + 1], path[slash + 1 :]


def url_directory(url: str) -> str:
    return split_path(url)[0]


def url_filename(url: str) -> str:
    return split_path(url)[1]


def directory_url(url: str) -> str:
    """Return the URL of the directory containing this URL's file."""

    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, url_directory(url), "", ""))


def parent_url(url: str) -> str:
    """Return the URL of the parent directory (the directory itself for files)."""

    parts = urlsplit(url)
    directory, filename = split_path(url)
    if filename or parts.query:
        return urlunsplit((parts.scheme, parts.netloc, directory, "", ""))

    trimmed = directory.rstrip("/")
    if not trimmed:
        return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))
    parent = posixpath.dirname(trimmed)
    if not parent.endswith("/"):
        parent += "/"
    return urlunsplit((parts.scheme, parts.netloc, parent, "", ""))


def same_server(url_a: str, url_b: str) -> bool:
    """Return True if both URLs name the same host and port."""

    return url_host(url_a) == url_host(url_b) and effective_port(url_a) == effective_port(url_b)


__all__ = [
    "HIERARCHICAL_SCHEMES",
    "HTTP_SCHEMES",
    "KNOWN_SCHEMES",
    "MalformedURLError",
    "directory_url",
    "effective_port",
    "page_url",
    "parent_url",
    "resolve_url",
    "same_server",
    "service_url",
    "split_path",
    "url_directory",
    "url_file",
    "url_filename",
    "url_host",
    "url_port",
    "url_protocol",
    "url_query",
    "url_ref",
]
