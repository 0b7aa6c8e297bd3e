"""Network fetch for links using `requests`, with size limits and cooperative cancellation."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Callable

import requests

from .config import DEFAULT_DOWNLOAD_PARAMETERS, DownloadParameters
from .constants import DEFAULT_USER_AGENT, FETCH_CHUNK_SIZE
from .types import HttpMethod, utc_now_iso
from .url import HTTP_SCHEMES

if TYPE_CHECKING:
    from .element import Link


class FetchError(IOError):
    """A download failed: network error, HTTP status >= 300, oversize page, or policy."""


class FetchCancelled(FetchError):
    """A download was abandoned because its cancel token fired."""


class CancelToken:
    """One-shot flag a timeout path uses to abandon an in-flight download."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or `timeout` elapses; returns True if cancelled."""

        return self._event.wait(timeout)


@dataclass(slots=True)
class FetchResponse:
    """A completed download of one URL."""

    requested_url: str
    url: str
    status_code: int
    reason: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str | None = None
    encoding: str | None = None
    last_modified: float | None = None
    expiration: float | None = None
    method: HttpMethod = HttpMethod.GET
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None

    @property
    def content_length(self) -> int:
        return len(self.body)

    @property
    def content_encoding(self) -> str | None:
        return self.headers.get("Content-Encoding")

    def text(self) -> str:
        """Decode the body using the declared charset, falling back to UTF-8."""

        encoding = self.encoding or "utf-8"
        try:
            return self.body.decode(encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


def parse_http_date(value: str | None) -> float | None:
    """Parse an HTTP date header into epoch seconds, or None."""

    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _declared_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class Fetcher:
    """Download links over HTTP(S).

    Each worker thread gets its own `requests.Session`. Downloads are streamed
    so the page size limit and the cancel token are checked between chunks.
    """

    def __init__(
        self,
        *,
        chunk_size: int = FETCH_CHUNK_SIZE,
        session_factory: Callable[[], requests.Session] = requests.Session,
        default_user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.chunk_size = chunk_size
        self.default_user_agent = default_user_agent
        self._session_factory = session_factory

        self._thread_local = threading.local()
        self._sessions_lock = threading.Lock()
        self._sessions: list[requests.Session] = []

    def open(
        self,
        link: "Link",
        download_params: DownloadParameters | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> FetchResponse:
        """Download `link` and return the response.

        Raises `FetchError` on any failure and `FetchCancelled` when `cancel`
        fires before the body has been read.
        """

        dp = download_params or DEFAULT_DOWNLOAD_PARAMETERS
        url = link.url
        if link.protocol not in HTTP_SCHEMES:
            raise FetchError(f"unsupported protocol: {link.protocol or url}")
        if cancel is not None and cancel.cancelled:
            raise FetchCancelled(f"download of {url} cancelled")

        timeout = dp.download_timeout if dp.has_download_timeout else None
        headers = self.headers_for(dp)
        session = self._thread_local_session()
        started = time.perf_counter()

        try:
            if link.method == HttpMethod.POST:
                response = session.post(
                    link.service_url,
                    data=link.query or "",
                    headers={**headers, "Content-Type": "application/x-www-form-urlencoded"},
                    timeout=timeout,
                    stream=True,
                    allow_redirects=True,
                )
            else:
                response = session.get(
                    link.page_url,
                    headers=headers,
                    timeout=timeout,
                    stream=True,
                    allow_redirects=True,
                )
        except requests.RequestException as exc:
            raise FetchError(f"{exc.__class__.__name__}: {exc}") from exc

        with response:
            if response.status_code >= 300:
                raise FetchError(f"{response.status_code} {response.reason or ''}".strip())

            body = self._read_body(response, dp, cancel, url)
            content_type = response.headers.get("Content-Type")
            encoding = None
            if content_type and "charset" in content_type.lower():
                encoding = response.encoding

            return FetchResponse(
                requested_url=url,
                url=response.url or url,
                status_code=response.status_code,
                reason=response.reason or "",
                body=body,
                headers=dict(response.headers),
                content_type=content_type,
                encoding=encoding,
                last_modified=parse_http_date(response.headers.get("Last-Modified")),
                expiration=parse_http_date(response.headers.get("Expires")),
                method=link.method,
                elapsed_ms=int((time.perf_counter() - started) * 1000),
            )

    def headers_for(self, download_params: DownloadParameters) -> dict[str, str]:
        """Request headers implied by a fetch policy."""

        headers = {"User-Agent": download_params.user_agent or self.default_user_agent}
        if download_params.accepted_mime_types:
            headers["Accept"] = download_params.accepted_mime_types
        if not download_params.use_caches:
            headers["Cache-Control"] = "no-cache"
            headers["Pragma"] = "no-cache"
        return headers

    def close(self) -> None:
        """Close every session opened by worker threads."""

        with self._sessions_lock:
            sessions = list(self._sessions)
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _read_body(
        self,
        response: requests.Response,
        dp: DownloadParameters,
        cancel: CancelToken | None,
        url: str,
    ) -> bytes:
        limit = dp.max_page_bytes
        declared = _declared_length(response.headers.get("Content-Length"))
        if limit is not None and declared is not None and declared > limit:
            raise FetchError(f"Page greater than {limit} bytes")

        body = bytearray()
        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if cancel is not None and cancel.cancelled:
                    raise FetchCancelled(f"download of {url} cancelled")
                body.extend(chunk)
                if limit is not None and len(body) > limit:
                    raise FetchError(f"Page greater than {limit} bytes")
        except requests.RequestException as exc:
            raise FetchError(f"{exc.__class__.__name__}: {exc}") from exc
        return bytes(body)

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = self._session_factory()
            self._thread_local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session


__all__ = [
    "CancelToken",
    "FetchCancelled",
    "FetchError",
    "FetchResponse",
    "Fetcher",
    "parse_http_date",
]
