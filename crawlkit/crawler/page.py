"""Downloaded pages and their discardable parsed content."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import DEFAULT_DOWNLOAD_PARAMETERS, DownloadParameters
from .element import Element, Link
from .parsers.html_parser import HTMLParser
from .region import Region, Tag, Text

if TYPE_CHECKING:
    from .fetcher import CancelToken, Fetcher


_PARSEABLE_TYPE_PREFIXES = ("text/html", "content/unknown")

_IMAGE_SIGNATURES = (b"GIF8", b"\x89PNG", b"\xff\xd8\xff")


class Page(Region):
    """The content of one URL plus its parse: tokens, words, tags, elements, and links.

    A page is its own region source, spanning `[0, len(content))`. Pages made
    from strings keep their content for good; downloaded pages hold one content
    lock that `discard_content()` releases.
    """

    def __init__(
        self,
        content: str = "",
        *,
        origin: Link | None = None,
        base_url: str | None = None,
        content_type: str | None = None,
    ) -> None:
        super().__init__(None, 0, len(content))
        self.source = self

        self.origin = origin
        self.base_url = base_url if base_url is not None else (origin.url if origin else None)
        self.content_type = content_type
        self.content_encoding: str | None = None
        self.response_code: int | None = None
        self.response_message: str | None = None
        self.last_modified: float | None = None
        self.expiration: float | None = None
        self.headers: dict[str, str] = {}

        self._content: str | None = content
        self.content_bytes: bytes | None = None
        self.content_lock = -1

        self.tokens: list[Region] | None = None
        self.words: list[Text] | None = None
        self.tags: list[Tag] | None = None
        self.elements: list[Element] | None = None
        self.root: Element | None = None
        self.links: list[Link] | None = None
        self.title: str | None = None

    @classmethod
    def from_html(cls, url: str, html: str, parser: HTMLParser | None = None) -> "Page":
        """Parse an HTML string as if it had been downloaded from `url`."""

        page = cls(html, origin=Link(url), content_type="text/html")
        (parser or HTMLParser()).parse(page)
        return page

    @classmethod
    def download(
        cls,
        link: Link,
        download_params: DownloadParameters | None,
        fetcher: "Fetcher",
        *,
        parser: HTMLParser | None = None,
        cancel: "CancelToken | None" = None,
    ) -> "Page":
        """Fetch `link`, parse the result if it is HTML, and attach it to the link.

        Fetch failures propagate as `FetchError` and no page is created.
        """

        dp = download_params or link.download_params or DEFAULT_DOWNLOAD_PARAMETERS
        response = fetcher.open(link, dp, cancel=cancel)

        page = cls(response.text(), origin=link, base_url=response.url, content_type=response.content_type)
        page.content_bytes = response.body
        page.content_encoding = response.content_encoding
        page.response_code = response.status_code
        page.response_message = response.reason
        page.last_modified = response.last_modified
        page.expiration = response.expiration
        page.headers = dict(response.headers)
        page.content_lock = 1

        if page.should_parse():
            (parser or HTMLParser()).parse(page)

        link.page = page
        return page

    def should_parse(self) -> bool:
        if self.content_type is None:
            return True
        lowered = self.content_type.lower()
        return lowered.startswith(_PARSEABLE_TYPE_PREFIXES)

    @property
    def url(self) -> str | None:
        return None if self.origin is None else self.origin.url

    @property
    def depth(self) -> int:
        return 0 if self.origin is None else self.origin.depth

    @property
    def content(self) -> str | None:
        return self._content

    @property
    def has_content(self) -> bool:
        return self._content is not None

    @property
    def is_parsed(self) -> bool:
        return self.tokens is not None

    @property
    def is_html(self) -> bool:
        return self.root is not None

    @property
    def is_image(self) -> bool:
        if self.content_type and self.content_type.lower().startswith("image/"):
            return True
        data = self.content_bytes
        return data is not None and data.startswith(_IMAGE_SIGNATURES)

    def get_links(self) -> list[Link]:
        return [] if self.links is None else list(self.links)

    def keep_content(self) -> None:
        """Take one more content lock so `discard_content()` keeps the parse."""

        if self.content_lock >= 0:
            self.content_lock += 1

    def discard_content(self) -> None:
        """Release one content lock, dropping the parse when none remain.

        Links survive the discard, but each one's tree references are severed.
        """

        if self.content_lock <= 0 or self.origin is None:
            return
        self.content_lock -= 1
        if self.content_lock > 0:
            return

        self._content = None
        self.content_bytes = None
        self.tokens = None
        self.words = None
        self.tags = None
        self.elements = None
        self.root = None
        for link in self.links or ():
            link.discard_content()

    def substring_html(self, start: int, end: int) -> str:
        if self._content is None:
            return ""
        return self._content[start:end]

    def substring_text(self, start: int, end: int) -> str:
        """Decoded words fully inside `[start, end)`, separated by single spaces."""

        if self.words is None:
            return " ".join(self.substring_html(start, end).split())
        first = Region.find_start(self.words, start)
        last = Region.find_end(self.words, end)
        return " ".join(word.text for word in self.words[first:last])

    def substring_tags(self, start: int, end: int) -> list[Tag]:
        if self.tags is None:
            return []
        first = Region.find_start(self.tags, start)
        last = Region.find_end(self.tags, end)
        return self.tags[first:last]

    def to_description(self) -> str:
        title = (self.title or "").strip()
        url = self.url or ""
        if title:
            return f"{title} [{url}]" if url else title
        return url

    def __str__(self) -> str:
        return self.to_description()

    def __repr__(self) -> str:
        return f"Page({self.url!r}, length={self.end}, parsed={self.is_parsed})"


__all__ = ["Page"]
