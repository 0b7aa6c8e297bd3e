"""Element tree nodes and the link-bearing element variants.

Elements live in their page's element arena (`page.elements`, preorder) and
refer to their parent, first child, and next sibling by arena index. Navigation
is valid only while the page keeps its parsed content; after the page discards
content the references resolve to None.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator
from urllib.parse import quote_plus

from .region import BLOCK_TAGS, Region, Tag, TagName
from .types import HttpMethod, LinkStatus
from .url import (
    MalformedURLError,
    directory_url,
    parent_url,
    page_url,
    resolve_url,
    service_url,
    url_directory,
    url_file,
    url_filename,
    url_host,
    url_port,
    url_protocol,
    url_query,
    url_ref,
)

if TYPE_CHECKING:
    from .config import DownloadParameters
    from .page import Page


class Element(Region):
    """A node of a page's element tree, spanning its start tag to its end tag."""

    __slots__ = (
        "start_tag",
        "end_tag",
        "index",
        "parent_index",
        "child_index",
        "sibling_index",
    )

    def __init__(self, start_tag: Tag, end_tag: Tag | None = None) -> None:
        end = end_tag.end if end_tag is not None else start_tag.end
        super().__init__(start_tag.source, start_tag.start, end)
        self.start_tag = start_tag
        self.end_tag = end_tag
        self.index: int | None = None
        self.parent_index: int | None = None
        self.child_index: int | None = None
        self.sibling_index: int | None = None

    def _resolve(self, index: int | None) -> "Element | None":
        if index is None or self.source is None:
            return None
        elements = self.source.elements
        if elements is None or index >= len(elements):
            return None
        return elements[index]

    @property
    def parent(self) -> "Element | None":
        return self._resolve(self.parent_index)

    @property
    def child(self) -> "Element | None":
        """First child element."""

        return self._resolve(self.child_index)

    @property
    def sibling(self) -> "Element | None":
        """Next sibling element."""

        return self._resolve(self.sibling_index)

    def children(self) -> Iterator["Element"]:
        node = self.child
        while node is not None:
            yield node
            node = node.sibling

    def descendants(self) -> Iterator["Element"]:
        """All elements below this one, in preorder."""

        for node in self.children():
            yield node
            yield from node.descendants()

    @property
    def tag_name(self) -> TagName | str:
        return self.start_tag.tag_name

    def has_html_attribute(self, name: str) -> bool:
        return self.start_tag.has_html_attribute(name)

    def get_html_attribute(self, name: str, default: str | None = None) -> str | None:
        return self.start_tag.get_html_attribute(name, default)

    def is_block_element(self) -> bool:
        return self.tag_name in BLOCK_TAGS

    def discard_content(self) -> None:
        """Sever tree references so the element no longer pins its page tree."""

        self.parent_index = None
        self.child_index = None
        self.sibling_index = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<{self.start_tag.name}>, [{self.start}, {self.end}))"


class Link(Element):
    """A URL to crawl, optionally backed by the tag it was parsed from.

    Links are the unit of scheduling: the crawler assigns `priority`, tracks
    `status`, and attaches the downloaded `page`.
    """

    __slots__ = ("_url", "depth", "priority", "download_params", "status", "text", "page")

    def __init__(
        self,
        url: str | None,
        *,
        start_tag: Tag | None = None,
        end_tag: Tag | None = None,
        depth: int = 0,
    ) -> None:
        if start_tag is None:
            start_tag = Tag(None, 0, 0, "", True)
        super().__init__(start_tag, end_tag)
        self._url = None if url is None else resolve_url(None, url)
        self.depth = depth
        self.priority = 0.0
        self.download_params: DownloadParameters | None = None
        self.status = LinkStatus.NONE
        self.text: str | None = None
        self.page: Page | None = None

    @classmethod
    def from_tag(cls, tag: Tag, base_url: str | None, attribute: str = "href") -> "Link":
        """Build a link from a parsed tag, resolving `attribute` against the base.

        Raises `MalformedURLError` when the URL cannot be resolved.
        """

        href = tag.get_html_attribute(attribute)
        if href is None:
            raise MalformedURLError(f"<{tag.name}> has no {attribute} attribute")
        url = resolve_url(base_url, href)
        return cls(url, start_tag=tag, depth=_depth_below(tag))

    @property
    def url(self) -> str:
        assert self._url is not None
        return self._url

    @property
    def page_url(self) -> str:
        """URL without its fragment; identifies the page the link leads to."""

        return page_url(self.url)

    @property
    def service_url(self) -> str:
        """URL without query or fragment."""

        return service_url(self.url)

    @property
    def directory_url(self) -> str:
        return directory_url(self.url)

    @property
    def parent_url(self) -> str:
        return parent_url(self.url)

    @property
    def protocol(self) -> str:
        return url_protocol(self.url)

    @property
    def host(self) -> str:
        return url_host(self.url)

    @property
    def port(self) -> int:
        return url_port(self.url)

    @property
    def file(self) -> str:
        return url_file(self.url)

    @property
    def directory(self) -> str:
        return url_directory(self.url)

    @property
    def filename(self) -> str:
        return url_filename(self.url)

    @property
    def query(self) -> str | None:
        return url_query(self.url)

    @property
    def ref(self) -> str | None:
        return url_ref(self.url)

    @property
    def method(self) -> HttpMethod:
        return HttpMethod.GET

    def to_description(self) -> str:
        text = (self.text or "").strip()
        if not text:
            return self.url
        return f"{text} [{self.url}]"

    def disconnect(self) -> None:
        """Drop the downloaded page and reset status, ready for a fresh crawl."""

        self.page = None
        self.status = LinkStatus.NONE

    def __str__(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._url!r}, depth={self.depth}, status={self.status.value!r})"


class Form(Link):
    """A `<form>` element; its URL is the resolved `action` (or the base URL)."""

    __slots__ = ()

    @classmethod
    def from_tag(cls, tag: Tag, base_url: str | None, attribute: str = "action") -> "Form":
        href = tag.get_html_attribute(attribute)
        if href is None:
            if base_url is None:
                raise MalformedURLError("form without action on a page without base URL")
            return cls(base_url, start_tag=tag, depth=_depth_below(tag))
        return cls(resolve_url(base_url, href), start_tag=tag, depth=_depth_below(tag))

    @property
    def method(self) -> HttpMethod:
        value = (self.get_html_attribute("method", "GET") or "GET").strip().lower()
        return HttpMethod.POST if value == "post" else HttpMethod.GET

    def make_query(self, button: "FormButton | None" = None) -> str:
        """Return the URL this form submits to when `button` is pressed.

        Fields are collected from the form's descendants in document order.
        """

        pairs: list[tuple[str, str]] = []
        _collect_fields(self.child, pairs)

        if button is not None:
            kind = (button.get_html_attribute("type", "") or "").lower()
            name = button.get_html_attribute("name", "") or ""
            if kind == "submit":
                pairs.append((name, button.get_html_attribute("value", "") or ""))
            elif kind == "image":
                # Simulates a click at the image origin.
                pairs.append((f"{name}.x", "0"))
                pairs.append((f"{name}.y", "0"))

        query = "&".join(f"{quote_plus(name)}={quote_plus(value)}" for name, value in pairs)
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{query}"


class FormButton(Link):
    """A submit or image `<input>` inside a form.

    Its URL is the form's query for this button, built once the tree is complete.
    """

    __slots__ = ("form",)

    def __init__(self, start_tag: Tag, form: Form) -> None:
        super().__init__(None, start_tag=start_tag, depth=_depth_below(start_tag))
        self.form = form

    @classmethod
    def from_tag(cls, tag: Tag, form: Form | None, attribute: str = "type") -> "FormButton":
        if form is None:
            raise MalformedURLError("form button outside of any form")
        return cls(tag, form)

    @property
    def url(self) -> str:
        if self._url is None:
            self._url = self.form.make_query(self)
        return self._url

    @property
    def method(self) -> HttpMethod:
        return self.form.method


def _depth_below(tag: Tag) -> int:
    if tag.source is None:
        return 1
    return tag.source.depth + 1


def _collect_fields(first: Element | None, pairs: list[tuple[str, str]]) -> None:
    node = first
    while node is not None:
        name = node.tag_name
        if name == TagName.INPUT:
            kind = (node.get_html_attribute("type", "text") or "text").lower()
            passes = kind in {"text", "password", "hidden"} or (
                kind in {"checkbox", "radio"} and node.has_html_attribute("checked")
            )
            if passes:
                pairs.append(
                    (
                        node.get_html_attribute("name", "") or "",
                        node.get_html_attribute("value", "") or "",
                    )
                )
        elif name == TagName.SELECT:
            field_name = node.get_html_attribute("name", "") or ""
            options = [option for option in node.children() if option.tag_name == TagName.OPTION]
            chosen = [option for option in options if option.has_html_attribute("selected")]
            # With nothing selected, a single-choice list submits its first option.
            if not chosen and options and not node.has_html_attribute("multiple"):
                chosen = options[:1]
            for option in chosen:
                pairs.append((field_name, option.get_html_attribute("value", "") or ""))
        elif name == TagName.TEXTAREA:
            pairs.append((node.get_html_attribute("name", "") or "", node.to_text()))
        else:
            _collect_fields(node.child, pairs)
        node = node.sibling


__all__ = ["Element", "Form", "FormButton", "Link"]
