"""Page classifiers that label pages and their links before the crawler expands them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .region import TagName
from .types import HttpMethod
from .url import effective_port, url_directory, url_file, url_filename, url_host

if TYPE_CHECKING:
    from .element import Link
    from .page import Page


HYPERLINK_PROTOCOLS = ("http", "https", "ftp", "file", "gopher")

_IMAGE_TAGS = (TagName.IMG,)
_CODE_TAGS = (TagName.APPLET, TagName.EMBED, TagName.SCRIPT)
_FORM_TAGS = (TagName.FORM,)
_HYPERLINK_TAGS = (TagName.A, TagName.AREA, TagName.FRAME)


class Classifier:
    """Labels a page and its links. Classifiers run in ascending `priority`."""

    priority: float = 0.0

    def classify(self, page: "Page") -> None:
        raise NotImplementedError


class StandardClassifier(Classifier):
    """The labels the crawler's domain and link-type filters rely on.

    The page gets `root` when it names a directory or an index page. Each link
    gets `local` or `remote`; local links may also get one of `same-page`,
    `sibling`, `descendent`, `ancestor`. Links also get a kind label from their
    tag: `image`, `code`, `form`, or `hyperlink`.
    """

    priority = 0.0

    def classify(self, page: "Page") -> None:
        page_url = page.url or page.base_url
        if page_url is None:
            return
        base_url = page.base_url or page_url

        filename = url_filename(page_url)
        if not filename or filename.startswith("index.htm"):
            page.set_label("root")

        page_path = url_file(page_url)
        base_path = url_file(base_url)
        page_directory = url_directory(page_url)
        servers = {
            (url_host(page_url), effective_port(page_url)),
            (url_host(base_url), effective_port(base_url)),
        }

        for link in page.links or ():
            if (link.host, effective_port(link.url)) in servers:
                link.set_label("local")
                self._label_local(link, page_path, base_path, page_directory)
            else:
                link.set_label("remote")
            self._label_kind(link)

    def _label_local(self, link: "Link", page_path: str, base_path: str, page_directory: str) -> None:
        link_path = link.file
        if link_path in (page_path, base_path):
            link.set_label("same-page")
        elif link.directory == page_directory:
            link.set_label("sibling")
        elif _descends_from(link_path, page_path) or _descends_from(link_path, base_path):
            link.set_label("descendent")
        elif _descends_from(page_path, link_path) or _descends_from(base_path, link_path):
            link.set_label("ancestor")

    def _label_kind(self, link: "Link") -> None:
        tag_name = link.tag_name
        if tag_name in _IMAGE_TAGS:
            link.set_label("image")
        elif tag_name in _CODE_TAGS:
            link.set_label("code")
        elif tag_name in _FORM_TAGS:
            link.set_label("form")
        elif tag_name in _HYPERLINK_TAGS:
            if link.protocol in HYPERLINK_PROTOCOLS and link.method == HttpMethod.GET:
                link.set_label("hyperlink")


def _descends_from(path: str, ancestor: str) -> bool:
    prefix = ancestor if ancestor.endswith("/") else ancestor + "/"
    return path.startswith(prefix)


__all__ = ["Classifier", "HYPERLINK_PROTOCOLS", "StandardClassifier"]
