"""HTML parser: tokenizer plus tree builder, applied in place to a page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import VALID_HTML_PREFIX
from .tokenizer import HTMLTokenizer
from .tree_builder import TreeBuilder

if TYPE_CHECKING:
    from ..page import Page


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML parsing."""

    parser_name: str = "crawlkit_html_parser_v1"
    valid_html_prefix: int = VALID_HTML_PREFIX


class HTMLParser:
    """Tokenize a page and build its element tree, links, and title."""

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()
        self.tokenizer = HTMLTokenizer(self.config.valid_html_prefix)
        self.tree_builder = TreeBuilder()

    def parse(self, page: "Page") -> "Page":
        """Parse `page` in place. Non-HTML content leaves the page unparsed."""

        if self.tokenizer.tokenize(page) is None:
            return page
        self.tree_builder.build(page)
        return page


__all__ = ["HTMLParser", "HTMLParserConfig"]
