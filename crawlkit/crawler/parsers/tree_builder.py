"""Build an element tree from a tokenized page.

The builder keeps an explicit stack of open elements so that implicit closures
(`<li>` closing the previous `<li>`, block tags closing an open `<p>`, ...) can
be applied without recursion. Elements are appended to the page's element
arena in start-tag order, which is also preorder, and refer to one another by
arena index.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..element import Element, Form, FormButton, Link
from ..region import BLOCK_TAGS, Tag, TagName, Text
from ..url import MalformedURLError, resolve_url

if TYPE_CHECKING:
    from ..page import Page


LOGGER = logging.getLogger(__name__)


EMPTY_TAGS = frozenset(
    {
        TagName.AREA,
        TagName.BASE,
        TagName.BASEFONT,
        TagName.BGSOUND,
        TagName.BR,
        TagName.COL,
        TagName.COLGROUP,
        TagName.COMMENT,
        TagName.HR,
        TagName.IMG,
        TagName.INPUT,
        TagName.ISINDEX,
        TagName.LINK,
        TagName.META,
        TagName.NEXTID,
        TagName.PARAM,
        TagName.SPACER,
        TagName.WBR,
    }
)


def _build_forces_closed() -> dict[TagName, frozenset[TagName]]:
    table: dict[TagName, set[TagName]] = {
        TagName.DD: {TagName.DD, TagName.DT},
        TagName.DT: {TagName.DD, TagName.DT},
        TagName.LI: {TagName.LI},
        TagName.OPTION: {TagName.OPTION},
        TagName.TR: {TagName.TR},
        TagName.TD: {TagName.TD, TagName.TH},
        TagName.TH: {TagName.TD, TagName.TH},
    }
    for block in BLOCK_TAGS:
        table.setdefault(block, set()).add(TagName.P)
    return {name: frozenset(closed) for name, closed in table.items()}


FORCES_CLOSED = _build_forces_closed()


def _build_context() -> dict[TagName, frozenset[TagName]]:
    table: dict[TagName, set[TagName]] = {
        TagName.DD: {TagName.DL},
        TagName.DT: {TagName.DL},
        TagName.LI: {TagName.OL, TagName.UL, TagName.MENU, TagName.DIR},
        TagName.OPTION: {TagName.SELECT},
        TagName.TR: {TagName.TABLE},
        TagName.TD: {TagName.TR, TagName.TABLE},
        TagName.TH: {TagName.TR, TagName.TABLE},
    }
    # The search for a tag to close stops at the first element that is either
    # closable or a container the new tag belongs in.
    for name, closed in FORCES_CLOSED.items():
        table.setdefault(name, set()).update(closed)
    return {name: frozenset(context) for name, context in table.items()}


CONTEXT = _build_context()

LINK_TAGS: dict[TagName, str] = {
    TagName.A: "href",
    TagName.AREA: "href",
    TagName.APPLET: "code",
    TagName.EMBED: "src",
    TagName.FRAME: "src",
    TagName.FORM: "action",
    TagName.IMG: "src",
    TagName.LINK: "href",
    TagName.SCRIPT: "src",
}

SAVE_TEXT_TAGS = frozenset({TagName.A, TagName.TITLE})

FORM_BUTTON_TYPES = frozenset({"submit", "image"})


class TreeBuilder:
    """Turns `page.tokens` into `page.elements`, `page.links`, `page.root`, and `page.title`."""

    def build(self, page: "Page") -> Element | None:
        """Build the element tree for an already tokenized page.

        Returns the first top-level element, or None for an unparsed page or a
        page without tags.
        """

        if page.tokens is None:
            return None

        state = _BuildState(page)
        for token in page.tokens:
            if isinstance(token, Tag):
                if token.is_start_tag:
                    state.handle_start_tag(token)
                else:
                    state.handle_end_tag(token)
            elif isinstance(token, Text):
                state.handle_text(token)

        state.close_all(page.end)
        root = state.link_top_level()

        page.elements = state.arena
        page.links = state.links
        page.root = root
        return root


class _BuildState:
    """Open-element stack and arena for one tree-building pass."""

    def __init__(self, page: "Page") -> None:
        self.page = page
        self.arena: list[Element] = []
        self.links: list[Link] = []
        # Arena indices of elements not yet attached to a parent, in document order.
        self.pending: list[int] = []
        # Positions in `pending` of currently open elements, innermost last.
        self.open_positions: list[int] = []
        self.current_form: Form | None = None
        self.saved_text: list[str] | None = None

    def handle_start_tag(self, tag: Tag) -> None:
        name = tag.tag_name

        closed = FORCES_CLOSED.get(name)
        if closed is not None:
            position = self._find_open(CONTEXT[name])
            if position is not None and self._element_at(position).tag_name in closed:
                self.close(position, None, tag.start)

        element = self._make_element(tag)
        position = self._open(element)

        if name in EMPTY_TAGS:
            self.close(position, None, tag.end)
        elif name in SAVE_TEXT_TAGS:
            self.saved_text = []

        if name == TagName.BASE:
            href = tag.get_html_attribute("href")
            if href is not None:
                try:
                    self.page.base_url = resolve_url(self.page.base_url, href)
                except MalformedURLError as exc:
                    LOGGER.debug("Ignoring malformed <base href=%r>: %s", href, exc)

    def handle_end_tag(self, tag: Tag) -> None:
        position = self._find_open(frozenset({tag.tag_name}))
        if position is None:
            return

        element = self._element_at(position)
        self.close(position, tag, tag.end)

        if tag.tag_name in SAVE_TEXT_TAGS and self.saved_text is not None:
            text = " ".join(self.saved_text)
            if tag.tag_name == TagName.TITLE:
                self.page.title = text
            elif isinstance(element, Link):
                element.text = text
            self.saved_text = None

    def handle_text(self, token: Text) -> None:
        if self.saved_text is not None:
            self.saved_text.append(token.text)

    def close(self, position: int, end_tag: Tag | None, end: int) -> None:
        """Close the open element at `position` and every element opened after it.

        Elements closed implicitly end where the closing tag starts; the target
        element ends at `end` and records `end_tag`.
        """

        inner_end = end_tag.start if end_tag is not None else end
        while self.open_positions:
            current = self.open_positions.pop()
            element = self._element_at(current)
            is_target = current == position

            element.end = max(element.start, end if is_target else inner_end)
            if is_target:
                element.end_tag = end_tag
            if element is self.current_form:
                self.current_form = None

            self._adopt_pending(current)
            if is_target:
                return

    def close_all(self, end: int) -> None:
        if self.open_positions:
            self.close(self.open_positions[0], None, end)

    def link_top_level(self) -> Element | None:
        """Chain the remaining top-level elements as siblings and return the first."""

        self._chain(self.pending)
        if not self.pending:
            return None
        return self.arena[self.pending[0]]

    def _open(self, element: Element) -> int:
        index = len(self.arena)
        element.index = index
        element.start_tag.element_index = index
        if self.open_positions:
            element.parent_index = self.pending[self.open_positions[-1]]

        self.arena.append(element)
        if isinstance(element, Link):
            self.links.append(element)
        if isinstance(element, Form):
            self.current_form = element

        self.pending.append(index)
        position = len(self.pending) - 1
        self.open_positions.append(position)
        return position

    def _adopt_pending(self, position: int) -> None:
        element = self._element_at(position)
        children = self.pending[position + 1 :]
        element.child_index = children[0] if children else None
        self._chain(children)
        del self.pending[position + 1 :]

    def _chain(self, indices: list[int]) -> None:
        for current, following in zip(indices, indices[1:]):
            self.arena[current].sibling_index = following
        if indices:
            self.arena[indices[-1]].sibling_index = None

    def _element_at(self, position: int) -> Element:
        return self.arena[self.pending[position]]

    def _find_open(self, names: frozenset) -> int | None:
        for position in reversed(self.open_positions):
            if self._element_at(position).tag_name in names:
                return position
        return None

    def _make_element(self, tag: Tag) -> Element:
        name = tag.tag_name
        base_url = self.page.base_url
        try:
            if name == TagName.FORM:
                return Form.from_tag(tag, base_url)
            if name == TagName.INPUT:
                kind = (tag.get_html_attribute("type", "") or "").lower()
                if kind in FORM_BUTTON_TYPES:
                    return FormButton.from_tag(tag, self.current_form)
            attribute = LINK_TAGS.get(name)
            if attribute is not None and tag.has_html_attribute(attribute):
                return Link.from_tag(tag, base_url, attribute)
        except MalformedURLError as exc:
            LOGGER.debug("Treating <%s> as plain element: %s", tag.name, exc)
        return Element(tag)


__all__ = [
    "CONTEXT",
    "EMPTY_TAGS",
    "FORCES_CLOSED",
    "LINK_TAGS",
    "SAVE_TEXT_TAGS",
    "TreeBuilder",
]
