"""Character-level HTML tokenizer.

Turns page content into a flat stream of `Tag` and `Text` tokens, each carrying
`[start, end)` offsets into the raw content. The tokenizer is permissive: it
never raises on malformed input and degrades to a best-effort token stream.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

from ..constants import VALID_HTML_PREFIX
from ..region import Region, Tag, Text, TRUE
from .entities import decode_entity, decode_numeric_entity

if TYPE_CHECKING:
    from ..page import Page


WHITESPACE = frozenset(" \t\n\r\f")


class _State(IntEnum):
    START = 0
    IN_WORD = 1
    ENTITY = 2
    ENTITY_NUMERIC = 3
    ENTITY_NAMED = 4
    LT = 5
    BANG = 6
    BANG_DASH = 7
    COMMENT = 8
    COMMENT_DASH = 9
    COMMENT_DASHDASH = 10
    DIRECTIVE = 11
    START_TAG = 12
    END_TAG = 13
    ATTR = 14
    ATTR_NAME = 15
    EQ = 16
    AFTER_EQ = 17
    ATTR_VALUE = 18
    ATTR_VALUE_SQ = 19
    ATTR_VALUE_DQ = 20


_TEXT_STATES = frozenset({_State.IN_WORD})


def _is_ascii_letter(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


def _is_ascii_alnum(c: str) -> bool:
    return _is_ascii_letter(c) or ("0" <= c <= "9")


def declares_html(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", maxsplit=1)[0].strip().lower() == "text/html"


class HTMLTokenizer:
    """Single-pass tokenizer driven by an explicit state machine."""

    def __init__(self, valid_html_prefix: int = VALID_HTML_PREFIX) -> None:
        self.valid_html_prefix = valid_html_prefix

    def tokenize(self, page: "Page") -> list[Region] | None:
        """Tokenize `page.content`, storing tokens, words, and tags on the page.

        Returns None (leaving the page unparsed) when the content shows no tag
        within the first `valid_html_prefix` characters and its content type did
        not declare HTML.
        """

        content = page.content or ""
        run = _TokenizerRun(page, content, declares_html(page.content_type))
        tokens = run.execute(self.valid_html_prefix)
        if tokens is None:
            return None

        page.tokens = tokens
        page.words = run.words
        page.tags = run.tags
        return tokens


class _TokenizerRun:
    """Mutable state of one tokenizing pass."""

    def __init__(self, page: "Page", content: str, is_html: bool) -> None:
        self.page = page
        self.content = content
        self.is_html = is_html

        self.tokens: list[Region] = []
        self.words: list[Text] = []
        self.tags: list[Tag] = []

        self.word: list[str] = []
        self.word_start = 0

        self.tag_start = 0
        self.tag_name: list[str] = []
        self.tag: Tag | None = None

        self.attr_name: list[str] = []
        self.attr_value: list[str] = []

        self.entity: list[str] = []
        self.entity_hex = False
        self.entity_target: list[str] = self.word
        self.after_entity = _State.IN_WORD

    def execute(self, valid_html_prefix: int) -> list[Region] | None:
        content = self.content
        length = len(content)
        state = _State.START
        i = 0

        while i < length:
            if not self.is_html and i >= valid_html_prefix:
                return None

            c = content[i]

            if state == _State.START:
                if c == "<":
                    self.tag_start = i
                    state = _State.LT
                    i += 1
                elif c in WHITESPACE:
                    i += 1
                else:
                    self._begin_word(i)
                    state = _State.IN_WORD

            elif state == _State.IN_WORD:
                if c == "<" or c in WHITESPACE:
                    self._emit_word(i)
                    state = _State.START
                elif c == "&":
                    state = self._begin_entity(self.word, _State.IN_WORD)
                    i += 1
                else:
                    self.word.append(c)
                    i += 1

            elif state == _State.ENTITY:
                if c == "#":
                    state = _State.ENTITY_NUMERIC
                    i += 1
                elif _is_ascii_letter(c):
                    self.entity.append(c)
                    state = _State.ENTITY_NAMED
                    i += 1
                else:
                    self.entity_target.append("&")
                    state = self.after_entity

            elif state == _State.ENTITY_NAMED:
                if _is_ascii_alnum(c):
                    self.entity.append(c)
                    i += 1
                else:
                    if self._finish_named_entity() and c == ";":
                        i += 1
                    state = self.after_entity

            elif state == _State.ENTITY_NUMERIC:
                if not self.entity and not self.entity_hex and c in "xX":
                    self.entity_hex = True
                    i += 1
                elif ("0" <= c <= "9") or (self.entity_hex and c in "abcdefABCDEF"):
                    self.entity.append(c)
                    i += 1
                else:
                    if self._finish_numeric_entity() and c == ";":
                        i += 1
                    state = self.after_entity

            elif state == _State.LT:
                if c == "/":
                    self.tag_name = []
                    state = _State.END_TAG
                    i += 1
                elif c == "!":
                    state = _State.BANG
                    i += 1
                elif _is_ascii_letter(c):
                    self.tag_name = []
                    state = _State.START_TAG
                else:
                    # Not a tag after all: the '<' starts a word.
                    self._begin_word(self.tag_start)
                    self.word.append("<")
                    state = _State.IN_WORD

            elif state == _State.BANG:
                if c == "-":
                    state = _State.BANG_DASH
                    i += 1
                else:
                    state = _State.DIRECTIVE

            elif state == _State.BANG_DASH:
                if c == "-":
                    state = _State.COMMENT
                    i += 1
                else:
                    state = _State.DIRECTIVE

            elif state == _State.COMMENT:
                if c == "-":
                    state = _State.COMMENT_DASH
                i += 1

            elif state == _State.COMMENT_DASH:
                state = _State.COMMENT_DASHDASH if c == "-" else _State.COMMENT
                i += 1

            elif state == _State.COMMENT_DASHDASH:
                if c == ">":
                    self._emit_tag(Tag(self.page, self.tag_start, i + 1, "!", True))
                    state = _State.START
                elif c != "-":
                    state = _State.COMMENT
                i += 1

            elif state == _State.DIRECTIVE:
                if c == ">":
                    self._emit_tag(Tag(self.page, self.tag_start, i + 1, "!", True))
                    state = _State.START
                i += 1

            elif state == _State.START_TAG:
                if c == ">" or c == "/" or c in WHITESPACE:
                    end = i + 1 if c == ">" else i
                    self.tag = Tag(self.page, self.tag_start, end, "".join(self.tag_name), True)
                    self._emit_tag(self.tag)
                    self.is_html = True
                    if c == ">":
                        state = _State.START
                        i += 1
                    else:
                        state = _State.ATTR
                else:
                    self.tag_name.append(c)
                    i += 1

            elif state == _State.END_TAG:
                if c == ">":
                    parts = "".join(self.tag_name).split()
                    # A nameless "</>" closes nothing and is dropped.
                    if parts:
                        self._emit_tag(Tag(self.page, self.tag_start, i + 1, parts[0], False))
                    state = _State.START
                else:
                    self.tag_name.append(c)
                i += 1

            elif state == _State.ATTR:
                if c == ">":
                    if self.tag is not None:
                        self.tag.end = i + 1
                    state = _State.START
                    i += 1
                elif c == "/" or c in WHITESPACE:
                    i += 1
                else:
                    self.attr_name = []
                    state = _State.ATTR_NAME

            elif state == _State.ATTR_NAME:
                if c in "=>/" or c in WHITESPACE:
                    state = _State.EQ
                else:
                    self.attr_name.append(c)
                    i += 1

            elif state == _State.EQ:
                if c == "=":
                    self.attr_value = []
                    state = _State.AFTER_EQ
                    i += 1
                elif c in WHITESPACE:
                    i += 1
                else:
                    self._set_attribute(None)
                    state = _State.ATTR

            elif state == _State.AFTER_EQ:
                if c == "'":
                    state = _State.ATTR_VALUE_SQ
                    i += 1
                elif c == '"':
                    state = _State.ATTR_VALUE_DQ
                    i += 1
                elif c in WHITESPACE:
                    i += 1
                else:
                    state = _State.ATTR_VALUE

            elif state == _State.ATTR_VALUE:
                if c == ">" or c in WHITESPACE:
                    self._set_attribute("".join(self.attr_value))
                    state = _State.ATTR
                elif c == "&":
                    state = self._begin_entity(self.attr_value, _State.ATTR_VALUE)
                    i += 1
                else:
                    self.attr_value.append(c)
                    i += 1

            elif state in (_State.ATTR_VALUE_SQ, _State.ATTR_VALUE_DQ):
                quote = "'" if state == _State.ATTR_VALUE_SQ else '"'
                if c == quote:
                    self._set_attribute("".join(self.attr_value))
                    state = _State.ATTR
                elif c == "&":
                    state = self._begin_entity(self.attr_value, state)
                else:
                    self.attr_value.append(c)
                i += 1

        self._finish(state, length)
        return self.tokens

    def _finish(self, state: _State, length: int) -> None:
        # A pending entity inside a text run still belongs to that run.
        if state in (_State.ENTITY, _State.ENTITY_NAMED, _State.ENTITY_NUMERIC):
            if self.after_entity not in _TEXT_STATES:
                return
            if state == _State.ENTITY:
                self.entity_target.append("&")
            elif state == _State.ENTITY_NAMED:
                self._finish_named_entity()
            else:
                self._finish_numeric_entity()
            state = self.after_entity

        if state == _State.IN_WORD:
            self._emit_word(length)

    def _begin_word(self, start: int) -> None:
        self.word = []
        self.word_start = start

    def _emit_word(self, end: int) -> None:
        token = Text(self.page, self.word_start, end, "".join(self.word))
        self.tokens.append(token)
        self.words.append(token)

    def _emit_tag(self, tag: Tag) -> None:
        self.tokens.append(tag)
        self.tags.append(tag)

    def _begin_entity(self, target: list[str], after: _State) -> _State:
        self.entity = []
        self.entity_hex = False
        self.entity_target = target
        self.after_entity = after
        return _State.ENTITY

    def _finish_named_entity(self) -> bool:
        """Decode the pending named entity; returns True if it was recognized."""

        name = "".join(self.entity)
        decoded = decode_entity(name)
        if decoded is None:
            self.entity_target.append("&" + name)
            return False
        self.entity_target.append(decoded)
        return True

    def _finish_numeric_entity(self) -> bool:
        digits = "".join(self.entity)
        decoded = decode_numeric_entity(digits, hexadecimal=self.entity_hex)
        if decoded is None:
            prefix = "&#x" if self.entity_hex else "&#"
            self.entity_target.append(prefix + digits)
            return False
        self.entity_target.append(decoded)
        return True

    def _set_attribute(self, value: str | None) -> None:
        name = "".join(self.attr_name).lower()
        self.attr_name = []
        if self.tag is None or not name:
            return
        self.tag.set_html_attribute(name, TRUE if value is None else value)


def tokenize(
    content: str,
    page: "Page | None" = None,
    *,
    content_type: str | None = None,
) -> list[Region] | None:
    """Tokenize raw content, creating a throwaway page when none is given."""

    if page is None:
        from ..page import Page

        page = Page(content, content_type=content_type)
    return HTMLTokenizer().tokenize(page)


__all__ = ["HTMLTokenizer", "WHITESPACE", "declares_html", "tokenize"]
