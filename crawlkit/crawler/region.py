"""Offset-addressed regions of page content: the base of tags, text runs, and elements.

A region is a `[start, end)` span over its source page's content. Regions carry a
label map used both for HTML attribute values (on tags) and for classifier
output (on pages and links). Label values are strings, regions, or lists of
regions.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Sequence, Union

if TYPE_CHECKING:
    from .element import Element
    from .page import Page


TRUE = "true"

LabelValue = Union[str, "Region", list["Region"]]


class Region:
    """A span `[start, end)` of a page's content with a label map."""

    __slots__ = ("source", "start", "end", "_labels")

    def __init__(self, source: "Page | None", start: int, end: int) -> None:
        if start < 0 or end < start:
            raise ValueError(f"Invalid region offsets: [{start}, {end})")
        self.source = source
        self.start = start
        self.end = end
        self._labels: dict[str, LabelValue] | None = None

    @classmethod
    def span(cls, regions: Sequence["Region"]) -> "Region":
        """Return a plain region covering every region in `regions`."""

        if not regions:
            raise ValueError("Cannot span an empty region list")
        return Region(regions[0].source, regions[0].start, regions[-1].end)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def content(self) -> str:
        """Raw page content covered by this region."""

        return self.to_html()

    def to_html(self) -> str:
        if self.source is None:
            return ""
        return self.source.substring_html(self.start, self.end)

    def to_text(self) -> str:
        """Decoded text of the words inside this region, separated by spaces."""

        if self.source is None:
            return ""
        return self.source.substring_text(self.start, self.end)

    def to_tags(self) -> list["Tag"]:
        if self.source is None:
            return []
        return self.source.substring_tags(self.start, self.end)

    def __str__(self) -> str:
        return self.to_html()

    def __repr__(self) -> str:
        return f"{type(self).__name__}([{self.start}, {self.end}))"

    # Region relations

    def overlaps(self, other: "Region") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "Region") -> bool:
        return self.start <= other.start and other.end <= self.end

    def precedes(self, other: "Region") -> bool:
        return self.end <= other.start

    def follows(self, other: "Region") -> bool:
        return other.end <= self.start

    @staticmethod
    def find_start(regions: Sequence["Region"], position: int) -> int:
        """Index of the first region starting at or after `position`."""

        return bisect_left(regions, position, key=lambda region: region.start)

    @staticmethod
    def find_end(regions: Sequence["Region"], position: int) -> int:
        """Index one past the last region ending at or before `position`."""

        return bisect_right(regions, position, key=lambda region: region.end)

    # Labels

    @property
    def labels(self) -> list[str]:
        return [] if self._labels is None else list(self._labels)

    def set_label(self, name: str, value: LabelValue = TRUE) -> None:
        if self._labels is None:
            self._labels = {}
        self._labels[name] = value

    def get_label(self, name: str, default: str | None = None) -> str | None:
        """Return a label as a string, rendering region values as their text."""

        value = self.get_object_label(name)
        if value is None:
            return default
        if isinstance(value, str):
            return value
        if isinstance(value, Region):
            return value.to_text()
        return " ".join(region.to_text() for region in value)

    def get_object_label(self, name: str) -> LabelValue | None:
        if self._labels is None:
            return None
        return self._labels.get(name)

    def get_numeric_label(self, name: str, default: float | None = None) -> float | None:
        value = self.get_label(name)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    def has_label(self, name: str) -> bool:
        return self._labels is not None and name in self._labels

    def has_any_labels(self, names: str | Iterable[str]) -> bool:
        if isinstance(names, str):
            names = names.split()
        return any(self.has_label(name) for name in names)

    def has_all_labels(self, names: str | Iterable[str]) -> bool:
        if isinstance(names, str):
            names = names.split()
        return all(self.has_label(name) for name in names)

    def remove_label(self, name: str) -> None:
        if self._labels is not None:
            self._labels.pop(name, None)

    def set_field(self, name: str, region: "Region") -> None:
        self.set_label(name, region)

    def get_field(self, name: str) -> "Region | None":
        value = self.get_object_label(name)
        if isinstance(value, Region):
            return value
        if isinstance(value, list) and value:
            return value[0]
        return None

    def set_fields(self, name: str, regions: list["Region"]) -> None:
        self.set_label(name, list(regions))

    def get_fields(self, name: str) -> list["Region"]:
        value = self.get_object_label(name)
        if isinstance(value, Region):
            return [value]
        if isinstance(value, list):
            return list(value)
        return []


class Text(Region):
    """A whitespace-delimited run of text with entities decoded."""

    __slots__ = ("text",)

    def __init__(self, source: "Page | None", start: int, end: int, text: str) -> None:
        super().__init__(source, start, end)
        self.text = text

    def to_text(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Text({self.text!r}, [{self.start}, {self.end}))"


class TagName(str, Enum):
    """Tag names the parser has rules for. Unknown tags stay plain strings."""

    COMMENT = "!"
    A = "a"
    ABBREV = "abbrev"
    ACRONYM = "acronym"
    ADDRESS = "address"
    APPLET = "applet"
    AREA = "area"
    B = "b"
    BASE = "base"
    BASEFONT = "basefont"
    BGSOUND = "bgsound"
    BIG = "big"
    BLINK = "blink"
    BLOCKQUOTE = "blockquote"
    BODY = "body"
    BR = "br"
    BUTTON = "button"
    CAPTION = "caption"
    CENTER = "center"
    CITE = "cite"
    CODE = "code"
    COL = "col"
    COLGROUP = "colgroup"
    DD = "dd"
    DFN = "dfn"
    DIR = "dir"
    DIV = "div"
    DL = "dl"
    DT = "dt"
    EM = "em"
    EMBED = "embed"
    FONT = "font"
    FORM = "form"
    FRAME = "frame"
    FRAMESET = "frameset"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    HEAD = "head"
    HR = "hr"
    HTML = "html"
    I = "i"  # noqa: E741
    IFRAME = "iframe"
    IMG = "img"
    INPUT = "input"
    ISINDEX = "isindex"
    KBD = "kbd"
    LI = "li"
    LINK = "link"
    LISTING = "listing"
    MAP = "map"
    MENU = "menu"
    META = "meta"
    NEXTID = "nextid"
    NOFRAMES = "noframes"
    NOSCRIPT = "noscript"
    OBJECT = "object"
    OL = "ol"
    OPTION = "option"
    P = "p"
    PARAM = "param"
    PLAINTEXT = "plaintext"
    PRE = "pre"
    S = "s"
    SAMP = "samp"
    SCRIPT = "script"
    SELECT = "select"
    SMALL = "small"
    SPACER = "spacer"
    SPAN = "span"
    STRIKE = "strike"
    STRONG = "strong"
    STYLE = "style"
    SUB = "sub"
    SUP = "sup"
    TABLE = "table"
    TBODY = "tbody"
    TD = "td"
    TEXTAREA = "textarea"
    TFOOT = "tfoot"
    TH = "th"
    THEAD = "thead"
    TITLE = "title"
    TR = "tr"
    TT = "tt"
    U = "u"
    UL = "ul"
    VAR = "var"
    WBR = "wbr"
    XMP = "xmp"


_KNOWN_TAGS: dict[str, TagName] = {member.value: member for member in TagName}


def to_tag_name(name: str) -> TagName | str:
    """Case-fold a tag name, returning the `TagName` member when known.

    Tag tables are keyed by `TagName` members, so every name looked up in them
    must go through this function first.
    """

    folded = name.strip().lower()
    return _KNOWN_TAGS.get(folded, folded)


BLOCK_TAGS = frozenset(
    {
        TagName.P,
        TagName.UL,
        TagName.OL,
        TagName.DIR,
        TagName.MENU,
        TagName.PRE,
        TagName.XMP,
        TagName.LISTING,
        TagName.DL,
        TagName.DIV,
        TagName.CENTER,
        TagName.BLOCKQUOTE,
        TagName.FORM,
        TagName.ISINDEX,
        TagName.HR,
        TagName.TABLE,
        TagName.H1,
        TagName.H2,
        TagName.H3,
        TagName.H4,
        TagName.H5,
        TagName.H6,
        TagName.ADDRESS,
    }
)

HEAD_TAGS = frozenset(
    {TagName.META, TagName.TITLE, TagName.BASE, TagName.LINK, TagName.ISINDEX}
)


class Tag(Region):
    """A start tag, end tag, comment, or directive.

    Attribute names are kept in document order in `attributes`; their values
    are stored as labels on the tag.
    """

    __slots__ = ("tag_name", "is_start_tag", "attributes", "element_index")

    def __init__(
        self,
        source: "Page | None",
        start: int,
        end: int,
        tag_name: str,
        is_start_tag: bool,
    ) -> None:
        super().__init__(source, start, end)
        self.tag_name: TagName | str = to_tag_name(tag_name)
        self.is_start_tag = is_start_tag
        self.attributes: list[str] = []
        self.element_index: int | None = None

    @property
    def is_end_tag(self) -> bool:
        return not self.is_start_tag

    @property
    def name(self) -> str:
        """Tag name as a plain string."""

        return str(self.tag_name.value if isinstance(self.tag_name, TagName) else self.tag_name)

    @property
    def element(self) -> "Element | None":
        """The element this start tag opens, while the page keeps its tree."""

        if self.element_index is None or self.source is None:
            return None
        elements = self.source.elements
        if elements is None or self.element_index >= len(elements):
            return None
        return elements[self.element_index]

    def is_block_tag(self) -> bool:
        return self.tag_name in BLOCK_TAGS

    def is_head_tag(self) -> bool:
        return self.tag_name in HEAD_TAGS

    def is_body_tag(self) -> bool:
        return not self.is_head_tag() and self.tag_name not in {
            TagName.HTML,
            TagName.HEAD,
            TagName.BODY,
            TagName.FRAMESET,
        }

    def set_html_attribute(self, name: str, value: str | None = None) -> None:
        """Append (or overwrite) an attribute; valueless attributes read as "true"."""

        folded = name.lower()
        if folded not in self.attributes:
            self.attributes.append(folded)
        self.set_label(folded, TRUE if value is None else value)

    def has_html_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    def get_html_attribute(self, name: str, default: str | None = None) -> str | None:
        folded = name.lower()
        if folded not in self.attributes:
            return default
        return self.get_label(folded, default)

    def html_attributes(self) -> list[tuple[str, str]]:
        return [(name, self.get_label(name, TRUE) or "") for name in self.attributes]

    def __str__(self) -> str:
        if self.tag_name == TagName.COMMENT:
            return self.to_html() if self.source is not None else "<!>"
        if not self.is_start_tag:
            return f"</{self.name}>"
        parts = [self.name]
        for name, value in self.html_attributes():
            escaped = value.replace('"', "&quot;")
            parts.append(f'{name}="{escaped}"')
        return "<" + " ".join(parts) + ">"

    def __repr__(self) -> str:
        slash = "" if self.is_start_tag else "/"
        return f"Tag(<{slash}{self.name}>, [{self.start}, {self.end}))"


__all__ = [
    "BLOCK_TAGS",
    "HEAD_TAGS",
    "LabelValue",
    "Region",
    "TRUE",
    "Tag",
    "TagName",
    "Text",
    "to_tag_name",
]
