"""Named character entities recognized by the tokenizer."""

from __future__ import annotations

from html.entities import name2codepoint


# The Latin-1 range plus a handful of entities that are common on real pages.
_EXTRA_ENTITIES = (
    "apos",
    "bull",
    "euro",
    "hellip",
    "ldquo",
    "lsquo",
    "mdash",
    "ndash",
    "rdquo",
    "rsquo",
    "trade",
)

ENTITIES: dict[str, int] = {
    name: codepoint for name, codepoint in name2codepoint.items() if codepoint < 256
}
ENTITIES.update({name: name2codepoint[name] for name in _EXTRA_ENTITIES if name in name2codepoint})
ENTITIES.setdefault("apos", ord("'"))


def decode_entity(name: str) -> str | None:
    """Return the character for a named entity, or None if it is unknown."""

    codepoint = ENTITIES.get(name)
    if codepoint is None:
        return None
    return chr(codepoint)


def decode_numeric_entity(digits: str, *, hexadecimal: bool = False) -> str | None:
    """Return the character for `&#NNN;` / `&#xHH;` digits, or None if invalid."""

    if not digits:
        return None
    try:
        codepoint = int(digits, 16 if hexadecimal else 10)
    except ValueError:
        return None
    if codepoint <= 0 or codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return None
    return chr(codepoint)


__all__ = ["ENTITIES", "decode_entity", "decode_numeric_entity"]
