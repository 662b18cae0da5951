"""Parsing of ``define <tag> = Character(...)`` statements.

Argument lists may span several lines, nest calls, and contain commas
and parentheses inside strings, so they are scanned character by
character rather than matched with a single pattern.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from rpygraph.analysis.patterns import CHARACTER_DEF_RE, PROFILE_PREFIX, string_to_color
from rpygraph.models import Character

if TYPE_CHECKING:
    from rpygraph.models import Block

_KWARG_RE = re.compile(r"^\s*([a-zA-Z0-9_]+)\s*=(?!=)\s*([\s\S]+?)\s*$")
_TRANSLATED_RE = re.compile(r"^_\(\s*([\s\S]*?)\s*\)$")
_INT_PREFIX_RE = re.compile(r"^\s*([-+]?\d+)")

_STRING_FIELDS = (
    "image",
    "who_style",
    "who_prefix",
    "who_suffix",
    "what_color",
    "what_style",
    "what_prefix",
    "what_suffix",
    "window_style",
    "ctc",
)
_BOOL_FIELDS = ("slow", "slow_abortable", "all_at_once", "interact", "afm")
_RAW_FIELDS = ("what_properties", "window_properties")


def scan_call_arguments(text: str, start: int) -> tuple[str, int]:
    """Return the argument text of a call whose ``(`` ends just before ``start``.

    Tracks nesting depth and skips over quoted strings (with backslash
    escapes). An unterminated call consumes the rest of ``text``.

    Returns:
        Tuple of (argument text, index just past the closing parenthesis).
    """
    depth = 0
    quote: str | None = None
    i = start
    while i < len(text):
        char = text[i]
        if quote is not None:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            if depth == 0:
                return text[start:i], i + 1
            depth -= 1
        i += 1
    return text[start:], len(text)


def split_arguments(args: str) -> tuple[list[str], dict[str, str]]:
    """Split an argument list on top-level commas.

    Returns:
        Tuple of (positional arguments, keyword arguments), all as raw
        source text with surrounding whitespace removed.
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in args:
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())

    positional: list[str] = []
    kwargs: dict[str, str] = {}
    for part in parts:
        if not part:
            continue
        match = _KWARG_RE.match(part)
        if match:
            kwargs[match.group(1)] = match.group(2)
        else:
            positional.append(part)
    return positional, kwargs


def unquote(value: str | None) -> str | None:
    """Strip one pair of matching quotes, if present."""
    if value is None:
        return None
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] and trimmed[0] in "\"'":
        return trimmed[1:-1]
    return trimmed


def _display_name(raw: str | None, tag: str) -> str:
    if raw is None or raw.strip().lower() == "none":
        return tag
    translated = _TRANSLATED_RE.match(raw.strip())
    if translated:
        raw = translated.group(1)
    return unquote(raw) or tag


def _parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    return {"True": True, "False": False}.get(value.strip())


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    match = _INT_PREFIX_RE.match(unquote(value) or "")
    return int(match.group(1)) if match else None


def find_profile(content: str, offset: int) -> str | None:
    """Find a ``# profile:`` comment on the nearest non-blank line before ``offset``."""
    if offset <= 0:
        return None
    preceding = content[:offset].split("\n")
    # The last element is the (possibly empty) start of the define line itself.
    preceding.pop()
    while preceding:
        line = preceding.pop().strip()
        if not line:
            continue
        if line.startswith(PROFILE_PREFIX):
            return line[len(PROFILE_PREFIX) :].strip()
        return None
    return None


def build_character(
    tag: str,
    args: str,
    block_id: str,
    profile: str | None = None,
) -> Character:
    """Build a Character from raw ``Character(...)`` argument text.

    Unparseable values are dropped; the character is always registered
    under ``tag``.
    """
    positional, kwargs = split_arguments(args)
    raw_name = kwargs.get("name") or (positional[0] if positional else None)

    fields: dict[str, Any] = {name: unquote(kwargs.get(name)) for name in _STRING_FIELDS}
    fields.update({name: _parse_bool(kwargs.get(name)) for name in _BOOL_FIELDS})
    fields.update({name: kwargs.get(name) for name in _RAW_FIELDS})
    fields["slow_speed"] = _parse_int(kwargs.get("slow_speed"))
    ctc_position = unquote(kwargs.get("ctc_position"))
    fields["ctc_position"] = ctc_position if ctc_position in ("nestled", "fixed") else None

    return Character(
        tag=tag,
        name=_display_name(raw_name, tag),
        color=unquote(kwargs.get("color")) or string_to_color(tag),
        defined_in_block_id=block_id,
        profile=profile,
        **fields,
    )


def extract_characters(block: Block) -> list[Character]:
    """Find every Character definition in a block, in source order."""
    characters: list[Character] = []
    content = block.content
    for match in CHARACTER_DEF_RE.finditer(content):
        args, _end = scan_call_arguments(content, match.end())
        characters.append(
            build_character(
                match.group(1),
                args,
                block.id,
                profile=find_profile(content, match.start()),
            )
        )
    return characters
