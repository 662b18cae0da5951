"""Lexical patterns shared by the analysis passes.

Every scan in the engine is a line-oriented pattern match; this module
keeps the patterns, the colour palette, and the line sanitizer in one
place so the passes agree on what a label, jump or dialogue line is.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

LABEL_RE = re.compile(r"^\s*label\s+([a-zA-Z0-9_]+)\s*(?:\(.*\))?\s*:")
MENU_RE = re.compile(r"^\s*menu(?:\s+[a-zA-Z0-9_]+)?\s*:")
MENU_LABEL_RE = re.compile(r"^\s*menu\s+([a-zA-Z0-9_]+)\s*:")
SCREEN_RE = re.compile(r"^\s*screen\s+([a-zA-Z0-9_]+)\s*(\(.*\))?\s*:")
DEFINE_DEFAULT_RE = re.compile(
    r"^\s*(define|default)\s+([a-zA-Z0-9_.]+)\s*=\s*(?!\s*Character\s*\()(.+)"
)
IMAGE_DEF_RE = re.compile(r"^\s*image\s+([a-zA-Z0-9_ ]+?)\s*=")
DIALOGUE_RE = re.compile(r'^\s*([a-zA-Z0-9_]+)\s+"')
NARRATION_RE = re.compile(r'^\s*"')
PYTHON_BLOCK_RE = re.compile(r"^\s*(?:init(?:\s+-?\d+)?\s+)?python\b[^:]*:")

# Matched against sanitized lines only.
JUMP_CALL_RE = re.compile(r"\b(jump|call)\s+([a-zA-Z0-9_]+)")
EXPRESSION_TARGET_RE = re.compile(r"\s+([a-zA-Z0-9_.]+)")
TERMINAL_STATEMENT_RE = re.compile(r"^(?:(?:jump|call)\s+[a-zA-Z0-9_]|return\b)")

# Whole-block pattern; argument lists are scanned separately because they
# may span lines and nest parentheses.
CHARACTER_DEF_RE = re.compile(
    r"^[ \t]*define[ \t]+([a-zA-Z0-9_]+)\s*=\s*Character\s*\(", re.MULTILINE
)

PROFILE_PREFIX = "# profile:"

_STRING_LITERAL_RE = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")

# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------

PALETTE = (
    "#E57373",
    "#F06292",
    "#BA68C8",
    "#9575CD",
    "#7986CB",
    "#64B5F6",
    "#4FC3F7",
    "#4DD0E1",
    "#4DB6AC",
    "#81C784",
    "#AED581",
    "#DCE775",
    "#FFF176",
    "#FFD54F",
    "#FFB74D",
    "#FF8A65",
    "#A1887F",
    "#90A4AE",
)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def string_hash(text: str) -> int:
    """Rolling hash ``h = code + ((h << 5) - h)`` with 32-bit shift semantics.

    Iterates UTF-16 code units and truncates only the shifted operand to
    32 bits, so colours stay stable for projects whose character colours
    were assigned by existing Ren'Py editor tooling.
    """
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        h = code + (_to_int32(_to_int32(h) << 5) - h)
    return h


def string_to_color(text: str) -> str:
    """Deterministic palette colour for a string (e.g. a character tag)."""
    return PALETTE[abs(string_hash(text)) % len(PALETTE)]


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


# ---------------------------------------------------------------------------
# Sanitizing
# ---------------------------------------------------------------------------


def sanitize_line(line: str) -> str:
    """Blank out string literals and drop a trailing comment.

    Quoted spans are replaced by spaces of the same length, so every
    column in the result still refers to the same character in ``line``.
    A ``#`` outside a string starts a comment; it and everything after it
    is removed.
    """
    blanked = _STRING_LITERAL_RE.sub(lambda m: " " * len(m.group(0)), line)
    comment = blanked.find("#")
    if comment != -1:
        blanked = blanked[:comment]
    return blanked


def indentation(line: str) -> int:
    """Width of the leading whitespace of ``line``."""
    return len(line) - len(line.lstrip())


def split_lines(content: str) -> list[str]:
    # "\n" only: line numbers must match the editor's.
    return content.split("\n")
