"""Script-level models.

These models describe the input blocks and the structural facts the
lexical extractor and cross-reference resolver recover from them:
labels, jumps, links, characters, variables, screens, and dialogue.

Line numbers are 1-based throughout. Label columns are 1-based; jump
columns are 0-based half-open offsets into the raw line so editors can
decorate the target word directly.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field


class Block(BaseModel):
    """An independently edited fragment of script text.

    Owned by the caller. The engine only reads ``content`` (and
    ``file_path`` for classification); ``title``, ``width`` and
    ``height`` feed the layout and label-node captions.
    """

    id: str = Field(min_length=1)
    content: str = ""
    file_path: str | None = Field(
        default=None, validation_alias=AliasChoices("file_path", "filePath")
    )
    title: str | None = None
    width: float | None = None
    height: float | None = None


class LabelLocation(BaseModel):
    """Where a label (or named menu) is defined."""

    block_id: str
    label: str
    line: int
    column: int
    type: Literal["label", "menu"] = "label"


class JumpLocation(BaseModel):
    """A single ``jump``/``call`` occurrence."""

    block_id: str
    target: str
    line: int
    column_start: int
    column_end: int
    type: Literal["jump", "call"]
    is_dynamic: bool = False


class Link(BaseModel):
    """A resolved, deduplicated edge between two different blocks."""

    source_id: str
    target_id: str
    target_label: str


class Character(BaseModel):
    """A ``define <tag> = Character(...)`` definition.

    Presentation fields mirror the Ren'Py keyword arguments of the same
    name and stay ``None`` when absent or unparseable.
    """

    tag: str
    name: str
    color: str
    defined_in_block_id: str
    profile: str | None = None
    image: str | None = None
    who_style: str | None = None
    who_prefix: str | None = None
    who_suffix: str | None = None
    what_color: str | None = None
    what_style: str | None = None
    what_prefix: str | None = None
    what_suffix: str | None = None
    slow: bool | None = None
    slow_speed: int | None = None
    slow_abortable: bool | None = None
    all_at_once: bool | None = None
    window_style: str | None = None
    ctc: str | None = None
    ctc_position: Literal["nestled", "fixed"] | None = None
    interact: bool | None = None
    afm: bool | None = None
    what_properties: str | None = None
    window_properties: str | None = None


class Variable(BaseModel):
    """A ``define``/``default`` statement. ``initial_value`` is raw source."""

    type: Literal["define", "default"]
    name: str
    initial_value: str
    defined_in_block_id: str
    line: int


class VariableUsage(BaseModel):
    """A line referencing a variable outside its definition site."""

    block_id: str
    line: int


class RenpyScreen(BaseModel):
    """A ``screen name(params):`` definition."""

    name: str
    parameters: str = ""
    defined_in_block_id: str
    line: int


class DialogueLine(BaseModel):
    """A line spoken by a known character."""

    line: int
    tag: str
