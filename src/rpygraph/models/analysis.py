"""Aggregate analysis result.

All mappings are keyed by stable identity (label name, block id,
character tag, variable name) and populated in input order, so two runs
over the same blocks produce equal results. Set-valued fields serialize
as sorted lists in JSON mode, keeping the JSON form byte-identical
across interpreter runs.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_serializer

from rpygraph.models.script import (  # noqa: TC001 - pydantic needs these at runtime
    Character,
    DialogueLine,
    JumpLocation,
    LabelLocation,
    Link,
    RenpyScreen,
    Variable,
    VariableUsage,
)

_BLOCK_ID_SETS = (
    "root_block_ids",
    "leaf_block_ids",
    "branching_block_ids",
    "screen_only_block_ids",
    "story_block_ids",
    "config_block_ids",
    "defined_images",
)


class AnalysisResult(BaseModel):
    """Everything the engine knows about one snapshot of blocks."""

    labels: dict[str, LabelLocation] = Field(default_factory=dict)
    jumps: dict[str, list[JumpLocation]] = Field(default_factory=dict)
    links: list[Link] = Field(default_factory=list)
    invalid_jumps: dict[str, list[str]] = Field(default_factory=dict)
    first_labels: dict[str, str] = Field(default_factory=dict)

    root_block_ids: set[str] = Field(default_factory=set)
    leaf_block_ids: set[str] = Field(default_factory=set)
    branching_block_ids: set[str] = Field(default_factory=set)
    screen_only_block_ids: set[str] = Field(default_factory=set)
    story_block_ids: set[str] = Field(default_factory=set)
    config_block_ids: set[str] = Field(default_factory=set)

    characters: dict[str, Character] = Field(default_factory=dict)
    dialogue_lines: dict[str, list[DialogueLine]] = Field(default_factory=dict)
    character_usage: dict[str, int] = Field(default_factory=dict)
    variables: dict[str, Variable] = Field(default_factory=dict)
    variable_usages: dict[str, list[VariableUsage]] = Field(default_factory=dict)
    screens: dict[str, RenpyScreen] = Field(default_factory=dict)
    defined_images: set[str] = Field(default_factory=set)
    block_types: dict[str, set[str]] = Field(default_factory=dict)

    @field_serializer(*_BLOCK_ID_SETS, when_used="json")
    def _serialize_sets(self, value: set[str]) -> list[str]:
        return sorted(value)

    @field_serializer("block_types", when_used="json")
    def _serialize_block_types(self, value: dict[str, set[str]]) -> dict[str, list[str]]:
        return {block_id: sorted(tags) for block_id, tags in value.items()}
