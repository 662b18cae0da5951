"""Block classification.

Tags blocks by their role in the Link graph (root, leaf, branching) and
partitions every input block into exactly one of story, screen-only or
config.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpygraph.analysis.patterns import LABEL_RE, MENU_RE, PYTHON_BLOCK_RE, split_lines
from rpygraph.analysis.usage import match_speaker
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Container, Sequence

    from rpygraph.analysis.extractor import GlobalTables
    from rpygraph.analysis.resolver import ResolvedReferences
    from rpygraph.config import AnalysisConfig
    from rpygraph.models import Block, JumpLocation

log = get_logger(__name__)


@dataclass
class BlockClassification:
    """Role tags and the story/screen-only/config partition."""

    root_block_ids: set[str] = field(default_factory=set)
    leaf_block_ids: set[str] = field(default_factory=set)
    branching_block_ids: set[str] = field(default_factory=set)
    story_block_ids: set[str] = field(default_factory=set)
    screen_only_block_ids: set[str] = field(default_factory=set)
    config_block_ids: set[str] = field(default_factory=set)
    block_types: dict[str, set[str]] = field(default_factory=dict)


def content_types(
    block: Block,
    jumps: Sequence[JumpLocation],
    characters: Container[str],
) -> set[str]:
    """Coarse content tags for renderer iconography."""
    types: set[str] = set()
    if jumps:
        types.add("jump")
    for line in split_lines(block.content):
        if LABEL_RE.match(line):
            types.add("label")
        if MENU_RE.match(line):
            types.add("menu")
        if PYTHON_BLOCK_RE.match(line):
            types.add("python")
        is_dialogue, _ = match_speaker(line, characters)
        if is_dialogue:
            types.add("dialogue")
    return types


def _has_menu(block: Block) -> bool:
    return any(MENU_RE.match(line) for line in split_lines(block.content))


def classify(
    blocks: Sequence[Block],
    tables: GlobalTables,
    refs: ResolvedReferences,
    config: AnalysisConfig,
) -> BlockClassification:
    """Classify every input block.

    Args:
        blocks: All input blocks, including ignored ones.
        tables: Phase-1 tables.
        refs: Phase-2 references.
        config: Analysis settings (special story paths).

    Returns:
        BlockClassification whose story/screen-only/config sets partition
        the input block ids.
    """
    result = BlockClassification()
    all_target_ids = {link.target_id for link in refs.links}
    # A block whose only label was overwritten by a later duplicate still defines a label.
    label_block_ids = {location.block_id for location in tables.labels.values()}
    label_block_ids.update(tables.first_labels)
    screen_block_ids = {screen.defined_in_block_id for screen in tables.screens.values()}
    special_paths = set(config.special_story_paths)
    scanned = set(tables.scanned_block_ids)

    for block in blocks:
        block_jumps = refs.jumps.get(block.id, [])

        if block.id not in all_target_ids:
            result.root_block_ids.add(block.id)
        if not block_jumps:
            result.leaf_block_ids.add(block.id)

        target_blocks = {
            tables.labels[jump.target].block_id
            for jump in block_jumps
            if not jump.is_dynamic and jump.target in tables.labels
        }
        if len(target_blocks) > 1 or (block.id in scanned and _has_menu(block)):
            result.branching_block_ids.add(block.id)

        if block.id in label_block_ids or block.file_path in special_paths:
            result.story_block_ids.add(block.id)
        elif block.id in screen_block_ids:
            result.screen_only_block_ids.add(block.id)
        else:
            result.config_block_ids.add(block.id)

        if block.id in scanned:
            types = content_types(block, block_jumps, tables.characters)
            if types:
                result.block_types[block.id] = types

    log.debug(
        "blocks_classified",
        roots=len(result.root_block_ids),
        leaves=len(result.leaf_block_ids),
        branching=len(result.branching_block_ids),
        story=len(result.story_block_ids),
        screen_only=len(result.screen_only_block_ids),
        config=len(result.config_block_ids),
    )
    return result
