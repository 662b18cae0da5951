"""Lexical extraction (phase 1).

Scans each block independently for labels, named menus, characters,
variables, screens and images, then merges the per-block facts into the
global tables that phase 2 resolves references against. The per-block
scan has no cross-block dependency; only :func:`merge_block_facts`
touches shared state, and it is applied in block order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpygraph.analysis.characters import extract_characters
from rpygraph.analysis.patterns import (
    DEFINE_DEFAULT_RE,
    IMAGE_DEF_RE,
    LABEL_RE,
    MENU_LABEL_RE,
    SCREEN_RE,
    split_lines,
)
from rpygraph.models import Character, LabelLocation, RenpyScreen, Variable
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rpygraph.config import AnalysisConfig
    from rpygraph.models import Block

log = get_logger(__name__)


@dataclass
class BlockFacts:
    """Structural facts found in a single block, in source order."""

    block_id: str
    labels: list[LabelLocation] = field(default_factory=list)
    characters: list[Character] = field(default_factory=list)
    variables: list[Variable] = field(default_factory=list)
    screens: list[RenpyScreen] = field(default_factory=list)
    images: list[str] = field(default_factory=list)

    @property
    def first_label(self) -> str | None:
        """Name of the first plain label header in the block."""
        for location in self.labels:
            if location.type == "label":
                return location.label
        return None


@dataclass
class GlobalTables:
    """Merged result of phase 1 across all blocks.

    Attributes:
        labels: Label name -> location, after precedence rules.
        first_labels: Block id -> first label defined in that block.
        characters: Tag -> character (last definition wins).
        variables: Name -> variable (last definition wins, character
            tags removed).
        screens: Name -> screen (last definition wins).
        defined_images: Space-joined image names.
        scanned_block_ids: Blocks that were not skipped, in input order.
    """

    labels: dict[str, LabelLocation] = field(default_factory=dict)
    first_labels: dict[str, str] = field(default_factory=dict)
    characters: dict[str, Character] = field(default_factory=dict)
    variables: dict[str, Variable] = field(default_factory=dict)
    screens: dict[str, RenpyScreen] = field(default_factory=dict)
    defined_images: set[str] = field(default_factory=set)
    scanned_block_ids: list[str] = field(default_factory=list)


def extract_block(block: Block) -> BlockFacts:
    """Run both phase-1 scans over one block."""
    facts = BlockFacts(block_id=block.id, characters=extract_characters(block))

    for index, line in enumerate(split_lines(block.content)):
        line_no = index + 1

        label_match = LABEL_RE.match(line)
        if label_match:
            name = label_match.group(1)
            facts.labels.append(
                LabelLocation(
                    block_id=block.id,
                    label=name,
                    line=line_no,
                    column=label_match.start(1) + 1,
                    type="label",
                )
            )

        menu_match = MENU_LABEL_RE.match(line)
        if menu_match:
            name = menu_match.group(1)
            facts.labels.append(
                LabelLocation(
                    block_id=block.id,
                    label=name,
                    line=line_no,
                    column=menu_match.start(1) + 1,
                    type="menu",
                )
            )

        screen_match = SCREEN_RE.match(line)
        if screen_match:
            params = screen_match.group(2)
            facts.screens.append(
                RenpyScreen(
                    name=screen_match.group(1),
                    parameters=params.strip() if params else "",
                    defined_in_block_id=block.id,
                    line=line_no,
                )
            )

        var_match = DEFINE_DEFAULT_RE.match(line)
        if var_match:
            facts.variables.append(
                Variable(
                    type=var_match.group(1),
                    name=var_match.group(2),
                    initial_value=var_match.group(3).strip(),
                    defined_in_block_id=block.id,
                    line=line_no,
                )
            )

        image_match = IMAGE_DEF_RE.match(line)
        if image_match:
            facts.images.append(" ".join(image_match.group(1).split()))

    return facts


def register_label(labels: dict[str, LabelLocation], location: LabelLocation) -> None:
    """Insert a label into the global table.

    Later definitions overwrite earlier ones, except that a named menu
    never replaces a plain label of the same name.
    """
    existing = labels.get(location.label)
    if location.type == "menu" and existing is not None and existing.type == "label":
        return
    labels[location.label] = location


def merge_block_facts(tables: GlobalTables, facts: BlockFacts) -> None:
    """Fold one block's facts into the global tables."""
    tables.scanned_block_ids.append(facts.block_id)
    for location in facts.labels:
        register_label(tables.labels, location)
    first = facts.first_label
    if first is not None:
        tables.first_labels[facts.block_id] = first
    for character in facts.characters:
        tables.characters[character.tag] = character
    for variable in facts.variables:
        tables.variables[variable.name] = variable
    for screen in facts.screens:
        tables.screens[screen.name] = screen
    tables.defined_images.update(facts.images)


def extract(blocks: Sequence[Block], config: AnalysisConfig) -> GlobalTables:
    """Phase 1: build the global tables from every non-ignored block.

    Args:
        blocks: Input blocks in caller order.
        config: Analysis settings (ignored paths).

    Returns:
        The complete global tables. Phase 2 must not start before this
        returns.
    """
    tables = GlobalTables()
    for block in blocks:
        if config.is_ignored(block.file_path):
            log.debug("block_skipped", block_id=block.id, file_path=block.file_path)
            continue
        merge_block_facts(tables, extract_block(block))

    # A name defined as a Character is never also a plain variable.
    for tag in tables.characters:
        tables.variables.pop(tag, None)

    log.debug(
        "tables_extracted",
        blocks=len(tables.scanned_block_ids),
        labels=len(tables.labels),
        characters=len(tables.characters),
        variables=len(tables.variables),
        screens=len(tables.screens),
        images=len(tables.defined_images),
    )
    return tables
