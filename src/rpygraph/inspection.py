"""Project inspection and quality analysis.

Summarizes an analyzed project: partition counts, word counts, who
speaks the most, and the structural problems worth looking at.
Everything is derived from an existing AnalysisResult and RouteAnalysis;
nothing here re-parses the script beyond counting words.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from rpygraph.analysis.patterns import split_lines
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rpygraph.models import AnalysisResult, Block, RouteAnalysis

log = get_logger(__name__)

# Dialogue (`e "..."`) and narration (`"..."`) string literals.
_SPOKEN_TEXT_RE = re.compile(r'(?:[a-zA-Z0-9_]+\s)?"((?:\\.|[^"\\])*)"')

Severity = Literal["warn", "info"]


@dataclass
class Diagnostic:
    """A single finding about the project."""

    severity: Severity
    code: str
    message: str
    block_id: str | None = None


@dataclass
class PartitionCounts:
    """How many blocks landed in each partition and role."""

    story: int = 0
    screen_only: int = 0
    config: int = 0
    root: int = 0
    leaf: int = 0
    branching: int = 0


@dataclass
class CharacterStats:
    """Usage of one defined character."""

    tag: str
    name: str
    color: str
    lines: int
    words: int


@dataclass
class ProjectReport:
    """Complete project inspection report."""

    total_blocks: int
    partitions: PartitionCounts
    label_count: int
    jump_count: int
    link_count: int
    total_words: int
    block_words: dict[str, int] = field(default_factory=dict)
    characters: list[CharacterStats] = field(default_factory=list)
    unresolved: list[tuple[str, str]] = field(default_factory=list)
    route_count: int = 0
    longest_route: int = 0
    complexity: int = 1
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "warn"]


def count_words(text: str) -> int:
    """Count whitespace-separated words inside dialogue and narration strings."""
    return sum(len(match.group(1).split()) for match in _SPOKEN_TEXT_RE.finditer(text))


def inspect_project(
    blocks: Sequence[Block],
    result: AnalysisResult,
    routes: RouteAnalysis,
) -> ProjectReport:
    """Build the inspection report for one analyzed snapshot.

    Args:
        blocks: The blocks that were analyzed, in caller order.
        result: Output of ``analyze``.
        routes: Output of ``analyze_routes``.

    Returns:
        ProjectReport. Diagnostics are data; nothing raises.
    """
    block_words = {block.id: count_words(block.content) for block in blocks}

    partitions = PartitionCounts(
        story=len(result.story_block_ids),
        screen_only=len(result.screen_only_block_ids),
        config=len(result.config_block_ids),
        root=len(result.root_block_ids),
        leaf=len(result.leaf_block_ids),
        branching=len(result.branching_block_ids),
    )

    unresolved = [
        (block.id, target)
        for block in blocks
        for target in result.invalid_jumps.get(block.id, [])
    ]

    longest = max((len(route.link_ids) for route in routes.identified_routes), default=0)

    report = ProjectReport(
        total_blocks=len(blocks),
        partitions=partitions,
        label_count=len(result.labels),
        jump_count=sum(len(jumps) for jumps in result.jumps.values()),
        link_count=len(result.links),
        total_words=sum(block_words.values()),
        block_words=block_words,
        characters=_character_stats(blocks, result),
        unresolved=unresolved,
        route_count=len(routes.identified_routes),
        longest_route=longest,
        complexity=_complexity(result, routes),
        diagnostics=_diagnostics(blocks, result, unresolved),
    )

    log.info(
        "inspection_complete",
        blocks=report.total_blocks,
        routes=report.route_count,
        diagnostics=len(report.diagnostics),
    )
    return report


def _character_stats(blocks: Sequence[Block], result: AnalysisResult) -> list[CharacterStats]:
    """Rank characters by dialogue lines, then words spoken."""
    words: Counter[str] = Counter()
    by_id = {block.id: block for block in blocks}
    for block_id, dialogue in result.dialogue_lines.items():
        block = by_id.get(block_id)
        if block is None:
            continue
        lines = split_lines(block.content)
        for entry in dialogue:
            if 0 < entry.line <= len(lines):
                words[entry.tag] += count_words(lines[entry.line - 1])

    stats = [
        CharacterStats(
            tag=tag,
            name=character.name,
            color=character.color,
            lines=result.character_usage.get(tag, 0),
            words=words[tag],
        )
        for tag, character in result.characters.items()
    ]
    return sorted(stats, key=lambda s: (-s.lines, -s.words, s.tag))


def _complexity(result: AnalysisResult, routes: RouteAnalysis) -> int:
    """Rough 1-10 branching complexity score."""
    raw = (
        (len(result.branching_block_ids) * 1.5 + len(routes.identified_routes) * 2)
        / max(1, len(result.labels))
        * 5
    )
    return min(10, max(1, round(raw)))


def _diagnostics(
    blocks: Sequence[Block],
    result: AnalysisResult,
    unresolved: Sequence[tuple[str, str]],
) -> list[Diagnostic]:
    diagnostics = [
        Diagnostic(
            severity="warn",
            code="unresolved_reference",
            message=f"Jump or call to undefined label '{target}'",
            block_id=block_id,
        )
        for block_id, target in unresolved
    ]

    for block in blocks:
        for jump in result.jumps.get(block.id, []):
            if jump.is_dynamic:
                diagnostics.append(
                    Diagnostic(
                        severity="info",
                        code="dynamic_jump",
                        message=f"Dynamic {jump.type} on line {jump.line} cannot be followed",
                        block_id=block.id,
                    )
                )

    for tag, character in result.characters.items():
        if result.character_usage.get(tag, 0) == 0:
            diagnostics.append(
                Diagnostic(
                    severity="info",
                    code="unused_character",
                    message=f"Character '{tag}' ({character.name}) never speaks",
                    block_id=character.defined_in_block_id,
                )
            )

    return diagnostics
