"""Cross-reference resolution (phase 2).

Finds every ``jump``/``call`` occurrence and resolves static targets
against the complete global label table, producing the deduplicated
block-level Link graph and the per-block list of unresolved targets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpygraph.analysis.patterns import (
    EXPRESSION_TARGET_RE,
    JUMP_CALL_RE,
    sanitize_line,
    split_lines,
)
from rpygraph.models import JumpLocation, Link
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rpygraph.analysis.extractor import GlobalTables
    from rpygraph.models import Block

log = get_logger(__name__)

_DYNAMIC_KEYWORD = "expression"


@dataclass
class ResolvedReferences:
    """Output of phase 2.

    Attributes:
        jumps: Block id -> every jump/call occurrence, in source order.
        links: One Link per distinct (source block, target block) pair.
        invalid_jumps: Block id -> unresolved static targets, first-seen
            order, no duplicates. Only blocks with at least one entry.
    """

    jumps: dict[str, list[JumpLocation]] = field(default_factory=dict)
    links: list[Link] = field(default_factory=list)
    invalid_jumps: dict[str, list[str]] = field(default_factory=dict)


def scan_jumps(block: Block) -> list[JumpLocation]:
    """Find jump/call statements in a block.

    Matching runs on sanitized lines, so ``jump`` inside dialogue or a
    comment is never picked up, while columns still index the raw line.
    ``jump expression <name>`` is recorded as dynamic with ``<name>`` as
    its target; when no name follows (for instance a string literal) the
    target is the word ``expression`` itself. ``call screen <name>`` is an
    ordinary occurrence whose target is ``screen``.
    """
    jumps: list[JumpLocation] = []
    for index, line in enumerate(split_lines(block.content)):
        sanitized = sanitize_line(line)
        for match in JUMP_CALL_RE.finditer(sanitized):
            target = match.group(2)
            start, end = match.span(2)
            is_dynamic = target == _DYNAMIC_KEYWORD
            if is_dynamic:
                expr = EXPRESSION_TARGET_RE.match(sanitized, end)
                if expr:
                    target = expr.group(1)
                    start, end = expr.span(1)
            jumps.append(
                JumpLocation(
                    block_id=block.id,
                    target=target,
                    line=index + 1,
                    column_start=start,
                    column_end=end,
                    type=match.group(1),
                    is_dynamic=is_dynamic,
                )
            )
    return jumps


def resolve(blocks: Sequence[Block], tables: GlobalTables) -> ResolvedReferences:
    """Phase 2: resolve every static jump against the global label table.

    Args:
        blocks: Input blocks in caller order.
        tables: Complete phase-1 tables.

    Returns:
        Jumps, deduplicated links and invalid jumps.
    """
    scanned = set(tables.scanned_block_ids)
    resolved = ResolvedReferences()
    link_index: dict[tuple[str, str], Link] = {}

    for block in blocks:
        if block.id not in scanned:
            continue
        block_jumps = scan_jumps(block)
        resolved.jumps[block.id] = block_jumps

        for jump in block_jumps:
            if jump.is_dynamic:
                continue
            location = tables.labels.get(jump.target)
            if location is None:
                invalid = resolved.invalid_jumps.setdefault(block.id, [])
                if jump.target not in invalid:
                    invalid.append(jump.target)
                continue
            if location.block_id == block.id:
                continue
            key = (block.id, location.block_id)
            if key not in link_index:
                link_index[key] = Link(
                    source_id=block.id,
                    target_id=location.block_id,
                    target_label=jump.target,
                )

    resolved.links = list(link_index.values())
    log.debug(
        "references_resolved",
        jumps=sum(len(j) for j in resolved.jumps.values()),
        links=len(resolved.links),
        blocks_with_invalid=len(resolved.invalid_jumps),
    )
    return resolved
