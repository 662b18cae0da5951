"""Character and variable usage indexing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpygraph.analysis.patterns import DIALOGUE_RE, NARRATION_RE, sanitize_line, split_lines
from rpygraph.models import DialogueLine, VariableUsage
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Container, Sequence

    from rpygraph.analysis.extractor import GlobalTables
    from rpygraph.models import Block, Variable

log = get_logger(__name__)


@dataclass
class UsageIndex:
    """Who speaks where, and which lines touch which variables."""

    character_usage: dict[str, int] = field(default_factory=dict)
    dialogue_lines: dict[str, list[DialogueLine]] = field(default_factory=dict)
    variable_usages: dict[str, list[VariableUsage]] = field(default_factory=dict)


def match_speaker(line: str, characters: Container[str]) -> tuple[bool, str | None]:
    """Classify a raw line as dialogue.

    Returns:
        ``(True, tag)`` for a known character speaking, ``(True, None)``
        for bare narration, ``(False, None)`` otherwise. Any line opening
        with a string is narration, quoted menu choices included.
    """
    dialogue = DIALOGUE_RE.match(line)
    if dialogue and dialogue.group(1) in characters:
        return True, dialogue.group(1)
    if NARRATION_RE.match(line):
        return True, None
    return False, None


def _usage_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![A-Za-z0-9_]){re.escape(name)}(?![A-Za-z0-9_])")


def _is_definition_site(variable: Variable, block_id: str, line_no: int) -> bool:
    return variable.defined_in_block_id == block_id and variable.line == line_no


def index_usage(blocks: Sequence[Block], tables: GlobalTables) -> UsageIndex:
    """Count dialogue per character and find variable usage sites.

    Every defined character starts at zero so unused ones still appear;
    every known variable gets a (possibly empty) usage list. At most one
    usage is recorded per (block, line) per variable, and a variable's
    own definition line is never a usage.
    """
    index = UsageIndex(
        character_usage=dict.fromkeys(tables.characters, 0),
        variable_usages={name: [] for name in tables.variables},
    )
    patterns = {name: _usage_pattern(name) for name in tables.variables}
    scanned = set(tables.scanned_block_ids)

    for block in blocks:
        if block.id not in scanned:
            continue
        for i, line in enumerate(split_lines(block.content)):
            line_no = i + 1
            _, tag = match_speaker(line, tables.characters)
            if tag is not None:
                index.dialogue_lines.setdefault(block.id, []).append(
                    DialogueLine(line=line_no, tag=tag)
                )
                index.character_usage[tag] += 1

            sanitized = sanitize_line(line)
            for name, pattern in patterns.items():
                if not pattern.search(sanitized):
                    continue
                if _is_definition_site(tables.variables[name], block.id, line_no):
                    continue
                # One search per line, so one entry per (block, line) at most.
                index.variable_usages[name].append(VariableUsage(block_id=block.id, line=line_no))

    log.debug(
        "usage_indexed",
        dialogue_lines=sum(len(v) for v in index.dialogue_lines.values()),
        variables_used=sum(1 for v in index.variable_usages.values() if v),
    )
    return index
