"""Tests for jump scanning and cross-reference resolution."""

from __future__ import annotations

from rpygraph.analysis.extractor import extract
from rpygraph.analysis.resolver import resolve, scan_jumps
from rpygraph.config import AnalysisConfig
from rpygraph.models import Block


def _resolve(*blocks: Block):
    block_list = list(blocks)
    return resolve(block_list, extract(block_list, AnalysisConfig()))


class TestScanJumps:
    """Tests for per-block jump discovery."""

    def test_columns_are_zero_based_half_open(self) -> None:
        """Columns index the target word in the raw line."""
        jumps = scan_jumps(Block(id="b", content="label a:\n    jump ending\n"))

        assert len(jumps) == 1
        jump = jumps[0]
        assert (jump.target, jump.line, jump.type) == ("ending", 2, "jump")
        assert (jump.column_start, jump.column_end) == (9, 15)
        assert "    jump ending"[jump.column_start : jump.column_end] == "ending"

    def test_call_recorded(self) -> None:
        """call statements are recorded with type call."""
        jumps = scan_jumps(Block(id="b", content="call helper\n"))
        assert [(j.target, j.type) for j in jumps] == [("helper", "call")]

    def test_strings_and_comments_ignored(self) -> None:
        """jump inside dialogue or comments is not a jump."""
        content = 'e "Do not jump there."\n# jump nowhere\n$ msg = "call me"\n'
        assert scan_jumps(Block(id="b", content=content)) == []

    def test_jump_after_string_keeps_raw_columns(self) -> None:
        """Columns stay aligned after a blanked string."""
        line = '"Go left": jump left_path'
        jumps = scan_jumps(Block(id="b", content=line))
        assert line[jumps[0].column_start : jumps[0].column_end] == "left_path"

    def test_dynamic_jump_targets_following_identifier(self) -> None:
        """jump expression <name> records <name> as a dynamic target."""
        line = "jump expression target_var"
        jumps = scan_jumps(Block(id="b", content=line))

        assert len(jumps) == 1
        assert jumps[0].is_dynamic is True
        assert jumps[0].target == "target_var"
        assert (jumps[0].column_start, jumps[0].column_end) == (16, 26)

    def test_dynamic_jump_without_identifier(self) -> None:
        """A string expression leaves the literal keyword as target."""
        jumps = scan_jumps(Block(id="b", content='jump expression "chapter_" + n'))
        assert jumps[0].is_dynamic is True
        assert jumps[0].target == "expression"

    def test_call_screen_is_recorded(self) -> None:
        """call screen is an ordinary call whose target is the word screen."""
        jumps = scan_jumps(Block(id="b", content="    call screen inventory\n"))

        assert [(j.type, j.target, j.is_dynamic) for j in jumps] == [("call", "screen", False)]
        assert (jumps[0].column_start, jumps[0].column_end) == (9, 15)

    def test_call_screen_target_is_unresolved(self) -> None:
        """Without a label named screen the target is reported as invalid."""
        refs = _resolve(Block(id="b", content="label start:\n    call screen inventory\n"))

        assert len(refs.jumps["b"]) == 1
        assert refs.invalid_jumps == {"b": ["screen"]}


class TestResolve:
    """Tests for link and invalid-jump resolution."""

    def test_links_deduplicated_per_block_pair(self) -> None:
        """Several jumps into the same block make one link."""
        refs = _resolve(
            Block(id="a", content="label start:\n    jump one\n    jump two\n"),
            Block(id="b", content="label one:\n    return\nlabel two:\n    return\n"),
        )

        assert len(refs.links) == 1
        link = refs.links[0]
        assert (link.source_id, link.target_id, link.target_label) == ("a", "b", "one")

    def test_same_block_jump_makes_no_link(self) -> None:
        """Jumps within a block are not links."""
        refs = _resolve(Block(id="a", content="label start:\n    jump start\n"))
        assert refs.links == []
        assert refs.invalid_jumps == {}

    def test_unresolved_targets_deduplicated(self) -> None:
        """Unresolved targets are listed once per block, in order."""
        refs = _resolve(
            Block(id="a", content="jump nowhere\njump missing\njump nowhere\n"),
            Block(id="b", content="label fine:\n"),
        )
        assert refs.invalid_jumps == {"a": ["nowhere", "missing"]}

    def test_dynamic_jumps_never_invalid(self) -> None:
        """Dynamic jumps are recorded but neither resolved nor invalid."""
        refs = _resolve(Block(id="a", content="jump expression somewhere\n"))

        assert refs.invalid_jumps == {}
        assert refs.links == []
        assert len(refs.jumps["a"]) == 1

    def test_forward_reference_across_blocks(self) -> None:
        """A jump to a label defined in a later block resolves."""
        refs = _resolve(
            Block(id="a", content="jump later\n"),
            Block(id="b", content="label later:\n"),
        )
        assert [(link.source_id, link.target_id) for link in refs.links] == [("a", "b")]

    def test_jump_to_named_menu_resolves(self) -> None:
        """Named menus are valid jump targets."""
        refs = _resolve(
            Block(id="a", content="jump choose\n"),
            Block(id="b", content="label s:\n    menu choose:\n        \"x\":\n            pass\n"),
        )
        assert refs.invalid_jumps == {}
        assert refs.links[0].target_label == "choose"

    def test_ignored_block_targets_are_invalid(self) -> None:
        """Labels in ignored blocks do not resolve."""
        refs = _resolve(
            Block(id="a", content="jump debug_room\n"),
            Block(id="d", content="label debug_room:\n", file_path="debug_placeholders.rpy"),
        )
        assert refs.invalid_jumps == {"a": ["debug_room"]}
        assert "d" not in refs.jumps
