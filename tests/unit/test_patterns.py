"""Tests for shared lexical patterns, colours and the line sanitizer."""

from __future__ import annotations

from rpygraph.analysis.patterns import (
    DEFINE_DEFAULT_RE,
    LABEL_RE,
    MENU_LABEL_RE,
    MENU_RE,
    PALETTE,
    PYTHON_BLOCK_RE,
    indentation,
    palette_color,
    sanitize_line,
    split_lines,
    string_hash,
    string_to_color,
)


class TestStringHash:
    """Tests for the rolling string hash."""

    def test_empty_string(self) -> None:
        """Empty input hashes to zero."""
        assert string_hash("") == 0

    def test_single_character(self) -> None:
        """A single character hashes to its code unit."""
        assert string_hash("a") == 97

    def test_two_characters(self) -> None:
        """h = 98 + ((97 << 5) - 97)."""
        assert string_hash("ab") == 3105

    def test_iterates_utf16_code_units(self) -> None:
        """Astral characters contribute both surrogate halves."""
        # 0xD83D, then 0xDE00 + ((0xD83D << 5) - 0xD83D)
        assert string_hash("\N{GRINNING FACE}") == 1772899

    def test_long_strings_stay_deterministic(self) -> None:
        """Long inputs overflow the shift but hash the same every time."""
        text = "a_rather_long_character_tag_name" * 4
        assert string_hash(text) == string_hash(text)


class TestStringToColor:
    """Tests for palette colour selection."""

    def test_palette_has_eighteen_colours(self) -> None:
        """Palette size is fixed."""
        assert len(PALETTE) == 18

    def test_known_colours(self) -> None:
        """Colour index is abs(hash) mod 18."""
        assert string_to_color("") == PALETTE[0]
        assert string_to_color("a") == PALETTE[97 % 18]
        assert string_to_color("ab") == PALETTE[3105 % 18]

    def test_result_is_in_palette(self) -> None:
        """Any tag maps into the palette."""
        for tag in ("e", "mc", "narrator", "x" * 200, "é"):
            assert string_to_color(tag) in PALETTE

    def test_palette_color_wraps(self) -> None:
        """Route colours cycle through the palette."""
        assert palette_color(0) == PALETTE[0]
        assert palette_color(18) == PALETTE[0]
        assert palette_color(20) == PALETTE[2]


class TestSanitizeLine:
    """Tests for string and comment blanking."""

    def test_strips_trailing_comment(self) -> None:
        """Everything from # onward is removed."""
        assert sanitize_line("jump start # go back") == "jump start "

    def test_blanks_double_quoted_strings(self) -> None:
        """String contents become spaces of equal length."""
        assert sanitize_line('say "x"') == "say    "

    def test_hash_inside_string_is_not_a_comment(self) -> None:
        """A # inside quotes does not start a comment."""
        assert sanitize_line('e "a#b" # c') == "e" + " " * 7

    def test_blanks_single_quoted_strings(self) -> None:
        """Single-quoted strings are blanked too."""
        assert sanitize_line("$ name = 'Bob' # who").rstrip() == "$ name ="

    def test_escaped_quote_stays_inside_string(self) -> None:
        """Backslash-escaped quotes do not end the literal."""
        line = r'e "say \"jump away\" now"'
        assert sanitize_line(line) == "e" + " " * (len(line) - 1)

    def test_columns_preserved(self) -> None:
        """Unquoted text keeps its column."""
        line = '    e "jump there" jump real'
        sanitized = sanitize_line(line)
        assert len(sanitized) == len(line)
        assert sanitized.index("jump") == line.index("jump real")


class TestLineHelpers:
    """Tests for small line utilities."""

    def test_split_lines_keeps_trailing_empty_line(self) -> None:
        """Splitting is on newline only."""
        assert split_lines("a\nb\n") == ["a", "b", ""]

    def test_indentation(self) -> None:
        """Indentation counts leading whitespace."""
        assert indentation("    jump x") == 4
        assert indentation("jump x") == 0


class TestLinePatterns:
    """Tests for the line-level regexes."""

    def test_label_with_parameters(self) -> None:
        """Label headers may take parameters."""
        match = LABEL_RE.match('label ending(kind="good"):')
        assert match is not None
        assert match.group(1) == "ending"

    def test_label_requires_colon(self) -> None:
        """A label without a colon is not a header."""
        assert LABEL_RE.match("label start") is None

    def test_named_and_unnamed_menus(self) -> None:
        """MENU_RE matches both forms; MENU_LABEL_RE only named ones."""
        assert MENU_RE.match("    menu:")
        assert MENU_RE.match("    menu choose_path:")
        assert MENU_LABEL_RE.match("    menu:") is None
        named = MENU_LABEL_RE.match("    menu choose_path:")
        assert named is not None
        assert named.group(1) == "choose_path"

    def test_define_excludes_character(self) -> None:
        """Character definitions are not variables."""
        assert DEFINE_DEFAULT_RE.match('define e = Character("Eileen")') is None
        match = DEFINE_DEFAULT_RE.match("default points = 0")
        assert match is not None
        assert match.groups() == ("default", "points", "0")

    def test_define_excludes_dotted_and_default_characters(self) -> None:
        """Dotted names, default statements and extra spacing are excluded too."""
        assert DEFINE_DEFAULT_RE.match('define gui.e = Character("X")') is None
        assert DEFINE_DEFAULT_RE.match('default f = Character("Y")') is None
        assert DEFINE_DEFAULT_RE.match('define e =    Character ("Z")') is None
        match = DEFINE_DEFAULT_RE.match("define gui.text_size = 22")
        assert match is not None
        assert match.group(3) == "22"

    def test_python_block_forms(self) -> None:
        """Plain, init and prioritized python blocks all match."""
        assert PYTHON_BLOCK_RE.match("python:")
        assert PYTHON_BLOCK_RE.match("init python:")
        assert PYTHON_BLOCK_RE.match("init -5 python hide:")
        assert PYTHON_BLOCK_RE.match("$ python_var = 1") is None
