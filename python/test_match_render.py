"""
Tests for terminal rendering and report text.
"""

import re

from builtin_tables import default_table, demo_table
from gridstroke import CellPosition, CharGrid, MatchKind, Table, match_grid
from match_render import describe_table, format_report, render_kind_map, render_match_map

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


class TestMatchMap:
    """Tests for the colored match map."""

    def test_glyphs_preserved(self) -> None:
        """With escape codes stripped, the map is the diagram padded to the grid width."""
        grid = CharGrid.from_text(".-\n|")
        results = match_grid(default_table(), grid)
        assert strip_ansi(render_match_map(grid, results)) == ".-\n| "

    def test_unmatched_glyphs_kept(self) -> None:
        """Glyphs no rule matched still appear."""
        grid = CharGrid.from_text("x -")
        assert strip_ansi(render_match_map(grid, {})) == "x -"

    def test_highlight_blank_cell(self) -> None:
        """Highlighting a blank cell keeps the text unchanged."""
        grid = CharGrid.from_text("x -")
        plain = strip_ansi(render_match_map(grid, {}, highlight_pos=CellPosition(0, 1)))
        assert plain == "x -"

    def test_every_color_path(self) -> None:
        """Highlighted, matched and unmatched glyphs all keep their text."""
        grid = CharGrid.from_text("+--+\n|  |x\n+--+")
        results = match_grid(default_table(), grid)
        kinds = {rendering.kind for rendering in results.values()}
        assert MatchKind.LOOP in kinds and MatchKind.STEP in kinds

        colored = render_match_map(grid, results, highlight_pos=CellPosition(0, 0))
        assert strip_ansi(colored) == render_match_map(grid, results, color=False)
        assert strip_ansi(colored) == "+--+ \n|  |x\n+--+ "

    def test_plain(self) -> None:
        """color=False gives the diagram with no escape codes."""
        grid = CharGrid.from_text("-->\nx")
        results = match_grid(default_table(), grid)
        assert render_match_map(grid, results, color=False) == "-->\nx  "


class TestKindMap:
    """Tests for the plain kind map."""

    def test_marks(self) -> None:
        """Each shape has its own mark and blanks stay blank."""
        table = Table.from_text(
            """
            loop ANY ANY '+' ANY ANY draw "M {C}";
            start '-' (E) ANY draw "M {C}";
            end '-' E '>' draw "L {C}";
            step ANY ANY '|' ANY ANY draw "L {C}";
            """
        )
        grid = CharGrid.from_text("+-> x\n|")
        results = match_grid(table, grid)
        assert render_kind_map(grid, results) == "OSE ?\n="

    def test_empty_grid(self) -> None:
        """An empty grid renders as empty text."""
        assert render_kind_map(CharGrid.from_text(""), {}) == ""


class TestDescribeTable:
    """Tests for describe_table()."""

    def test_demo_table(self) -> None:
        """Rules are numbered from 1 and counted by shape."""
        lines = describe_table(demo_table()).split("\n")
        assert lines[0] == '1 loop "|-/\\" ANY \'+\' (N,S) "|" draw "M {C}";'
        assert lines[6].startswith("7 step ANY (E,SE,S,SW,W) ''' ")
        assert lines[7] == ""
        assert lines[8] == "loop: 2 step: 2 start: 3 end: 0"

    def test_empty_table(self) -> None:
        """A table with no rules still reports counts."""
        assert describe_table(Table.from_text("# nothing here\n")) == (
            "\nloop: 0 step: 0 start: 0 end: 0"
        )


class TestReport:
    """Tests for format_report()."""

    def test_rows(self) -> None:
        """One tab-separated line per matched cell, in reading order."""
        results = match_grid(default_table(), CharGrid.from_text("-->"))
        assert format_report(results) == (
            "0\t0\tstart\tM 0,6.5 L 8,6.5\t\n"
            "0\t1\tstep\tL 16,6.5\t\n"
            "0\t2\tend\tL 20,6.5 l 3,0 m -3,-3 l 3,3 l -3,3 m 0,-3\t\n"
        )

    def test_attrs(self) -> None:
        """Attributes are written as name=value pairs."""
        results = match_grid(default_table(), CharGrid.from_text("^\n:"))
        assert format_report(results) == (
            "0\t0\tstart\tM 4,6.5 l 0,-5 m -3,5 l 3,-5 l 3, 5 m -3,0\tstroke-dasharray=5,2\n"
        )

    def test_empty(self) -> None:
        """No matches, no report lines."""
        assert format_report({}) == ""
