"""
Tests for the built-in rule tables and table loading.
"""

import pytest

from builtin_tables import BUILTIN_TABLES, DEFAULT_RULES, default_table, demo_table, load_table
from gridstroke import (
    CellPosition,
    CharGrid,
    Dir,
    MatchKind,
    RuleParseError,
    Table,
    format_rules,
    match_grid,
    select_at,
)
from match_render import render_kind_map


class TestBuiltinTables:
    """Tests for the shipped tables."""

    def test_default(self) -> None:
        """The default table parses and keeps its name."""
        table = default_table()
        assert table.name == "default"
        assert len(table) == 30

    def test_demo(self) -> None:
        """The demo table is the small sample set."""
        table = demo_table()
        assert table.name == "demo"
        assert len(table) == 7
        kinds = [rule.pat.__class__.__name__ for rule in table]
        assert kinds == ["Loop", "Loop", "Start", "Start", "Start", "Step", "Step"]

    def test_registry(self) -> None:
        """Every registered name builds a table of that name."""
        for name, factory in BUILTIN_TABLES.items():
            assert factory().name == name

    def test_default_round_trips(self) -> None:
        """Formatting the default rules and parsing them again changes nothing."""
        table = default_table()
        assert Table.from_text(format_rules(table.rules)).rules == table.rules
        assert Table.from_text(DEFAULT_RULES).rules == table.rules


class TestLoadTable:
    """Tests for load_table()."""

    def test_builtin_name(self) -> None:
        """Built-in names resolve when no such file exists."""
        assert load_table("demo").rules == demo_table().rules

    def test_file(self, tmp_path) -> None:
        """A path loads the file's rules."""
        path = tmp_path / "mine.rules"
        path.write_text("start '+' ANY ANY draw \"M {C}\";\n", encoding="utf-8")
        table = load_table(str(path))
        assert len(table) == 1
        assert table.name == str(path)

    def test_file_shadows_builtin(self, tmp_path, monkeypatch) -> None:
        """A file named like a built-in table wins over the built-in."""
        (tmp_path / "default").write_text("end '-' E '>' draw \"L {C}\";\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        table = load_table("default")
        assert len(table) == 1

    def test_unknown_name(self) -> None:
        """Unknown names list the available tables."""
        with pytest.raises(ValueError) as exc_info:
            load_table("no-such-table")
        message = str(exc_info.value)
        assert "Unknown table name: 'no-such-table'" in message
        assert "default, demo" in message

    def test_malformed_file(self, tmp_path) -> None:
        """Bad rule files fail with a parse error."""
        path = tmp_path / "bad.rules"
        path.write_text("start '+' ANY ANY draw \"M {C}\"\n", encoding="utf-8")
        with pytest.raises(RuleParseError) as exc_info:
            load_table(str(path))
        assert exc_info.value.line == 1


class TestDefaultTableDiagrams:
    """The default table on small diagrams."""

    def test_arrow(self) -> None:
        """A horizontal arrow starts, carries on, and ends at the head."""
        table = default_table()
        grid = CharGrid.from_text("-->")
        results = match_grid(table, grid)

        assert render_kind_map(grid, results) == "S=E"
        assert results[CellPosition(0, 0)].draw == "M 0,6.5 L 8,6.5"
        assert results[CellPosition(0, 1)].draw == "L 16,6.5"
        head = results[CellPosition(0, 2)]
        assert head.kind is MatchKind.END
        assert head.incoming == Dir.E
        assert head.draw == "L 20,6.5 l 3,0 m -3,-3 l 3,3 l -3,3 m 0,-3"

    def test_rounded_corner(self) -> None:
        """'.' curves from the line below into the line to the right."""
        grid = CharGrid.from_text(".-\n|")
        rendering = select_at(default_table(), grid, CellPosition(0, 0))
        assert rendering is not None
        assert rendering.kind is MatchKind.STEP
        assert (rendering.incoming, rendering.outgoing) == (Dir.N, Dir.E)
        assert rendering.draw == "Q 4,6.5 8,6.5"

    def test_dotted_arrowhead(self) -> None:
        """A '^' over ':' draws an open arrowhead with a dash pattern."""
        grid = CharGrid.from_text("^\n:")
        rendering = select_at(default_table(), grid, CellPosition(0, 0))
        assert rendering is not None
        assert rendering.kind is MatchKind.START
        assert rendering.draw == "M 4,6.5 l 0,-5 m -3,5 l 3,-5 l 3, 5 m -3,0"
        assert rendering.attrs == (("stroke-dasharray", "5,2"),)

    def test_isolated_glyphs(self) -> None:
        """Glyphs with no usable neighbors are left unmatched."""
        grid = CharGrid.from_text("x -")
        results = match_grid(default_table(), grid)
        assert results == {}
        assert render_kind_map(grid, results) == "? ?"

    def test_rounded_box(self) -> None:
        """A rounded box is one run of steps; the arrow leaving it starts afresh."""
        grid = CharGrid.from_text(".---.\n|   |--->\n'---'")
        results = match_grid(default_table(), grid)
        assert render_kind_map(grid, results) == "\n".join([
            "=====",
            "=   =S==E",
            "=====",
        ])

    def test_square_box(self) -> None:
        """The top-left corner opens the loop; the other corners are steps."""
        grid = CharGrid.from_text("+--+\n|  |\n+--+")
        results = match_grid(default_table(), grid)
        assert render_kind_map(grid, results) == "\n".join([
            "O===",
            "=  =",
            "====",
        ])
        assert results[CellPosition(0, 0)].draw == "M 4,6.5"
        assert results[CellPosition(0, 3)].draw == "L 28,6.5"

    def test_arrow_into_corner(self) -> None:
        """An arrowhead in front of a '+' steps through rather than ending."""
        grid = CharGrid.from_text("->+")
        rendering = select_at(default_table(), grid, CellPosition(0, 1))
        assert rendering is not None
        assert rendering.kind is MatchKind.STEP
        assert rendering.rule_index == 0

    def test_line_running_out(self) -> None:
        """A line whose next cell is empty ends there."""
        grid = CharGrid.from_text("+-")
        rendering = select_at(default_table(), grid, CellPosition(0, 1))
        assert rendering is not None
        assert rendering.kind is MatchKind.END
        assert rendering.draw == "L 16,6.5"


# Each default rule, by index, with a small diagram and a cell where it is
# the first rule that fits.
DEFAULT_RULE_EXAMPLES = [
    (0, "->+", (0, 1)),
    (1, "+<-", (0, 1)),
    (2, "->", (0, 1)),
    (3, "<-", (0, 0)),
    (4, "|\nv", (1, 0)),
    (5, "^\n|", (0, 0)),
    (6, "^\n:", (0, 0)),
    (7, ":\n:", (0, 0)),
    (8, "==", (0, 0)),
    (9, "+-\n|", (0, 0)),
    (10, "-+\n |", (0, 1)),
    (11, " |\n-+", (1, 1)),
    (12, "|\n+-", (1, 0)),
    (13, "-+-", (0, 1)),
    (14, "\\\n +-", (1, 1)),
    (15, "++", (0, 0)),
    (16, ".-\n|", (0, 0)),
    (17, "|\n'-", (1, 0)),
    (18, "---", (0, 1)),
    (19, "+-", (0, 1)),
    (20, "--", (0, 0)),
    (21, "|\n|\n|", (1, 0)),
    (22, "+\n|", (1, 0)),
    (23, "|\n|", (0, 0)),
    (24, "  /\n /\n/", (1, 1)),
    (25, " /\n/", (1, 0)),
    (26, " /\n/", (0, 1)),
    (27, "\\\n \\\n  \\", (1, 1)),
    (28, "\\\n \\", (1, 1)),
    (29, "\\\n \\", (0, 0)),
]


class TestDefaultRuleReachability:
    """No default rule is hidden behind an earlier one."""

    @pytest.mark.parametrize("index, text, cell", DEFAULT_RULE_EXAMPLES)
    def test_rule_fires(self, index: int, text: str, cell: tuple[int, int]) -> None:
        """The rule is the winning rule for its example cell."""
        rendering = select_at(default_table(), CharGrid.from_text(text), CellPosition(*cell))
        assert rendering is not None
        assert rendering.rule_index == index

    def test_every_rule_has_an_example(self) -> None:
        """The examples cover the whole default table."""
        indices = sorted(index for index, _, _ in DEFAULT_RULE_EXAMPLES)
        assert indices == list(range(len(default_table())))
