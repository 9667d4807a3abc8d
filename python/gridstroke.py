"""
Context-matching engine for turning ASCII-art diagrams into drawing commands.

Each glyph in a character grid is matched, together with its 8 neighbors,
against an ordered rule Table. The first rule whose pattern fits wins, and
its draw template is filled in with anchor coordinates for the cell.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Callable, Iterable, Iterator

from rule_parser import RuleParseError, format_rule, format_rules, parse_rules
from rule_types import (
    ALL_DIRS,
    ANY_DIRS,
    AnyChar,
    Char,
    Chars,
    CharSet,
    Dir,
    Dirs,
    End,
    Loop,
    Match,
    MatchKind,
    Rendering,
    Rule,
    Start,
    Step,
    charset_matches,
    match_kind,
)

__all__ = [
    "ALL_DIRS",
    "ANY_DIRS",
    "AnchorFn",
    "AnyChar",
    "CellPosition",
    "Char",
    "CharGrid",
    "CharSet",
    "Chars",
    "Dir",
    "Dirs",
    "End",
    "GridGeometry",
    "Loop",
    "Match",
    "MatchKind",
    "MatchResult",
    "NeighborLookup",
    "Rendering",
    "ResolvedRendering",
    "Rule",
    "RuleParseError",
    "Start",
    "Step",
    "Table",
    "UnknownAnchorError",
    "cell_anchors",
    "charset_matches",
    "find_match",
    "format_rule",
    "format_rules",
    "match_grid",
    "match_kind",
    "parse_rules",
    "resolve_template",
    "select",
    "select_at",
]

logger = logging.getLogger(__name__)


# Type alias for neighbor access: None = no cell in that direction
NeighborLookup = Callable[[Dir], str | None]

# Type alias for anchor resolution: (name, incoming, outgoing) -> coordinate text,
# or None if the anchor is unknown or not available for the chosen directions
AnchorFn = Callable[[str, Dir | None, Dir | None], str | None]


# =============================================================================
# Rule Tables
# =============================================================================


@dataclass(frozen=True)
class Table:
    """An ordered, read-only rule set. Earlier rules take priority."""

    name: str
    rules: tuple[Rule, ...]

    @classmethod
    def from_text(cls, text: str, name: str = "<text>") -> Table:
        """Parse rule text into a Table (raises RuleParseError)."""
        rules = parse_rules(text)
        logger.info("Table %r: parsed %d rules", name, len(rules))
        return cls(name, tuple(rules))

    @classmethod
    def from_lines(cls, lines: Iterable[str], name: str = "<lines>") -> Table:
        """Parse rule text given line by line (e.g. an open file)."""
        return cls.from_text("\n".join(line.rstrip("\n") for line in lines), name)

    @classmethod
    def from_file(cls, path: str | Path) -> Table:
        with open(path, encoding="utf-8") as f:
            return cls.from_lines(f, name=str(path))

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def entries(self) -> list[tuple[int, Rule]]:
        """(index, rule) pairs in priority order."""
        return list(enumerate(self.rules))


# =============================================================================
# Character Grid
# =============================================================================


@dataclass(frozen=True)
class CellPosition:
    """A (row, col) position in a character grid."""

    row: int
    col: int


@dataclass(frozen=True)
class CharGrid:
    """
    A diagram as lines of text.

    Lines may have different lengths. A position past the end of its line,
    outside the grid, or holding whitespace has no glyph.
    """

    lines: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> CharGrid:
        return cls(tuple(text.splitlines()))

    @property
    def rows(self) -> int:
        return len(self.lines)

    @property
    def cols(self) -> int:
        return max((len(line) for line in self.lines), default=0)

    def char_at(self, pos: CellPosition) -> str | None:
        if not 0 <= pos.row < len(self.lines):
            return None
        line = self.lines[pos.row]
        if not 0 <= pos.col < len(line):
            return None
        ch = line[pos.col]
        return None if ch.isspace() else ch

    def neighbor(self, pos: CellPosition, direction: Dir) -> str | None:
        dr, dc = direction.delta
        return self.char_at(CellPosition(pos.row + dr, pos.col + dc))

    def lookup(self, pos: CellPosition) -> NeighborLookup:
        """Bind neighbor access to one focal cell."""
        return lambda direction: self.neighbor(pos, direction)

    def positions(self) -> Iterator[CellPosition]:
        """Yield every position holding a glyph, row-major."""
        for r, line in enumerate(self.lines):
            for c, ch in enumerate(line):
                if not ch.isspace():
                    yield CellPosition(r, c)


# =============================================================================
# Anchors
# =============================================================================


@dataclass(frozen=True)
class GridGeometry:
    """Size of one character cell in output units."""

    x_scale: int = 8
    y_scale: int = 13


class UnknownAnchorError(ValueError):
    """A draw template names an anchor that cannot be resolved."""

    def __init__(self, message: str, anchor: str, template: str) -> None:
        super().__init__(message)
        self.anchor = anchor
        self.template = template


def _format_coord(v: Fraction) -> str:
    return str(v.numerator) if v.denominator == 1 else str(float(v))


def cell_anchors(pos: CellPosition, geometry: GridGeometry = GridGeometry()) -> AnchorFn:
    """
    Anchor resolver for one cell, in output coordinates.

    Anchors:
        C  - cell center
        O  - edge point toward the outgoing direction
        RO - edge point opposite the outgoing direction
        I  - edge point where the stroke came in (opposite the incoming direction)
        E  - edge point the incoming stroke is heading for

    Diagonal directions land on cell corners. Anchors that need a direction
    the match did not choose (O for an End, I for a Start) resolve to None.
    """
    half_w = Fraction(geometry.x_scale, 2)
    half_h = Fraction(geometry.y_scale, 2)
    cx = pos.col * geometry.x_scale + half_w
    cy = pos.row * geometry.y_scale + half_h

    def edge(direction: Dir) -> str:
        dr, dc = direction.delta
        return f"{_format_coord(cx + dc * half_w)},{_format_coord(cy + dr * half_h)}"

    def resolve(name: str, incoming: Dir | None, outgoing: Dir | None) -> str | None:
        if name == "C":
            return f"{_format_coord(cx)},{_format_coord(cy)}"
        if name == "O":
            return edge(outgoing) if outgoing is not None else None
        if name == "RO":
            return edge(outgoing.opposite) if outgoing is not None else None
        if name == "I":
            return edge(incoming.opposite) if incoming is not None else None
        if name == "E":
            return edge(incoming) if incoming is not None else None
        return None

    return resolve


_PLACEHOLDER = re.compile(r"\{(\w+)\}", re.ASCII)


def resolve_template(
    template: str,
    anchor_fn: AnchorFn,
    incoming: Dir | None,
    outgoing: Dir | None,
) -> str:
    """
    Substitute every {NAME} placeholder (letters, digits, underscores) in a draw template.

    Text outside placeholders is left untouched.

    Raises:
        UnknownAnchorError: If anchor_fn cannot supply a placeholder
    """

    def substitute(m: re.Match[str]) -> str:
        name = m.group(1)
        value = anchor_fn(name, incoming, outgoing)
        if value is None:
            raise UnknownAnchorError(
                f"Cannot resolve anchor {{{name}}} in template \"{template}\"\n"
                f"  Incoming direction: {incoming.value if incoming else 'none'}\n"
                f"  Outgoing direction: {outgoing.value if outgoing else 'none'}",
                name,
                template,
            )
        return value

    return _PLACEHOLDER.sub(substitute, template)


# =============================================================================
# Matching
# =============================================================================


@dataclass(frozen=True)
class MatchResult:
    """The winning rule for a cell and the directions it was matched with."""

    rule: Rule
    index: int  # Position of the rule in its table
    kind: MatchKind
    incoming: Dir | None  # Direction of travel into the cell (None for Start)
    outgoing: Dir | None  # Direction of travel out of the cell (None for End)


@dataclass(frozen=True)
class ResolvedRendering:
    """Drawing output for one cell."""

    kind: MatchKind
    draw: str
    attrs: tuple[tuple[str, str], ...] | None
    rule: Rule
    rule_index: int
    incoming: Dir | None
    outgoing: Dir | None

    @property
    def is_loop(self) -> bool:
        return self.kind is MatchKind.LOOP

    @property
    def attributes(self) -> dict[str, str]:
        """Attributes as a mapping; for a repeated name the last value wins."""
        return dict(self.attrs or ())


def _match_directions(
    pat: Match, focal: str, lookup: NeighborLookup
) -> tuple[Dir | None, Dir | None] | None:
    """Return (incoming, outgoing) if the pattern fits the cell, else None."""
    match pat:
        case Start(curr=curr, dirs=dirs, next=nxt):
            if not charset_matches(curr, focal):
                return None
            for d in dirs:
                if charset_matches(nxt, lookup(d)):
                    return (None, d)
            return None
        case End(prev=prev, dirs=dirs, curr=curr):
            if not charset_matches(curr, focal):
                return None
            for d in dirs:
                if charset_matches(prev, lookup(d.opposite)):
                    return (d, None)
            return None
        case Loop() | Step():
            if not charset_matches(pat.curr, focal):
                return None
            for p in pat.prev_dirs:
                if not charset_matches(pat.prev, lookup(p.opposite)):
                    continue
                for q in pat.curr_dirs:
                    if charset_matches(pat.next, lookup(q)):
                        return (p, q)
            return None
        case _:
            raise ValueError(f"Unknown match pattern: {pat!r}")


def find_match(table: Table, focal: str, lookup: NeighborLookup) -> MatchResult | None:
    """
    Find the first rule in the table that fits a cell.

    Args:
        table: Rules in priority order
        focal: The character at the cell being matched
        lookup: Neighbor access for the cell

    Returns:
        MatchResult for the winning rule, or None if no rule fits
    """
    for index, rule in enumerate(table.rules):
        dirs = _match_directions(rule.pat, focal, lookup)
        if dirs is not None:
            incoming, outgoing = dirs
            return MatchResult(rule, index, match_kind(rule.pat), incoming, outgoing)
    return None


def select(
    table: Table,
    focal: str,
    lookup: NeighborLookup,
    anchor_fn: AnchorFn,
) -> ResolvedRendering | None:
    """
    Match a cell and resolve the winning rule's draw template.

    Returns None when no rule fits (the cell does not draw).

    Raises:
        UnknownAnchorError: If the winning template names an unresolvable anchor
    """
    result = find_match(table, focal, lookup)
    if result is None:
        return None
    render = result.rule.render
    draw = resolve_template(render.draw, anchor_fn, result.incoming, result.outgoing)
    return ResolvedRendering(
        result.kind,
        draw,
        render.attrs,
        result.rule,
        result.index,
        result.incoming,
        result.outgoing,
    )


def select_at(
    table: Table,
    grid: CharGrid,
    pos: CellPosition,
    geometry: GridGeometry = GridGeometry(),
) -> ResolvedRendering | None:
    """Match the grid cell at pos using the standard cell anchors."""
    focal = grid.char_at(pos)
    if focal is None:
        return None
    return select(table, focal, grid.lookup(pos), cell_anchors(pos, geometry))


def match_grid(
    table: Table,
    grid: CharGrid,
    geometry: GridGeometry = GridGeometry(),
) -> dict[CellPosition, ResolvedRendering]:
    """
    Match every glyph in a grid.

    Cells are independent of each other, so the result does not depend on
    evaluation order.

    Returns:
        Mapping from position to rendering, for cells where a rule fired
    """
    results: dict[CellPosition, ResolvedRendering] = {}
    total = 0
    for pos in grid.positions():
        total += 1
        rendering = select_at(table, grid, pos, geometry)
        if rendering is not None:
            results[pos] = rendering

    logger.info(
        "match_grid: table=%s, matched %d of %d glyphs (%dx%d grid)",
        table.name,
        len(results),
        total,
        grid.rows,
        grid.cols,
    )
    return results
