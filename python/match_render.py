"""
Terminal rendering and reports for matched grids.

Provides:
1. Colored match map - the diagram with each glyph colored by the pattern
   shape that fired for it
2. Plain kind map - one mark per cell, for logs and tests
3. Table description and per-cell report text
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from gridstroke import (
    CellPosition,
    CharGrid,
    MatchKind,
    ResolvedRendering,
    Table,
    format_rule,
    match_kind,
)

__all__ = [
    "KIND_MARKS",
    "UNMATCHED_MARK",
    "describe_table",
    "format_report",
    "render_kind_map",
    "render_match_map",
]

logger = logging.getLogger(__name__)

KIND_MARKS: dict[MatchKind, str] = {
    MatchKind.LOOP: "O",
    MatchKind.STEP: "=",
    MatchKind.START: "S",
    MatchKind.END: "E",
}
UNMATCHED_MARK = "?"


def _kind_colors() -> dict[MatchKind, Callable[[str], str]]:
    return {
        MatchKind.LOOP: chalk.magenta,
        MatchKind.STEP: chalk.green,
        MatchKind.START: chalk.cyan,
        MatchKind.END: chalk.yellow,
    }


def render_match_map(
    grid: CharGrid,
    results: dict[CellPosition, ResolvedRendering],
    highlight_pos: CellPosition | None = None,
    color: bool = True,
) -> str:
    """
    Render the diagram with glyphs colored by which pattern shape fired.

    Glyphs no rule matched are drawn white. The highlighted position (which
    may be blank) gets a white background. With color=False the diagram is
    returned as plain text, padded to the grid width.
    """
    colors = _kind_colors()
    lines: list[str] = []

    logger.info(
        "render_match_map: %dx%d grid, %d matched cells",
        grid.rows,
        grid.cols,
        len(results),
    )

    for row in range(grid.rows):
        line_parts: list[str] = []
        for col in range(grid.cols):
            pos = CellPosition(row, col)
            ch = grid.char_at(pos)
            content = ch if ch is not None else " "

            if not color:
                pass
            elif pos == highlight_pos:
                content = chalk.bgWhite.black(content)
            elif ch is None:
                pass
            elif pos in results:
                content = colors[results[pos].kind](content)
            else:
                content = chalk.white(content)

            line_parts.append(content)
        lines.append("".join(line_parts))

    return "\n".join(lines)


def render_kind_map(grid: CharGrid, results: dict[CellPosition, ResolvedRendering]) -> str:
    """Plain-text map: one KIND_MARKS entry per matched glyph, '?' for unmatched."""
    lines: list[str] = []
    for row in range(grid.rows):
        marks = []
        for col in range(grid.cols):
            pos = CellPosition(row, col)
            if grid.char_at(pos) is None:
                marks.append(" ")
            elif pos in results:
                marks.append(KIND_MARKS[results[pos].kind])
            else:
                marks.append(UNMATCHED_MARK)
        lines.append("".join(marks).rstrip())
    return "\n".join(lines)


def describe_table(table: Table) -> str:
    """List a table's rules in priority order, followed by counts per shape."""
    lines = [f"{j + 1} {format_rule(rule)}" for j, rule in enumerate(table)]
    counts = Counter(match_kind(rule.pat) for rule in table)
    lines.append("")
    lines.append(" ".join(f"{kind.value}: {counts[kind]}" for kind in MatchKind))
    return "\n".join(lines)


def format_report(results: dict[CellPosition, ResolvedRendering]) -> str:
    """
    One tab-separated line per matched cell, row-major:

        row  col  kind  draw  name=value;name=value
    """
    lines: list[str] = []
    for pos in sorted(results, key=lambda p: (p.row, p.col)):
        rendering = results[pos]
        attrs = ";".join(f"{k}={v}" for k, v in rendering.attrs or ())
        lines.append(f"{pos.row}\t{pos.col}\t{rendering.kind.value}\t{rendering.draw}\t{attrs}")
    return "".join(line + "\n" for line in lines)
