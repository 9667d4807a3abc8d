"""
Interactive rule inspector for gridstroke.
Display a diagram and move a cursor over it to see which rule each cell fires.
"""

import logging
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from builtin_tables import load_table
from demo import SAMPLE_DIAGRAMS
from gridstroke import (
    CellPosition,
    CharGrid,
    GridGeometry,
    Table,
    UnknownAnchorError,
    match_grid,
    select_at,
)
from match_render import render_match_map
from rule_parser import format_rule


class InteractiveInspector:
    """Cursor-driven view of per-cell rule matches."""

    def __init__(self, grid: CharGrid, table: Table, geometry: GridGeometry = GridGeometry()) -> None:
        self.grid = grid
        self.table = table
        self.geometry = geometry
        self.cursor = CellPosition(0, 0)
        self.console = Console()
        self.status_message = "Ready"
        try:
            self.results = match_grid(table, grid, geometry)
        except UnknownAnchorError as e:
            # The cell view shows the full message
            self.results = {}
            self.status_message = f"Configuration error: unresolvable anchor {{{e.anchor}}}"

    def describe_cursor(self) -> Text:
        """Describe the match at the cursor cell."""
        info = Text()
        ch = self.grid.char_at(self.cursor)
        info.append("Cell: ", style="bold")
        info.append(f"[{self.cursor.row}, {self.cursor.col}] ")
        info.append(repr(ch) if ch is not None else "(blank)")
        info.append("\n")

        try:
            rendering = select_at(self.table, self.grid, self.cursor, self.geometry)
        except UnknownAnchorError as e:
            info.append("Configuration error:\n", style="bold red")
            info.append(str(e) + "\n")
            return info

        if rendering is None:
            info.append("No rule fires here\n", style="dim")
            return info

        incoming = rendering.incoming.value if rendering.incoming else "-"
        outgoing = rendering.outgoing.value if rendering.outgoing else "-"
        info.append("Rule: ", style="bold")
        info.append(f"#{rendering.rule_index + 1} {format_rule(rendering.rule)}\n")
        info.append("Shape: ", style="bold")
        info.append(f"{rendering.kind.value} (in {incoming}, out {outgoing})\n")
        info.append("Draw: ", style="bold")
        info.append(f"{rendering.draw}\n")
        if rendering.attrs:
            info.append("Attrs: ", style="bold")
            info.append(", ".join(f"{k}={v}" for k, v in rendering.attrs) + "\n")
        return info

    def generate_display(self) -> Panel:
        """Generate the current display with diagram and cell details."""
        body = Text()
        map_text = render_match_map(self.grid, self.results, highlight_pos=self.cursor)
        body.append(Text.from_ansi(map_text))
        body.append("\n\n")
        body.append(self.describe_cursor())
        body.append("\n")
        body.append("Keys:\n", style="bold cyan")
        body.append("  W/A/S/D - Move cursor\n")
        body.append("  Q - Quit\n\n")

        body.append("─" * 40 + "\n", style="dim")
        body.append("Status: ", style="bold")
        body.append(self.status_message)

        return Panel(
            body,
            title=f"gridstroke inspector - table '{self.table.name}'",
            border_style="green",
            width=100,
        )

    def move_cursor(self, drow: int, dcol: int) -> None:
        """Move the cursor, staying inside the grid."""
        row = min(max(self.cursor.row + drow, 0), max(self.grid.rows - 1, 0))
        col = min(max(self.cursor.col + dcol, 0), max(self.grid.cols - 1, 0))
        self.cursor = CellPosition(row, col)
        self.status_message = f"Cursor at [{row}, {col}]"

    def run(self) -> None:
        """Run the inspector until the user quits."""
        if self.grid.rows == 0:
            print("ERROR: Diagram is empty!")
            return

        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey()

                    if key.lower() == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() == "w":
                        self.move_cursor(-1, 0)
                    elif key.lower() == "s":
                        self.move_cursor(1, 0)
                    elif key.lower() == "a":
                        self.move_cursor(0, -1)
                    elif key.lower() == "d":
                        self.move_cursor(0, 1)
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


def main(table_spec: str, diagram: str) -> None:
    """Run the inspector on a built-in sample name or a diagram file."""
    if diagram in SAMPLE_DIAGRAMS:
        text = SAMPLE_DIAGRAMS[diagram]
    else:
        with open(diagram, encoding="utf-8") as f:
            text = f.read()

    inspector = InteractiveInspector(CharGrid.from_text(text), load_table(table_spec))
    inspector.run()


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    table_arg = sys.argv[1] if len(sys.argv) > 1 else "default"
    diagram_arg = sys.argv[2] if len(sys.argv) > 2 else "rounded"
    main(table_arg, diagram_arg)
