#!/usr/bin/env python3
"""
Command-line driver and demonstrations for gridstroke.

Usage:
    python demo.py                                  # showcase built-in samples
    python demo.py TABLE INPUT OUTPUT [TABLE INPUT OUTPUT ...]
    python demo.py --describe TABLE

TABLE is a rule file or a built-in table name ("default", "demo"). Each
OUTPUT receives one tab-separated line per matched cell.
"""

from __future__ import annotations

import argparse
import logging
import sys

from builtin_tables import load_table
from gridstroke import CellPosition, CharGrid, GridGeometry, ResolvedRendering, match_grid
from match_render import describe_table, format_report, render_kind_map, render_match_map

logger = logging.getLogger(__name__)


SAMPLE_DIAGRAMS = dict(
    box="\n".join([
        "+----+",
        "|    |",
        "+----+",
    ]),
    rounded="\n".join([
        ".---.",
        "|   |--->",
        "'---'",
    ]),
    diagonal="\n".join([
        "+      +",
        " \\    /",
        "  \\  /",
        "   +-",
    ]),
    dotted="\n".join([
        "^  ==+",
        ":    :",
        ":    :",
        "+----+",
    ]),
)


def demo(table_spec: str = "default") -> None:
    """Show how each sample diagram matches against a table."""
    table = load_table(table_spec)
    print(f"Table '{table.name}': {len(table)} rules")
    print()

    for name, text in SAMPLE_DIAGRAMS.items():
        grid = CharGrid.from_text(text)
        results = match_grid(table, grid)

        print(f"Sample: {name}")
        print("-" * 40)
        print(render_match_map(grid, results))
        print()
        print(render_kind_map(grid, results))
        print()
        print(format_report(results))


def process(
    table_spec: str,
    in_file: str,
    out_file: str,
    geometry: GridGeometry = GridGeometry(),
) -> tuple[CharGrid, dict[CellPosition, ResolvedRendering]]:
    """Match one input diagram and write its report to out_file."""
    table = load_table(table_spec)
    with open(in_file, encoding="utf-8") as f:
        grid = CharGrid.from_text(f.read())

    results = match_grid(table, grid, geometry)

    with open(out_file, "w", encoding="utf-8") as f:
        f.write(format_report(results))
    logger.info("Wrote %d cell renderings to %s", len(results), out_file)
    return grid, results


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Match ASCII-art diagrams against gridstroke rule tables."
    )
    parser.add_argument(
        "jobs",
        nargs="*",
        metavar="TABLE INPUT OUTPUT",
        help="triplets of table (file or built-in name), input diagram, output report",
    )
    parser.add_argument("--describe", metavar="TABLE", help="list a table's rules and exit")
    parser.add_argument("--show", action="store_true", help="print a colored match map per input")
    parser.add_argument("--x-scale", type=int, default=GridGeometry.x_scale, help="cell width")
    parser.add_argument("--y-scale", type=int, default=GridGeometry.y_scale, help="cell height")
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress at INFO level")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    if len(args.jobs) % 3 != 0:
        parser.error("expected TABLE INPUT OUTPUT triplets")

    geometry = GridGeometry(args.x_scale, args.y_scale)

    try:
        if args.describe:
            print(describe_table(load_table(args.describe)))
            return 0

        if not args.jobs:
            demo()
            return 0

        jobs = iter(args.jobs)
        for table_spec, in_file, out_file in zip(jobs, jobs, jobs):
            print(f"processing {in_file} to {out_file} via {table_spec}")
            grid, results = process(table_spec, in_file, out_file, geometry)
            if args.show:
                print(render_match_map(grid, results))
    except (OSError, ValueError) as e:
        # ValueError covers RuleParseError, UnknownAnchorError and unknown table names
        print(f"error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
