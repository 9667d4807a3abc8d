"""
Built-in rule tables, selectable by name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from gridstroke import Table

__all__ = ["DEFAULT_RULES", "DEMO_RULES", "BUILTIN_TABLES", "default_table", "demo_table", "load_table"]

logger = logging.getLogger(__name__)


DEMO_RULES = r"""
loop  "|-/\" ANY '+' (N,S) "|" draw "M {C}";
loop  "|-/\" ANY '+' (E,W) "-" draw "M {C}";

# '-', '|' and '+' can start if next works. Draw line across.
start            '-' (E,W) "-+" draw "M {RO} L {O}";
start            '|' (N,S) "|+" draw "M {RO} L {O}";
start            '+' ANY   ANY  draw "M {C}";

# '.' and ''' make rounded corners. Draw curve through center.
step ANY (E,NE,N,NW,W) '.' (E,SE,S,SW,W) "-|\/" draw "Q {C} {O}";
step ANY (E,SE,S,SW,W) ''' (E,NE,N,NW,W) "-|\/" draw "Q {C} {O}";
"""


DEFAULT_RULES = r"""
# Strokes are traced left to right and top to bottom; boxes run clockwise
# from their top-left corner. For each glyph the more specific rules come
# before the general ones.

# Arrowheads running into a '+' carry the stroke on through it.
step  '-' E '>' E '+' draw "L {E} m -2,0 l 4,0 m -4,-3 l 4,3 l -4,3 m 0,-3 m 4,0";
step  '-' W '<' W '+' draw "L {E} m 2,0 l -4,0 m 4,-3 l -4,3 l 4,3 m 0,-3 m -4,0";

# Arrowheads that finish a stroke.
end   '-' E '>' draw "L {C} l 3,0 m -3,-3 l 3,3 l -3,3 m 0,-3";
end   '-' W '<' draw "L {C} l -3,0 m 3,-3 l -3,3 l 3,3 m 0,-3";
end   '|' S 'v' draw "L {C} l 0,3 m -3,-3 l 3,3 l 3,-3 m -3,0";
end   '|' N '^' draw "L {C} l 0,-3 m -3,3 l 3,-3 l 3,3 m -3,0";

# Dotted lines, with an open arrowhead. Each cell draws across itself.
start '^' (S) ':' draw "M {C} l 0,-5 m -3,5 l 3,-5 l 3, 5 m -3,0" attrs [("stroke-dasharray", "5,2")];
start ':' (N,S) ":+" draw "M {RO} L {O}" attrs [("stroke-dasharray", "5,2")];
start '=' (E,W) "=+" draw "M {RO} L {O}" attrs [("stroke-dasharray", "5,2")];

# '+' corners. The top-left corner of a box opens the closed path.
loop  '|' N '+' E '-' draw "M {C}";
step  '-' E '+' S '|' draw "L {C}";
step  '|' S '+' W '-' draw "L {C}";
step  '-' W '+' N '|' draw "L {C}";
step  "-|" (E,S) '+' (E,S) "-|" draw "L {C}";
step  "/\" (SE,SW) '+' (E,W) "-" draw "L {C}";
start '+' ANY ANY draw "M {C}";

# '.' and ''' make rounded corners. Draw curve through center.
step ANY (E,NE,N,NW,W) '.' (E,SE,S,SW,W) "-|\/" draw "Q {C} {O}";
step ANY (E,SE,S,SW,W) ''' (E,NE,N,NW,W) "-|\/" draw "Q {C} {O}";

# Horizontal lines: carry on, stop, or begin.
step  "-+.'" E '-' E "-+.'>" draw "L {O}";
end   "-+.'" E '-' draw "L {E}";
start '-' (E,W) "-+.'<>" draw "M {RO} L {O}";

# Vertical lines.
step  "|+.'" S '|' S "|+.'v" draw "L {O}";
end   "|+.'" S '|' draw "L {E}";
start '|' (N,S) "|+.'^v" draw "M {RO} L {O}";

# Diagonals run downward; the outgoing point is a cell corner.
step  "/+." SW '/' SW "/+.'" draw "L {O}";
end   "/+." SW '/' draw "L {E}";
start '/' (SW,NE) "/+.'" draw "M {RO} L {O}";
step  "\+." SE '\' SE "\+.'" draw "L {O}";
end   "\+." SE '\' draw "L {E}";
start '\' (SE,NW) "\+.'" draw "M {RO} L {O}";
"""


def default_table() -> Table:
    return Table.from_text(DEFAULT_RULES, name="default")


def demo_table() -> Table:
    return Table.from_text(DEMO_RULES, name="demo")


BUILTIN_TABLES: dict[str, Callable[[], Table]] = {
    "default": default_table,
    "demo": demo_table,
}


def load_table(spec: str) -> Table:
    """
    Load a rule table by file path or built-in name.

    A readable file takes precedence over a built-in table of the same name.

    Raises:
        RuleParseError: If the rule text is malformed
        ValueError: If spec is neither a file nor a built-in table name
    """
    path = Path(spec)
    if path.is_file():
        logger.info("Loading table from file %s", path)
        return Table.from_file(path)

    factory = BUILTIN_TABLES.get(spec)
    if factory is None:
        raise ValueError(
            f"Unknown table name: '{spec}'\n"
            f"  No such file, and not a built-in table\n"
            f"  Built-in tables: {', '.join(sorted(BUILTIN_TABLES))}"
        )
    return factory()
