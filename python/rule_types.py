"""
Shared type definitions for gridstroke rule tables.

A rule pairs a neighborhood pattern (Match) with a drawing template
(Rendering). Everything here is immutable; tables built from these values can
be shared freely between matching calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Dir(Enum):
    """Compass direction from a cell to one of its 8 neighbors."""

    N = "N"  # Up (decreasing row)
    NE = "NE"
    E = "E"  # Right (increasing col)
    SE = "SE"
    S = "S"  # Down (increasing row)
    SW = "SW"
    W = "W"  # Left (decreasing col)
    NW = "NW"

    @property
    def delta(self) -> tuple[int, int]:
        """(row, col) offset to the neighbor in this direction."""
        return _DELTAS[self]

    @property
    def opposite(self) -> Dir:
        return _OPPOSITES[self]


ALL_DIRS: tuple[Dir, ...] = (Dir.N, Dir.NE, Dir.E, Dir.SE, Dir.S, Dir.SW, Dir.W, Dir.NW)

_DELTAS = {
    Dir.N: (-1, 0),
    Dir.NE: (-1, 1),
    Dir.E: (0, 1),
    Dir.SE: (1, 1),
    Dir.S: (1, 0),
    Dir.SW: (1, -1),
    Dir.W: (0, -1),
    Dir.NW: (-1, -1),
}

_OPPOSITES = {d: ALL_DIRS[(i + 4) % 8] for i, d in enumerate(ALL_DIRS)}


@dataclass(frozen=True)
class Dirs:
    """
    Ordered list of directions.

    Membership is plain set membership. Iteration order is the listed order,
    which decides which direction wins when several would satisfy a rule.
    """

    dirs: tuple[Dir, ...]

    def __iter__(self) -> Iterator[Dir]:
        return iter(self.dirs)

    def __contains__(self, d: object) -> bool:
        return d in self.dirs

    def __len__(self) -> int:
        return len(self.dirs)


ANY_DIRS = Dirs(ALL_DIRS)


# =============================================================================
# Character Sets
# =============================================================================


@dataclass(frozen=True)
class Char:
    """Matches exactly one character."""

    char: str

    def __post_init__(self) -> None:
        if len(self.char) != 1:
            raise ValueError(f"Char needs exactly one character, got {self.char!r}")


@dataclass(frozen=True)
class Chars:
    """Matches any character occurring in `chars` (order and repeats ignored)."""

    chars: str

    def __post_init__(self) -> None:
        if not self.chars:
            raise ValueError("Chars needs at least one character")


@dataclass(frozen=True)
class AnyChar:
    """Matches any character present in the grid (never an absent neighbor)."""

    pass


CharSet = Char | Chars | AnyChar


def charset_matches(cs: CharSet, ch: str | None) -> bool:
    """Test a grid character (None = no cell there) against a character set."""
    if ch is None:
        return False
    match cs:
        case Char(char=c):
            return ch == c
        case Chars(chars=chars):
            return ch in chars
        case AnyChar():
            return True
        case _:
            raise ValueError(f"Unknown character set: {cs!r}")


# =============================================================================
# Patterns
# =============================================================================


@dataclass(frozen=True)
class Loop:
    """loop <prev> <dirs> <curr> <dirs> <next>: cell inside a closed path."""

    prev: CharSet
    prev_dirs: Dirs
    curr: CharSet
    curr_dirs: Dirs
    next: CharSet


@dataclass(frozen=True)
class Step:
    """step <prev> <dirs> <curr> <dirs> <next>: cell continuing an open path."""

    prev: CharSet
    prev_dirs: Dirs
    curr: CharSet
    curr_dirs: Dirs
    next: CharSet


@dataclass(frozen=True)
class Start:
    """start <curr> <dirs> <next>: cell beginning a stroke."""

    curr: CharSet
    dirs: Dirs
    next: CharSet


@dataclass(frozen=True)
class End:
    """end <prev> <dirs> <curr>: cell terminating a stroke.

    Each entry of `dirs` is a direction of travel on arrival, so the
    predecessor sits at its opposite.
    """

    prev: CharSet
    dirs: Dirs
    curr: CharSet


Match = Loop | Step | Start | End


class MatchKind(Enum):
    """Which pattern shape fired for a cell."""

    LOOP = "loop"
    STEP = "step"
    START = "start"
    END = "end"


def match_kind(pat: Match) -> MatchKind:
    match pat:
        case Loop():
            return MatchKind.LOOP
        case Step():
            return MatchKind.STEP
        case Start():
            return MatchKind.START
        case End():
            return MatchKind.END
        case _:
            raise ValueError(f"Unknown match pattern: {pat!r}")


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class Rendering:
    """Draw template plus optional SVG attributes, in declaration order."""

    draw: str
    attrs: tuple[tuple[str, str], ...] | None = None


@dataclass(frozen=True)
class Rule:
    """A pattern and what to draw when it matches."""

    pat: Match
    render: Rendering
