"""
Rule-set parsing for gridstroke.

Rule text format (one statement per rule, terminated by ';'):

    # comment to end of line
    loop  <prev> <dirs> <curr> <dirs> <next> draw "<template>" [attrs [...]];
    step  <prev> <dirs> <curr> <dirs> <next> draw "<template>" [attrs [...]];
    start <curr> <dirs> <next>               draw "<template>" [attrs [...]];
    end   <prev> <dirs> <curr>               draw "<template>" [attrs [...]];

Character sets:
  * 'c'      - exactly one character (''' is the quote character itself)
  * "chars"  - any character in the string
  * ANY      - any character present in the grid

Directions:
  * (N,NE,E) - parenthesized list of N NE E SE S SW W NW
  * E        - a single direction
  * ANY      - all eight directions

Attributes:
  attrs [("stroke-dasharray", "5,2"), ("stroke", "red")]

There are no backslash escapes: a quoted string runs to the next quote of
the same kind, and everything in between is taken literally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rule_types import (
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
    Rendering,
    Rule,
    Start,
    Step,
)

__all__ = ["RuleParseError", "parse_rules", "format_rule", "format_rules"]

logger = logging.getLogger(__name__)

RULE_KEYWORDS = ("loop", "step", "start", "end")
DIR_NAMES = tuple(d.value for d in Dir)


class RuleParseError(ValueError):
    """Malformed rule text. No rules are produced when this is raised."""

    def __init__(
        self,
        message: str,
        offset: int,
        line: int,
        column: int,
        token: str,
        expected: tuple[str, ...],
    ) -> None:
        super().__init__(message)
        self.offset = offset
        self.line = line
        self.column = column
        self.token = token
        self.expected = expected


def _make_error(
    text: str,
    offset: int,
    token: str,
    expected: tuple[str, ...],
    problem: str | None = None,
) -> RuleParseError:
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    column = offset - line_start + 1

    shown = token if token == "EOF" else repr(token)
    error_msg = f"{problem or f'Unexpected {shown}'} at line {line}, column {column}\n"
    error_msg += f"  {text[line_start:line_end]}\n"
    error_msg += f"  {' ' * (column - 1)}^\n"
    if expected:
        error_msg += f"  Expected: {', '.join(expected)}"
    return RuleParseError(error_msg.rstrip("\n"), offset, line, column, token, expected)


# =============================================================================
# Tokens
# =============================================================================


@dataclass(frozen=True)
class _Token:
    kind: str  # "word", "char", "string", "punct" or "eof"
    text: str  # word/punct text, or the contents between quotes
    offset: int
    end: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch == "#":
            newline = text.find("\n", i)
            i = n if newline == -1 else newline + 1
        elif ch == "'":
            # Exactly one character between the quotes, whatever it is
            if i + 2 >= n or text[i + 2] != "'":
                raise _make_error(
                    text, i, text[i : i + 3], ("'c'",),
                    "Unterminated character literal",
                )
            tokens.append(_Token("char", text[i + 1], i, i + 3))
            i += 3
        elif ch == '"':
            close = text.find('"', i + 1)
            if close == -1:
                raise _make_error(text, i, '"', ('"..."',), "Unterminated string")
            tokens.append(_Token("string", text[i + 1 : close], i, close + 1))
            i = close + 1
        elif ch.isalpha() or ch == "_":
            j = i
            while j < n and (text[j].isalnum() or text[j] == "_"):
                j += 1
            tokens.append(_Token("word", text[i:j], i, j))
            i = j
        elif ch in "()[],;":
            tokens.append(_Token("punct", ch, i, i + 1))
            i += 1
        else:
            raise _make_error(text, i, ch, (), f"Unexpected character {ch!r}")

    tokens.append(_Token("eof", "", n, n))
    return tokens


# =============================================================================
# Parser
# =============================================================================


class _RuleParser:
    """Recursive descent over the token list."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def peek(self) -> _Token:
        return self.tokens[self.pos]

    def advance(self) -> _Token:
        tok = self.tokens[self.pos]
        if tok.kind != "eof":
            self.pos += 1
        return tok

    def fail(self, tok: _Token, expected: tuple[str, ...], problem: str | None = None) -> RuleParseError:
        shown = "EOF" if tok.kind == "eof" else self.text[tok.offset : tok.end]
        return _make_error(self.text, tok.offset, shown, expected, problem)

    def is_word(self, tok: _Token, *words: str) -> bool:
        return tok.kind == "word" and tok.text in words

    def expect_punct(self, ch: str) -> _Token:
        tok = self.advance()
        if tok.kind != "punct" or tok.text != ch:
            raise self.fail(tok, (repr(ch),))
        return tok

    def expect_string(self, what: str) -> str:
        tok = self.advance()
        if tok.kind != "string":
            raise self.fail(tok, (what,))
        return tok.text

    def parse_rules(self) -> list[Rule]:
        rules: list[Rule] = []
        while self.peek().kind != "eof":
            rules.append(self.parse_rule())
        return rules

    def parse_rule(self) -> Rule:
        tok = self.advance()
        if self.is_word(tok, "loop", "step"):
            prev = self.parse_charset()
            prev_dirs = self.parse_dirs()
            curr = self.parse_charset()
            curr_dirs = self.parse_dirs()
            nxt = self.parse_charset()
            if tok.text == "loop":
                pat: Match = Loop(prev, prev_dirs, curr, curr_dirs, nxt)
            else:
                pat = Step(prev, prev_dirs, curr, curr_dirs, nxt)
        elif self.is_word(tok, "start"):
            curr = self.parse_charset()
            dirs = self.parse_dirs()
            nxt = self.parse_charset()
            pat = Start(curr, dirs, nxt)
        elif self.is_word(tok, "end"):
            prev = self.parse_charset()
            dirs = self.parse_dirs()
            curr = self.parse_charset()
            pat = End(prev, dirs, curr)
        else:
            raise self.fail(tok, RULE_KEYWORDS)

        render = self.parse_render(tok)
        self.expect_punct(";")
        return Rule(pat, render)

    def parse_charset(self) -> CharSet:
        tok = self.advance()
        if tok.kind == "char":
            return Char(tok.text)
        if tok.kind == "string":
            if not tok.text:
                raise self.fail(tok, ('"chars"',), "Empty character set")
            return Chars(tok.text)
        if self.is_word(tok, "ANY"):
            return AnyChar()
        raise self.fail(tok, ("'c'", '"chars"', "ANY"))

    def parse_dirs(self) -> Dirs:
        tok = self.advance()
        if self.is_word(tok, "ANY"):
            return ANY_DIRS
        if self.is_word(tok, *DIR_NAMES):
            return Dirs((Dir(tok.text),))
        if tok.kind != "punct" or tok.text != "(":
            raise self.fail(tok, ("(dirs)", "ANY") + DIR_NAMES)

        dirs: list[Dir] = []
        while True:
            tok = self.advance()
            if not self.is_word(tok, *DIR_NAMES):
                raise self.fail(tok, DIR_NAMES)
            dirs.append(Dir(tok.text))
            tok = self.advance()
            if tok.kind == "punct" and tok.text == ")":
                return Dirs(tuple(dirs))
            if tok.kind != "punct" or tok.text != ",":
                raise self.fail(tok, ("','", "')'"))

    def parse_render(self, rule_tok: _Token) -> Rendering:
        tok = self.advance()
        if not self.is_word(tok, "draw"):
            raise self.fail(tok, ("draw",))
        draw = self.expect_string('"template"')

        if not self.is_word(self.peek(), "attrs"):
            return Rendering(draw)
        self.advance()

        self.expect_punct("[")
        attrs = [self.parse_attr()]
        while True:
            tok = self.advance()
            if tok.kind == "punct" and tok.text == "]":
                break
            if tok.kind != "punct" or tok.text != ",":
                raise self.fail(tok, ("','", "']'"))
            attrs.append(self.parse_attr())

        keys = [k for k, _ in attrs]
        for key in sorted({k for k in keys if keys.count(k) > 1}):
            line = self.text.count("\n", 0, rule_tok.offset) + 1
            logger.warning("Duplicate attribute %r in rule on line %d; all values kept", key, line)

        return Rendering(draw, tuple(attrs))

    def parse_attr(self) -> tuple[str, str]:
        self.expect_punct("(")
        key = self.expect_string('"name"')
        self.expect_punct(",")
        value = self.expect_string('"value"')
        self.expect_punct(")")
        return (key, value)


def parse_rules(text: str) -> list[Rule]:
    """
    Parse rule-set text into rules, in declaration order.

    Args:
        text: Rule-set source

    Returns:
        List of rules; earlier rules take priority when matching

    Raises:
        RuleParseError: On any malformed statement (the whole text is rejected)
    """
    return _RuleParser(text).parse_rules()


# =============================================================================
# Formatting
# =============================================================================


def _quoted(s: str, what: str) -> str:
    if '"' in s:
        raise ValueError(f"{what} {s!r} contains '\"' and cannot be written as rule text")
    return f'"{s}"'


def _format_charset(cs: CharSet) -> str:
    match cs:
        case Char(char=c):
            return f"'{c}'"
        case Chars(chars=chars):
            return _quoted(chars, "Character set")
        case AnyChar():
            return "ANY"
        case _:
            raise ValueError(f"Unknown character set: {cs!r}")


def _format_dirs(dirs: Dirs) -> str:
    if dirs == ANY_DIRS:
        return "ANY"
    if not dirs.dirs:
        raise ValueError("Empty direction list cannot be written as rule text")
    return "(" + ",".join(d.value for d in dirs) + ")"


def format_rule(rule: Rule) -> str:
    """Write a rule back out as rule text (parses back to an equal Rule)."""
    pat = rule.pat
    match pat:
        case Loop() | Step():
            keyword = "loop" if isinstance(pat, Loop) else "step"
            parts = [
                keyword,
                _format_charset(pat.prev),
                _format_dirs(pat.prev_dirs),
                _format_charset(pat.curr),
                _format_dirs(pat.curr_dirs),
                _format_charset(pat.next),
            ]
        case Start(curr=curr, dirs=dirs, next=nxt):
            parts = ["start", _format_charset(curr), _format_dirs(dirs), _format_charset(nxt)]
        case End(prev=prev, dirs=dirs, curr=curr):
            parts = ["end", _format_charset(prev), _format_dirs(dirs), _format_charset(curr)]
        case _:
            raise ValueError(f"Unknown match pattern: {pat!r}")

    parts += ["draw", _quoted(rule.render.draw, "Template")]
    if rule.render.attrs is not None:
        if not rule.render.attrs:
            raise ValueError("Empty attrs list cannot be written as rule text (use attrs=None)")
        pairs = ", ".join(
            f"({_quoted(k, 'Attribute name')}, {_quoted(v, 'Attribute value')})"
            for k, v in rule.render.attrs
        )
        parts += ["attrs", f"[{pairs}]"]
    return " ".join(parts) + ";"


def format_rules(rules: list[Rule] | tuple[Rule, ...]) -> str:
    return "".join(format_rule(rule) + "\n" for rule in rules)
