"""Quote- and comment-aware SQL lexer: normalization and statement splitting.

A small tagged-state tokenizer. It knows just enough SQL to tell code from
quoted text and comments, so that comment stripping and statement splitting
never look inside a string literal or a quoted identifier.

Quoting and comment rules differ between engines, and a lexer that disagrees
with the server about where a literal ends also disagrees about where a
statement ends. Each supported engine therefore gets its own ``Dialect``.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass

TERMINATOR = ";"


@dataclass(frozen=True)
class Dialect:
    """Lexical rules of one database engine."""

    name: str
    quotes: str
    backslash_escapes: bool
    # MySQL: '#' comments, '-- ' needs trailing whitespace, /*! ... */ runs.
    hash_comments: bool = False
    strict_double_dash: bool = False
    executable_comments: bool = False
    # PostgreSQL family: $tag$...$tag$, E'...' and nested /* /* */ */.
    dollar_quotes: bool = False
    escape_strings: bool = False
    nested_comments: bool = False


MYSQL = Dialect(
    name="mysql",
    quotes="'\"`",
    backslash_escapes=True,
    hash_comments=True,
    strict_double_dash=True,
    executable_comments=True,
)
POSTGRES = Dialect(
    name="postgres",
    quotes="'\"",
    backslash_escapes=False,
    dollar_quotes=True,
    escape_strings=True,
    nested_comments=True,
)
DUCKDB = Dialect(
    name="duckdb",
    quotes="'\"",
    backslash_escapes=False,
    dollar_quotes=True,
    escape_strings=True,
    nested_comments=True,
)

DIALECTS: dict[str, Dialect] = {d.name: d for d in (MYSQL, POSTGRES, DUCKDB)}
DEFAULT_DIALECT = MYSQL

_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*)?\$")
_EXECUTABLE_OPENER = re.compile(r"/\*!\d*")


def get_dialect(name: str | None) -> Dialect:
    """Lexical rules for an engine name; None means the MySQL default."""
    if name is None:
        return DEFAULT_DIALECT
    try:
        return DIALECTS[name]
    except KeyError:
        valid = ", ".join(DIALECTS)
        raise ValueError(f"Unknown dialect '{name}'. Valid: {valid}") from None


class TokenKind(enum.Enum):
    WORD = "word"
    QUOTED = "quoted"          # 'string', "identifier or string", `identifier`, $$body$$
    SYMBOL = "symbol"
    TERMINATOR = "terminator"
    WHITESPACE = "whitespace"
    COMMENT = "comment"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _scan_quoted(sql: str, start: int, *, backslash_escapes: bool) -> int:
    """Return the index just past the literal opened at ``start``.

    A doubled quote inside the literal is an escaped quote. Backslash escapes
    apply only where the dialect honours them, and never in backtick
    identifiers. An unterminated literal runs to end of input.
    """
    quote = sql[start]
    i = start + 1
    n = len(sql)
    while i < n:
        ch = sql[i]
        if ch == "\\" and backslash_escapes and quote != "`":
            i += 2
            continue
        if ch == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def _scan_block_comment(sql: str, start: int, *, nested: bool) -> int:
    """Return the index just past the comment opened at ``start``."""
    if not nested:
        j = sql.find("*/", start + 2)
        return len(sql) if j == -1 else j + 2
    depth = 0
    i = start
    n = len(sql)
    while i < n:
        if sql.startswith("/*", i):
            depth += 1
            i += 2
        elif sql.startswith("*/", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return n


def _dollar_tag(sql: str, i: int) -> str | None:
    """The $tag$ delimiter opening a dollar-quoted body at ``i``, if any."""
    m = _DOLLAR_TAG.match(sql, i)
    return m.group() if m else None


def _starts_line_comment(sql: str, i: int, dialect: Dialect) -> bool:
    if dialect.hash_comments and sql[i] == "#":
        return True
    if not sql.startswith("--", i):
        return False
    if not dialect.strict_double_dash:
        return True
    # MySQL only treats "--" as a comment when whitespace or a control
    # character follows; "1--1" is arithmetic.
    return i + 2 >= len(sql) or sql[i + 2].isspace() or ord(sql[i + 2]) < 32


def tokenize(sql: str, *, dialect: Dialect = DEFAULT_DIALECT) -> Iterator[Token]:
    """Yield tokens covering ``sql`` exactly; concatenating texts gives back the input.

    A MySQL executable comment (``/*!50100 ... */``) is code to the server,
    so only its opener and closer are yielded as comments and the body is
    tokenized like any other SQL.
    """
    i = 0
    n = len(sql)
    in_executable = False
    while i < n:
        ch = sql[i]
        tag = _dollar_tag(sql, i) if ch == "$" and dialect.dollar_quotes else None
        if ch.isspace():
            j = i + 1
            while j < n and sql[j].isspace():
                j += 1
            yield Token(TokenKind.WHITESPACE, sql[i:j])
        elif _starts_line_comment(sql, i, dialect):
            j = sql.find("\n", i)
            j = n if j == -1 else j
            yield Token(TokenKind.COMMENT, sql[i:j])
        elif in_executable and sql.startswith("*/", i):
            j = i + 2
            in_executable = False
            yield Token(TokenKind.COMMENT, sql[i:j])
        elif dialect.executable_comments and not in_executable and sql.startswith("/*!", i):
            j = _EXECUTABLE_OPENER.match(sql, i).end()
            in_executable = True
            yield Token(TokenKind.COMMENT, sql[i:j])
        elif sql.startswith("/*", i):
            j = _scan_block_comment(sql, i, nested=dialect.nested_comments)
            yield Token(TokenKind.COMMENT, sql[i:j])
        elif ch in dialect.quotes:
            j = _scan_quoted(sql, i, backslash_escapes=dialect.backslash_escapes)
            yield Token(TokenKind.QUOTED, sql[i:j])
        elif tag:
            close = sql.find(tag, i + len(tag))
            j = n if close == -1 else close + len(tag)
            yield Token(TokenKind.QUOTED, sql[i:j])
        elif ch == TERMINATOR:
            j = i + 1
            yield Token(TokenKind.TERMINATOR, ch)
        elif _is_word_char(ch):
            j = i + 1
            while j < n and _is_word_char(sql[j]):
                j += 1
            if dialect.escape_strings and j - i == 1 and ch in "Ee" and j < n and sql[j] == "'":
                # E'...' honours backslash escapes even with standard strings on.
                j = _scan_quoted(sql, j, backslash_escapes=True)
                yield Token(TokenKind.QUOTED, sql[i:j])
            else:
                yield Token(TokenKind.WORD, sql[i:j])
        else:
            j = i + 1
            yield Token(TokenKind.SYMBOL, ch)
        i = j


def normalize(sql: str, *, dialect: Dialect = DEFAULT_DIALECT) -> str:
    """Strip comments, collapse whitespace runs to one space, and trim.

    Quoted text is kept byte for byte. A comment counts as whitespace, so
    ``SELECT/* x */1`` becomes ``SELECT 1``.
    """
    parts: list[str] = []
    pending_space = False
    for token in tokenize(sql, dialect=dialect):
        if token.kind in (TokenKind.WHITESPACE, TokenKind.COMMENT):
            pending_space = True
            continue
        if pending_space and parts:
            parts.append(" ")
        pending_space = False
        parts.append(token.text)
    return "".join(parts)


def split_statements(sql: str, *, dialect: Dialect = DEFAULT_DIALECT) -> list[str]:
    """Split on statement terminators outside quoted text; drop empty units."""
    units: list[str] = []
    current: list[str] = []
    for token in tokenize(sql, dialect=dialect):
        if token.kind is TokenKind.TERMINATOR:
            units.append("".join(current).strip())
            current = []
        else:
            current.append(token.text)
    units.append("".join(current).strip())
    return [u for u in units if u]


def words(sql: str, *, dialect: Dialect = DEFAULT_DIALECT) -> list[str]:
    """Bare (unquoted) words of ``sql``, uppercased, in source order."""
    return [
        t.text.upper()
        for t in tokenize(sql, dialect=dialect)
        if t.kind is TokenKind.WORD
    ]
