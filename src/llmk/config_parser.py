# llmk/config_parser.py
"""
Parser for the TOML subset accepted in llmk configurations.

Parsing happens in two passes:
- Tokenizer turns the raw text into a flat list of Tokens (comments and
  insignificant whitespace are dropped, line breaks are kept).
- Parser walks the token list with one token of lookahead and builds the
  nested dict of values.

Supported: bare/dotted/quoted keys, single-line strings (no escape
processing), integers, floats, booleans, arrays, inline tables and
[table] headers. Multi-line strings, dates and arrays of tables raise
ParserError("Unsupported construct: ...").

As in TOML, a table written inline cannot be extended afterwards, and a
table created by a dotted key cannot be reopened with a [header].
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass
from typing import Union

from .exceptions import ParserError
from .logging_config import debug_logger

logger = logging.getLogger(__name__)

Value = Union[str, int, float, bool, list["Value"], dict[str, "Value"]]
RawTable = dict[str, Value]

WHITESPACE = " \t"
NEWLINES = "\r\n"
QUOTES = "\"'"
BARE_CHARS = frozenset(string.ascii_letters + string.digits + "_-+.:")
PUNCTUATION = {
    "=": "EQUALS",
    ",": "COMMA",
    "[": "LBRACKET",
    "]": "RBRACKET",
    "{": "LBRACE",
    "}": "RBRACE",
}

BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
NUMBER_RE = re.compile(r"^[+\-0-9][0-9_+\-.eE]*$")
INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}|\d{2}:\d{2})")
BOOLEANS = {"true": True, "false": False}
SPECIAL_FLOATS = frozenset({"inf", "+inf", "-inf", "nan", "+nan", "-nan"})
MAX_NESTING = 100


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int

    def describe(self) -> str:
        if self.kind == "NEWLINE":
            return "line break"
        if self.kind == "EOF":
            return "end of input"
        if self.kind == "STRING":
            return f'string "{self.text}"'
        return f'"{self.text}"'


# =====================================================================
#   Tokenizer
# =====================================================================
class Tokenizer:
    """Single left-to-right pass over the text; never backtracks."""

    def __init__(self, text: str):
        self._text = text
        self._pos = 0
        self._line = 1

    def _peek(self, n: int = 0) -> str:
        i = self._pos + n
        return self._text[i] if i < len(self._text) else ""

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self._pos < len(self._text):
            ch = self._peek()

            if ch in WHITESPACE:
                self._pos += 1
            elif ch == "#":
                while self._pos < len(self._text) and self._peek() not in NEWLINES:
                    self._pos += 1
            elif ch in NEWLINES:
                # \r\n counts as one line break
                self._pos += 2 if (ch == "\r" and self._peek(1) == "\n") else 1
                tokens.append(Token("NEWLINE", "\n", self._line))
                self._line += 1
            elif ch in QUOTES:
                tokens.append(self._read_string())
            elif ch in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[ch], ch, self._line))
                self._pos += 1
            elif ch in BARE_CHARS:
                tokens.append(self._read_bare())
            else:
                raise ParserError(f"Unexpected character {ch!r}", self._line)

        tokens.append(Token("EOF", "", self._line))
        return tokens

    def _read_string(self) -> Token:
        delimiter = self._peek()
        if self._text.startswith(delimiter * 3, self._pos):
            raise ParserError("Unsupported construct: multi-line string", self._line)

        start = self._pos + 1
        end = start
        while end < len(self._text):
            ch = self._text[end]
            if ch == delimiter:
                self._pos = end + 1
                return Token("STRING", self._text[start:end], self._line)
            if ch in NEWLINES:
                raise ParserError("Single-line string cannot contain line break", self._line)
            end += 1

        raise ParserError("Unterminated string", self._line)

    def _read_bare(self) -> Token:
        start = self._pos
        while self._pos < len(self._text) and self._peek() in BARE_CHARS:
            self._pos += 1
        return Token("BARE", self._text[start : self._pos], self._line)


# =====================================================================
#   Value conversion
# =====================================================================
def parse_number(text: str, line: int | None = None) -> int | float:
    """
    Convert a numeric literal. Underscores are digit separators and are
    removed before conversion.

    Raises:
        ParserError: If the literal contains any other character or does
            not form a valid int/float.
    """
    if not NUMBER_RE.match(text):
        raise ParserError("Invalid number", line)
    digits = text.replace("_", "")
    try:
        if INTEGER_RE.match(digits):
            return int(digits)
        return float(digits)
    except ValueError:
        raise ParserError("Invalid number", line) from None


def convert_bare_value(token: Token) -> Value:
    text = token.text
    if text in BOOLEANS:
        return BOOLEANS[text]
    if text in SPECIAL_FLOATS:
        return float(text)
    if DATE_RE.match(text):
        raise ParserError("Unsupported construct: date/time", token.line)
    if text[0] in "+-0123456789":
        return parse_number(text, token.line)
    raise ParserError(f"Unsupported construct: {text!r}", token.line)


# =====================================================================
#   Parser
# =====================================================================
class Parser:
    """Recursive-descent parser over a Tokenizer's output."""

    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._index = 0
        self._root: RawTable = {}
        self._current: RawTable = self._root
        self._explicit_tables: set[tuple[str, ...]] = set()
        # Tables are tracked by identity; every one stays reachable from _root.
        self._header_tables: set[int] = set()
        self._dotted_tables: set[int] = set()
        self._inline_tables: set[int] = set()
        self._depth = 0

    # ------------------------------------------------------------------ #
    # Token helpers
    # ------------------------------------------------------------------ #
    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        tok = self._tokens[self._index]
        if tok.kind != "EOF":
            self._index += 1
        return tok

    def _expect(self, kind: str, message: str) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            raise ParserError(f"{message}, found {tok.describe()}", tok.line)
        return self._advance()

    def _skip_newlines(self) -> None:
        while self._peek().kind == "NEWLINE":
            self._advance()

    def _expect_line_end(self) -> None:
        tok = self._peek()
        if tok.kind == "NEWLINE":
            self._advance()
        elif tok.kind != "EOF":
            raise ParserError("Invalid primitive", tok.line)

    # ------------------------------------------------------------------ #
    # Document structure
    # ------------------------------------------------------------------ #
    def parse(self) -> RawTable:
        while True:
            tok = self._peek()
            if tok.kind == "EOF":
                return self._root
            if tok.kind == "NEWLINE":
                self._advance()
                continue

            if tok.kind == "LBRACKET":
                self._parse_table_header()
            else:
                self._parse_key_value(self._current)
            self._expect_line_end()

    def _parse_table_header(self) -> None:
        open_tok = self._advance()
        if self._peek().kind == "LBRACKET":
            raise ParserError("Unsupported construct: array of tables", open_tok.line)

        path = self._parse_key()
        self._expect("RBRACKET", 'Expected "]" to close table header')

        key = tuple(path)
        if key in self._explicit_tables:
            raise ParserError(f'Cannot redefine table "{".".join(path)}"', open_tok.line)
        self._explicit_tables.add(key)

        table = self._root
        for part in path:
            if part not in table:
                table[part] = {}
            elif not isinstance(table[part], dict) or id(table[part]) in self._inline_tables:
                raise ParserError(f'Cannot redefine key "{part}"', open_tok.line)
            table = table[part]  # type: ignore[assignment]
        if id(table) in self._dotted_tables:
            raise ParserError(f'Cannot redefine table "{".".join(path)}"', open_tok.line)

        self._header_tables.add(id(table))
        self._current = table

    def _parse_key(self) -> list[str]:
        tok = self._peek()
        if tok.kind == "EQUALS":
            raise ParserError("Empty key name", tok.line)

        if tok.kind == "STRING":
            self._advance()
            if not tok.text.strip():
                raise ParserError("Empty key name", tok.line)
            return [tok.text]

        if tok.kind == "BARE":
            self._advance()
            parts = tok.text.split(".")
            for part in parts:
                if not BARE_KEY_RE.match(part):
                    raise ParserError(f'Invalid key "{tok.text}"', tok.line)
            return parts

        raise ParserError(f"Expected a key, found {tok.describe()}", tok.line)

    def _parse_key_value(self, table: RawTable) -> None:
        line = self._peek().line
        path = self._parse_key()
        self._expect("EQUALS", f'Expected "=" after key "{".".join(path)}"')
        value = self._parse_value()

        target = self._descend(table, path[:-1], line)
        key = path[-1]
        if key in target:
            raise ParserError(f'Cannot redefine key "{".".join(path)}"', line)
        target[key] = value

    def _descend(self, table: RawTable, path: list[str], line: int) -> RawTable:
        """Walk (creating as needed) the sub-tables named by a dotted key."""
        for part in path:
            if part not in table:
                table[part] = {}
                self._dotted_tables.add(id(table[part]))
            elif (
                not isinstance(table[part], dict)
                or id(table[part]) in self._inline_tables
                or id(table[part]) in self._header_tables
            ):
                raise ParserError(f'Cannot redefine key "{part}"', line)
            table = table[part]  # type: ignore[assignment]
        return table

    def _close_inline(self, table: RawTable) -> None:
        self._inline_tables.add(id(table))
        for value in table.values():
            if isinstance(value, dict):
                self._close_inline(value)

    def _enter(self, tok: Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise ParserError("Arrays and inline tables are nested too deeply", tok.line)

    # ------------------------------------------------------------------ #
    # Values
    # ------------------------------------------------------------------ #
    def _parse_value(self) -> Value:
        tok = self._peek()
        if tok.kind == "STRING":
            self._advance()
            return tok.text
        if tok.kind == "BARE":
            self._advance()
            return convert_bare_value(tok)
        if tok.kind == "LBRACKET":
            self._enter(tok)
            items = self._parse_array()
            self._depth -= 1
            return items
        if tok.kind == "LBRACE":
            self._enter(tok)
            table = self._parse_inline_table()
            self._depth -= 1
            self._close_inline(table)
            return table
        if tok.kind in ("NEWLINE", "EOF"):
            raise ParserError("Missing value", tok.line)
        raise ParserError(f"Unsupported construct: {tok.describe()}", tok.line)

    def _parse_array(self) -> list[Value]:
        open_tok = self._advance()
        items: list[Value] = []
        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok.kind == "RBRACKET":
                self._advance()
                return items
            if tok.kind == "EOF":
                raise ParserError("Unterminated array", open_tok.line)

            items.append(self._parse_value())

            self._skip_newlines()
            tok = self._peek()
            if tok.kind == "COMMA":
                self._advance()
            elif tok.kind != "RBRACKET":
                raise ParserError(f'Expected "," or "]" in array, found {tok.describe()}', tok.line)

    def _parse_inline_table(self) -> RawTable:
        self._advance()
        table: RawTable = {}
        if self._peek().kind == "RBRACE":
            self._advance()
            return table

        while True:
            tok = self._peek()
            if tok.kind in ("NEWLINE", "EOF"):
                raise ParserError("Inline table must be closed on the same line", tok.line)

            self._parse_key_value(table)

            tok = self._peek()
            if tok.kind == "COMMA":
                self._advance()
            elif tok.kind == "RBRACE":
                self._advance()
                return table
            else:
                raise ParserError(
                    f'Expected "," or "}}" in inline table, found {tok.describe()}', tok.line
                )


# =====================================================================
#   Entry point
# =====================================================================
def parse_config(text: str) -> RawTable:
    """
    Parse configuration text into a (possibly nested) dict.

    Raises:
        ParserError: On the first grammar violation; no partial table is returned.
    """
    tokens = Tokenizer(text).tokenize()
    logger.debug(f"Tokenized configuration into {len(tokens)} tokens")
    table = Parser(tokens).parse()
    debug_logger("parser").debug(f"parsed table: {table!r}")
    return table
