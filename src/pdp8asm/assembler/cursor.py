"""
Source Line Cursor
==================

This module implements the scanner used by the assembler. Instead of a
token stream, each source line is wrapped in an immutable ``SourceCursor``
that is narrowed step by step: every consume operation returns the
consumed slice and a new cursor over the remaining text. Nothing is ever
mutated, so a cursor can be kept as a bookmark for diagnostics while
scanning continues.

Column Tracking
---------------
The cursor tracks a display column with tab stops every 8 characters.
The column only serves diagnostics (``file:line:col``); it has no lexical
meaning.

Example
-------
>>> from pdp8asm.assembler.cursor import SourceCursor
>>> from pdp8asm.assembler.predicates import label_char
>>> line = SourceCursor.from_line("START,\\tTAD FOO ; add", row=1)
>>> label, rest = line.consume_while(label_char)
>>> str(label), rest.column
('START', 5)
>>> str(rest.consume(1).consume_whitespace().strip_trailing_comment())
'TAD FOO'
"""

from dataclasses import dataclass

from pdp8asm.errors import SourceLocation
from pdp8asm.assembler.predicates import (
    BytePredicate,
    comment,
    string_quote,
    whitespace,
)

TAB_STOP = 8


@dataclass(frozen=True)
class SourceCursor:
    """
    Immutable view over the unconsumed part of one source line.

    Attributes:
        offset: Character offset of ``text`` within ``full``
        row: Source line number (1-indexed)
        column: Tab-expanded display column of ``offset`` (0-indexed)
        text: The remaining (unconsumed) text
        full: The complete original line
        filename: Source file name for diagnostics
    """
    offset: int
    row: int
    column: int
    text: str
    full: str
    filename: str = "<input>"

    @classmethod
    def from_line(cls, line: str, row: int, filename: str = "<input>") -> "SourceCursor":
        return cls(0, row, 0, line, line, filename)

    def __str__(self) -> str:
        return self.text

    def __len__(self) -> int:
        return len(self.text)

    @property
    def location(self) -> SourceLocation:
        """Location of the cursor start, with a 1-indexed column."""
        return SourceLocation(self.filename, self.row, self.column + 1)

    def _advance_column(self, n: int) -> int:
        col = self.column
        for c in self.text[:n]:
            if c == "\t":
                col += TAB_STOP - (col % TAB_STOP)
            else:
                col += 1
        return col

    # =========================================================================
    # Slicing
    # =========================================================================

    def consume(self, n: int) -> "SourceCursor":
        """Drop the first n characters."""
        n = min(n, len(self.text))
        return SourceCursor(
            self.offset + n, self.row, self._advance_column(n),
            self.text[n:], self.full, self.filename,
        )

    def trunc(self, n: int) -> "SourceCursor":
        """Keep only the first n characters."""
        return SourceCursor(
            self.offset, self.row, self.column,
            self.text[:n], self.full, self.filename,
        )

    # =========================================================================
    # Tests
    # =========================================================================

    def is_empty(self) -> bool:
        return len(self.text) == 0

    def starts_with(self, predicate: BytePredicate) -> bool:
        return len(self.text) > 0 and predicate(self.text[0])

    def starts_with_string(self, s: str) -> bool:
        return self.text.startswith(s)

    # =========================================================================
    # Scanning
    # =========================================================================

    def scan_while(self, predicate: BytePredicate) -> int:
        i = 0
        while i < len(self.text) and predicate(self.text[i]):
            i += 1
        return i

    def scan_until(self, predicate: BytePredicate) -> int:
        i = 0
        while i < len(self.text) and not predicate(self.text[i]):
            i += 1
        return i

    def consume_while(self, predicate: BytePredicate) -> tuple["SourceCursor", "SourceCursor"]:
        """Split into (leading run matching predicate, remainder)."""
        i = self.scan_while(predicate)
        return self.trunc(i), self.consume(i)

    def consume_until(self, predicate: BytePredicate) -> tuple["SourceCursor", "SourceCursor"]:
        """Split into (leading run not matching predicate, remainder)."""
        i = self.scan_until(predicate)
        return self.trunc(i), self.consume(i)

    def consume_whitespace(self) -> "SourceCursor":
        return self.consume(self.scan_while(whitespace))

    def strip_trailing_whitespace(self) -> "SourceCursor":
        return self.trunc(len(self.text.rstrip(" \t")))

    def strip_trailing_comment(self) -> "SourceCursor":
        """
        Remove a trailing ``;`` comment and the whitespace before it.

        Quoted strings are skipped so that ``;`` inside them is kept. An
        unterminated quote runs to the end of the line: the caller gets a
        too-long operand rather than a scanner failure.
        """
        text = self.text
        last_non_ws = 0
        i = 0
        while i < len(text):
            c = text[i]
            if comment(c):
                break
            if string_quote(c):
                close = text.find(c, i + 1)
                if close < 0:
                    last_non_ws = len(text)
                    break
                i = close
                last_non_ws = i + 1
            elif not whitespace(c):
                last_non_ws = i + 1
            i += 1
        return self.trunc(last_non_ws)

    def split_unquoted(self, separator: BytePredicate) -> list["SourceCursor"]:
        """
        Split on separator characters that are outside quotes.

        Each piece is trimmed of surrounding whitespace. An empty cursor
        yields an empty list.
        """
        if self.strip_trailing_whitespace().consume_whitespace().is_empty():
            return []
        pieces = []
        start = 0
        quote = None
        for i, c in enumerate(self.text):
            if quote is not None:
                if c == quote:
                    quote = None
            elif string_quote(c):
                quote = c
            elif separator(c):
                pieces.append(self.consume(start).trunc(i - start))
                start = i + 1
        pieces.append(self.consume(start))
        return [p.consume_whitespace().strip_trailing_whitespace() for p in pieces]
