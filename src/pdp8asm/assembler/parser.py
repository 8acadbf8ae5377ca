"""
Source Line Parser
==================

Splits one source line into its fields. No values are computed here; the
assembler evaluates the pieces during each pass.

Line Format
-----------
    [LABEL, ...] [NAME=expr | MNEMONIC operands | expr] [; comment]

- A label ends with ``,`` or ``:``. A ``:`` followed directly by a symbol
  character is part of a qualified name (``MAIN:_LOOP``), not a
  terminator. Several labels may precede the rest of the line.
- ``NAME=expr`` defines a constant.
- The first remaining word is the mnemonic or directive; everything after
  it is the operand field.
- A line whose first word is neither an instruction nor a directive is a
  data word: the whole field is one expression.

Example:
    >>> line = parse_line("LOOP,\\tTAD\\tCOUNT\\t; next", row=3)
    >>> [label.name for label in line.labels], str(line.mnemonic), str(line.operand)
    (['LOOP'], 'TAD', 'COUNT')
"""

from dataclasses import dataclass, field
from typing import Optional

from pdp8asm.errors import SourceLocation
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.predicates import char_equal, label_char, label_terminator, word_char


@dataclass(frozen=True)
class LabelDef:
    """A label written at the start of a line."""
    name: str
    location: SourceLocation


@dataclass(frozen=True)
class Assignment:
    """``NAME=expr`` constant definition."""
    name: str
    location: SourceLocation
    value: SourceCursor


@dataclass(frozen=True)
class SourceLine:
    """
    One parsed source line.

    Attributes:
        row: Line number (1-indexed)
        text: The complete original line
        labels: Labels defined on the line, in order
        assignment: Constant definition, if the line is ``NAME=expr``
        mnemonic: First word after the labels (None for label-only lines)
        operand: Text after the mnemonic, trimmed (may be empty)
        body: Mnemonic and operand together, for data lines
    """
    row: int
    text: str
    labels: tuple[LabelDef, ...] = field(default_factory=tuple)
    assignment: Optional[Assignment] = None
    mnemonic: Optional[SourceCursor] = None
    operand: Optional[SourceCursor] = None
    body: Optional[SourceCursor] = None


def _split_label(cursor: SourceCursor) -> Optional[tuple[LabelDef, SourceCursor]]:
    """Split a leading ``NAME,`` or ``NAME:`` off the cursor."""
    name, rest = cursor.consume_while(label_char)
    if name.is_empty():
        return None
    if not rest.starts_with(label_terminator):
        return None
    if rest.starts_with(char_equal(":")) and rest.consume(1).starts_with(label_char):
        return None
    label = LabelDef(str(name).upper(), cursor.location)
    return label, rest.consume(1).consume_whitespace()


def split_assignment(cursor: SourceCursor) -> Optional[Assignment]:
    name, rest = cursor.consume_while(label_char)
    if name.is_empty():
        return None
    rest = rest.consume_whitespace()
    if not rest.starts_with_string("="):
        return None
    value = rest.consume(1).consume_whitespace()
    return Assignment(str(name).upper(), cursor.location, value)


def parse_line(text: str, row: int, filename: str = "<input>") -> SourceLine:
    """
    Parse one source line.

    Args:
        text: Line text without the line terminator
        row: Line number (1-indexed)
        filename: Source file name for locations

    Returns:
        SourceLine with the fields found
    """
    cursor = SourceCursor.from_line(text, row, filename)
    cursor = cursor.strip_trailing_comment().consume_whitespace()

    labels = []
    while True:
        split = _split_label(cursor)
        if split is None:
            break
        label, cursor = split
        labels.append(label)

    if cursor.is_empty():
        return SourceLine(row, text, tuple(labels))

    assignment = split_assignment(cursor)
    if assignment is not None:
        return SourceLine(row, text, tuple(labels), assignment=assignment)

    mnemonic, rest = cursor.consume_while(word_char)
    return SourceLine(
        row,
        text,
        tuple(labels),
        mnemonic=mnemonic,
        operand=rest.consume_whitespace(),
        body=cursor,
    )


def split_words(cursor: SourceCursor) -> list[SourceCursor]:
    """Split an operand field into whitespace-separated words."""
    words = []
    cursor = cursor.consume_whitespace()
    while not cursor.is_empty():
        word, cursor = cursor.consume_while(word_char)
        words.append(word)
        cursor = cursor.consume_whitespace()
    return words
