"""
Assembly Expression Parser and Evaluator
========================================

Operands and directive arguments are parsed into a small immutable
expression tree, which is evaluated on demand against the symbol table.
Parsing happens straight off a ``SourceCursor``; there is no separate
token stream.

Number Formats
--------------
| Format    | Syntax         | Example | Value (decimal) |
|-----------|----------------|---------|-----------------|
| Octal     | digits         | 177     | 127             |
| Decimal   | 0d prefix      | 0d99    | 99              |
| Decimal   | trailing .     | 99.     | 99              |
| Binary    | 0b prefix      | 0b101   | 5               |
| Character | 'c' or "c"     | 'A'     | 65              |

The location counter is written ``.``.

Operators
---------
From lowest to highest precedence:

1. Inclusive OR: ``|`` and ``!`` (the PAL spelling)
2. Exclusive OR: ``^``
3. AND: ``&``
4. Addition/Subtraction: ``+ -``
5. Multiplication/Division/Remainder: ``* / %``
6. Unary: ``- + ~``
7. Primary: number, symbol, ``.``, ``(expr)``

Forward References
------------------
Evaluation never raises for a missing symbol. It returns an
``Evaluation`` whose ``undefined`` field names the first symbol that had
no value (the value is computed with 0 in its place). Pass 1 ignores it;
pass 2 turns it into a ``U`` diagnostic.

Example Usage
-------------
>>> from pdp8asm.assembler.cursor import SourceCursor
>>> from pdp8asm.assembler.expressions import parse_expression, evaluate
>>> expr = parse_expression(SourceCursor.from_line("BUF+10", 1))
>>> evaluate(expr, {"BUF": 0o200}.get, pc=0).value == 0o210
True
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from pdp8asm.errors import ExpressionError, SourceLocation
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.predicates import (
    binary,
    decimal,
    identifier_char,
    identifier_start_char,
    octal,
    string_quote,
)

WORD_MASK = 0o7777

SymbolLookup = Callable[[str], Optional[int]]


# =============================================================================
# Expression AST Nodes
# =============================================================================

class ExprNodeType(Enum):
    """Types of expression AST nodes."""
    NUMBER = auto()      # Literal number
    SYMBOL = auto()      # Symbol reference
    PC = auto()          # Location counter (.)
    BINARY_OP = auto()   # Binary operation (a + b)
    UNARY_OP = auto()    # Unary operation (-a, ~a)


@dataclass(frozen=True)
class ExprNode:
    """
    Immutable node of an expression tree.

    Attributes:
        node_type: Kind of node
        value: Number value or symbol name
        operator: Operator for BINARY_OP/UNARY_OP
        left: Left operand (or the only operand of a unary node)
        right: Right operand
        location: Where the node starts in the source
    """
    node_type: ExprNodeType
    value: int | str | None = None
    operator: str | None = None
    left: Optional["ExprNode"] = None
    right: Optional["ExprNode"] = None
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class Evaluation:
    """
    Result of evaluating an expression.

    Attributes:
        value: Computed value (unbounded; not yet masked to 12 bits)
        undefined: First symbol that had no value, if any
        undefined_location: Where that symbol was referenced
        error: Description of an arithmetic error (division by zero)
    """
    value: int
    undefined: Optional[str] = None
    undefined_location: Optional[SourceLocation] = None
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.undefined is None and self.error is None


# =============================================================================
# Parser
# =============================================================================

BINARY_LEVELS: tuple[tuple[str, ...], ...] = (
    ("|", "!"),
    ("^",),
    ("&",),
    ("+", "-"),
    ("*", "/", "%"),
)

UNARY_OPERATORS = ("-", "+", "~")


class ExpressionParser:
    """
    Recursive descent parser producing an ExprNode tree.

    Usage:
        parser = ExpressionParser(cursor)
        tree = parser.parse()       # whole cursor must be consumed
        tree, rest = parser.parse_prefix()
    """

    def __init__(self, cursor: SourceCursor):
        self._cursor = cursor
        self._start = cursor

    def parse(self) -> ExprNode:
        """Parse the whole cursor as one expression."""
        node, rest = self.parse_prefix()
        rest = rest.consume_whitespace()
        if not rest.is_empty():
            raise ExpressionError(
                f"unexpected '{rest.text[0]}' in expression",
                rest.location,
                source_line=rest.full,
            )
        return node

    def parse_prefix(self) -> tuple[ExprNode, SourceCursor]:
        """Parse an expression at the start of the cursor, return the rest."""
        self._skip_ws()
        if self._cursor.is_empty():
            raise ExpressionError("missing expression", self._cursor.location,
                                  source_line=self._cursor.full)
        node = self._parse_level(0)
        return node, self._cursor

    # =========================================================================
    # Cursor Helpers
    # =========================================================================

    def _skip_ws(self) -> None:
        self._cursor = self._cursor.consume_whitespace()

    def _peek(self) -> str:
        return self._cursor.text[0] if not self._cursor.is_empty() else ""

    def _error(self, message: str) -> ExpressionError:
        return ExpressionError(message, self._cursor.location, source_line=self._cursor.full)

    # =========================================================================
    # Grammar
    # =========================================================================

    def _parse_level(self, level: int) -> ExprNode:
        if level == len(BINARY_LEVELS):
            return self._parse_unary()

        left = self._parse_level(level + 1)
        while True:
            self._skip_ws()
            op = self._peek()
            if op and op in BINARY_LEVELS[level]:
                location = self._cursor.location
                self._cursor = self._cursor.consume(1)
                right = self._parse_level(level + 1)
                left = ExprNode(ExprNodeType.BINARY_OP, operator=op,
                                left=left, right=right, location=location)
            else:
                return left

    def _parse_unary(self) -> ExprNode:
        self._skip_ws()
        op = self._peek()
        if op and op in UNARY_OPERATORS:
            location = self._cursor.location
            self._cursor = self._cursor.consume(1)
            operand = self._parse_unary()
            return ExprNode(ExprNodeType.UNARY_OP, operator=op, left=operand, location=location)
        return self._parse_primary()

    def _parse_primary(self) -> ExprNode:
        self._skip_ws()
        c = self._peek()
        location = self._cursor.location

        if c == "":
            raise self._error("unexpected end of expression")

        if c == "(":
            self._cursor = self._cursor.consume(1)
            node = self._parse_level(0)
            self._skip_ws()
            if self._peek() != ")":
                raise self._error("expected ')' to close expression")
            self._cursor = self._cursor.consume(1)
            return node

        if decimal(c):
            return self._parse_number()

        if string_quote(c):
            return self._parse_char()

        if identifier_start_char(c):
            name, self._cursor = self._cursor.consume_while(identifier_char)
            if str(name) == ".":
                return ExprNode(ExprNodeType.PC, location=location)
            return ExprNode(ExprNodeType.SYMBOL, value=str(name).upper(), location=location)

        raise self._error(f"expected value, got '{c}'")

    def _parse_number(self) -> ExprNode:
        location = self._cursor.location
        text = self._cursor.text

        if len(text) > 2 and text[0] == "0" and text[1] in "dDbB":
            radix_char = text[1].lower()
            body = self._cursor.consume(2)
            digits, rest = body.consume_while(decimal)
            if digits.is_empty():
                raise self._error(f"missing digits after '0{radix_char}'")
            if radix_char == "b":
                if not all(binary(d) for d in digits.text):
                    raise ExpressionError(f"invalid binary number '{digits}'", location,
                                          source_line=self._cursor.full)
                value = int(digits.text, 2)
            else:
                value = int(digits.text, 10)
            self._cursor = rest
            return ExprNode(ExprNodeType.NUMBER, value=value, location=location)

        digits, rest = self._cursor.consume_while(decimal)
        if rest.starts_with_string(".") and not rest.consume(1).starts_with(identifier_char):
            # Trailing period: decimal
            self._cursor = rest.consume(1)
            return ExprNode(ExprNodeType.NUMBER, value=int(digits.text, 10), location=location)

        if not all(octal(d) for d in digits.text):
            raise ExpressionError(f"invalid octal number '{digits}'", location,
                                  source_line=self._cursor.full)
        self._cursor = rest
        return ExprNode(ExprNodeType.NUMBER, value=int(digits.text, 8), location=location)

    def _parse_char(self) -> ExprNode:
        location = self._cursor.location
        quote = self._peek()
        text = self._cursor.text
        if len(text) < 3 or text[2] != quote:
            raise self._error("character constant must be one quoted character")
        self._cursor = self._cursor.consume(3)
        return ExprNode(ExprNodeType.NUMBER, value=ord(text[1]), location=location)


def parse_expression(cursor: SourceCursor) -> ExprNode:
    """Parse a complete expression from a cursor."""
    return ExpressionParser(cursor).parse()


def parse_string_literal(cursor: SourceCursor) -> tuple[str, bool]:
    """
    Parse a quoted string parameter.

    Returns:
        (text, terminated) - an unterminated string runs to the end of the
        parameter and ``terminated`` is False

    Raises:
        ExpressionError: If the parameter does not start with a quote, or
        has text after the closing quote
    """
    cursor = cursor.consume_whitespace().strip_trailing_whitespace()
    if not cursor.starts_with(string_quote):
        raise ExpressionError("expected a quoted string", cursor.location,
                              source_line=cursor.full)
    quote = cursor.text[0]
    body = cursor.consume(1)
    end = body.text.find(quote)
    if end < 0:
        return body.text, False
    trailing = body.consume(end + 1)
    if not trailing.is_empty():
        raise ExpressionError(f"unexpected '{trailing.text}' after string",
                              trailing.location, source_line=cursor.full)
    return body.text[:end], True


# =============================================================================
# Evaluation
# =============================================================================

def evaluate(node: ExprNode, lookup: SymbolLookup, pc: int) -> Evaluation:
    """
    Evaluate an expression tree.

    Args:
        node: Expression tree
        lookup: Returns a symbol's value, or None if it has none yet
        pc: Location counter value for ``.``

    Returns:
        Evaluation with the (unmasked) value and the first unresolved
        dependency or arithmetic error, if any
    """
    state: dict[str, object] = {}

    def walk(n: ExprNode) -> int:
        if n.node_type == ExprNodeType.NUMBER:
            return n.value
        if n.node_type == ExprNodeType.PC:
            return pc
        if n.node_type == ExprNodeType.SYMBOL:
            value = lookup(n.value)
            if value is None:
                if "undefined" not in state:
                    state["undefined"] = n.value
                    state["undefined_location"] = n.location
                return 0
            return value
        if n.node_type == ExprNodeType.UNARY_OP:
            operand = walk(n.left)
            if n.operator == "-":
                return -operand
            if n.operator == "~":
                return ~operand & WORD_MASK
            return operand

        left = walk(n.left)
        right = walk(n.right)
        op = n.operator
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op in ("/", "%"):
            # PDP-8 arithmetic is unsigned within the word
            left &= WORD_MASK
            right &= WORD_MASK
            if right == 0:
                state.setdefault("error", "division by zero")
                return 0
            return left // right if op == "/" else left % right
        if op == "&":
            return left & right
        if op in ("|", "!"):
            return left | right
        if op == "^":
            return left ^ right
        raise ValueError(f"unknown operator '{op}'")

    value = walk(node)
    return Evaluation(
        value=value,
        undefined=state.get("undefined"),
        undefined_location=state.get("undefined_location"),
        error=state.get("error"),
    )


# =============================================================================
# Range Helpers
# =============================================================================

def fits_word(value: int) -> bool:
    """True if value is representable in 12 bits (negatives as two's complement)."""
    return -WORD_MASK <= value <= WORD_MASK


def to_word(value: int) -> int:
    return value & WORD_MASK
