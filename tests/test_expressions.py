# =============================================================================
# test_expressions.py - Expression Parser and Evaluator Unit Tests
# =============================================================================
# Tests for the assembly expression trees.
#
# Test coverage includes:
#   - Number formats (octal, decimal, binary, character)
#   - Operator precedence and parentheses
#   - Location counter
#   - Undefined symbols and division by zero
#   - Quoted string parameters
# =============================================================================

import pytest

from pdp8asm.errors import ExpressionError
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.expressions import (
    ExprNodeType,
    ExpressionParser,
    evaluate,
    fits_word,
    parse_expression,
    parse_string_literal,
    to_word,
)


# =============================================================================
# Helper Functions
# =============================================================================

def value_of(text: str, symbols: dict = None, pc: int = 0) -> int:
    """Parse and evaluate an expression string, which must resolve."""
    node = parse_expression(SourceCursor.from_line(text, 1))
    result = evaluate(node, (symbols or {}).get, pc)
    assert result.resolved, result
    return result.value


# =============================================================================
# Number Formats
# =============================================================================

class TestNumbers:
    """Test literal formats."""

    def test_octal_default(self):
        """Plain numbers are octal."""
        assert value_of("177") == 127

    def test_decimal_prefix(self):
        """0d selects decimal."""
        assert value_of("0d99") == 99

    def test_decimal_trailing_period(self):
        """A trailing period selects decimal."""
        assert value_of("10.") == 10

    def test_binary(self):
        """0b selects binary."""
        assert value_of("0b101") == 5

    def test_character(self):
        """Quoted characters give their code."""
        assert value_of("'A'") == 65
        assert value_of('"0"') == 48

    def test_invalid_octal_digit(self):
        """8 and 9 are errors in octal."""
        with pytest.raises(ExpressionError, match="invalid octal"):
            parse_expression(SourceCursor.from_line("18", 1))

    def test_invalid_binary_digit(self):
        """Only 0 and 1 are binary digits."""
        with pytest.raises(ExpressionError, match="invalid binary"):
            parse_expression(SourceCursor.from_line("0b12", 1))


# =============================================================================
# Operators
# =============================================================================

class TestOperators:
    """Test operators and precedence."""

    def test_addition_subtraction(self):
        """Left-associative + and -."""
        assert value_of("10-2-1") == 0o5

    def test_multiplication_binds_tighter(self):
        """* before +."""
        assert value_of("1+2*3") == 7

    def test_parentheses(self):
        """Parentheses override precedence."""
        assert value_of("(1+2)*3") == 9

    def test_bitwise(self):
        """& binds tighter than ^, which binds tighter than |."""
        assert value_of("7&3|10") == 0o13
        assert value_of("1|2^3") == 1
        assert value_of("7400!20") == 0o7420

    def test_unary(self):
        """Unary minus and complement."""
        assert value_of("-1") == -1
        assert value_of("~0") == 0o7777
        assert value_of("+5") == 5

    def test_division_and_remainder(self):
        """Division is unsigned within the word."""
        assert value_of("17/3") == 5
        assert value_of("17%3") == 0

    def test_division_by_zero(self):
        """Division by zero reports an error and yields 0."""
        node = parse_expression(SourceCursor.from_line("5/0", 1))
        result = evaluate(node, {}.get, 0)
        assert result.error == "division by zero"
        assert result.value == 0
        assert not result.resolved

    def test_trailing_garbage(self):
        """Text after a complete expression is an error."""
        with pytest.raises(ExpressionError, match="unexpected"):
            parse_expression(SourceCursor.from_line("1 2", 1))

    def test_unbalanced_parenthesis(self):
        """Missing ) is an error."""
        with pytest.raises(ExpressionError, match="expected '\\)'"):
            parse_expression(SourceCursor.from_line("(1+2", 1))


# =============================================================================
# Symbols and Location Counter
# =============================================================================

class TestSymbols:
    """Test symbol references and the location counter."""

    def test_symbol_lookup(self):
        """Symbols are upper-cased before lookup."""
        assert value_of("buf+1", {"BUF": 0o200}) == 0o201

    def test_location_counter(self):
        """. is the current location."""
        assert value_of(".+1", pc=0o300) == 0o301

    def test_qualified_name(self):
        """SCOPE:_NAME parses as one symbol."""
        node = parse_expression(SourceCursor.from_line("MAIN:_LOOP", 1))
        assert node.node_type == ExprNodeType.SYMBOL
        assert node.value == "MAIN:_LOOP"

    def test_first_undefined_reported(self):
        """Only the first missing symbol is reported; it counts as 0."""
        node = parse_expression(SourceCursor.from_line("A+B+1", 1))
        result = evaluate(node, {}.get, 0)
        assert result.undefined == "A"
        assert result.value == 1

    def test_parse_prefix(self):
        """parse_prefix stops at the first unusable character."""
        node, rest = ExpressionParser(SourceCursor.from_line("FOO ]", 1)).parse_prefix()
        assert node.value == "FOO"
        assert str(rest) == "]"


# =============================================================================
# Strings and Range
# =============================================================================

class TestStringsAndRange:
    """Test string parameters and word range helpers."""

    def test_string_literal(self):
        """Quoted text is returned without quotes."""
        assert parse_string_literal(SourceCursor.from_line('"HI"', 1)) == ("HI", True)

    def test_unterminated_string(self):
        """An unterminated string runs to the end."""
        assert parse_string_literal(SourceCursor.from_line("'ABC", 1)) == ("ABC", False)

    def test_string_requires_quote(self):
        """A bare word is not a string."""
        with pytest.raises(ExpressionError):
            parse_string_literal(SourceCursor.from_line("ABC", 1))

    def test_range(self):
        """-7777..7777 fits; masking gives two's complement."""
        assert fits_word(0o7777)
        assert fits_word(-0o7777)
        assert not fits_word(0o10000)
        assert to_word(-1) == 0o7777
