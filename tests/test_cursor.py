# =============================================================================
# test_cursor.py - Source Cursor Unit Tests
# =============================================================================
# Tests for the immutable source line cursor.
#
# Test coverage includes:
#   - Consuming and truncating
#   - Tab-expanded column tracking
#   - Quote-aware comment stripping
#   - Splitting parameter lists
# =============================================================================

from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.predicates import char_equal, decimal, label_char, whitespace


def cursor(text: str, row: int = 1) -> SourceCursor:
    return SourceCursor.from_line(text, row, "test.pal")


# =============================================================================
# Slicing
# =============================================================================

class TestSlicing:
    """Test consume, trunc and scanning."""

    def test_consume_returns_new_cursor(self):
        """Consuming leaves the original cursor untouched."""
        c = cursor("TAD FOO")
        rest = c.consume(4)
        assert str(rest) == "FOO"
        assert str(c) == "TAD FOO"
        assert rest.offset == 4

    def test_consume_past_end(self):
        """Consuming more than is left yields an empty cursor."""
        assert cursor("AB").consume(10).is_empty()

    def test_trunc_keeps_prefix(self):
        """Truncation keeps the start position."""
        c = cursor("HELLO").consume(1).trunc(2)
        assert str(c) == "EL"
        assert c.offset == 1

    def test_consume_while(self):
        """consume_while splits off the matching run."""
        digits, rest = cursor("123ABC").consume_while(decimal)
        assert str(digits) == "123"
        assert str(rest) == "ABC"

    def test_consume_until(self):
        """consume_until stops at the first match."""
        word, rest = cursor("CLA CLL").consume_until(whitespace)
        assert str(word) == "CLA"
        assert str(rest) == " CLL"

    def test_starts_with(self):
        """Predicate and string prefix tests."""
        c = cursor("_LOOP")
        assert c.starts_with(label_char)
        assert c.starts_with_string("_L")
        assert not cursor("").starts_with(label_char)

    def test_full_line_kept(self):
        """The full line stays available for diagnostics."""
        c = cursor("START, HLT").consume(7)
        assert c.full == "START, HLT"


# =============================================================================
# Column Tracking
# =============================================================================

class TestColumns:
    """Test tab-expanded display columns."""

    def test_plain_columns(self):
        """Without tabs the column equals the offset."""
        assert cursor("ABCDEF").consume(3).column == 3

    def test_tab_advances_to_next_stop(self):
        """A tab moves to the next multiple of 8."""
        assert cursor("\tX").consume(1).column == 8
        assert cursor("AB\tX").consume(3).column == 8

    def test_tab_at_stop(self):
        """A tab exactly at a stop moves a full 8 columns."""
        assert cursor("ABCDEFGH\tX").consume(9).column == 16

    def test_location_is_one_based(self):
        """Locations report 1-indexed columns."""
        loc = cursor("\tTAD FOO", row=7).consume(5).location
        assert loc.line == 7
        assert loc.column == 13
        assert loc.filename == "test.pal"


# =============================================================================
# Comment Stripping
# =============================================================================

class TestStripTrailingComment:
    """Test removal of ; comments."""

    def test_strip_comment(self):
        """Comment and whitespace before it are removed."""
        assert str(cursor("TAD FOO   ; add foo").strip_trailing_comment()) == "TAD FOO"

    def test_comment_only(self):
        """A comment-only line becomes empty."""
        assert cursor("; nothing here").strip_trailing_comment().is_empty()

    def test_semicolon_in_quotes(self):
        """A semicolon inside quotes is kept."""
        c = cursor('.ASCIZ "A;B" ; text').strip_trailing_comment()
        assert str(c) == '.ASCIZ "A;B"'

    def test_semicolon_in_single_quotes(self):
        """Character constants are quote-protected too."""
        assert str(cursor("';' ; semi").strip_trailing_comment()) == "';'"

    def test_unterminated_quote_runs_to_end(self):
        """An unterminated quote extends to the end of the line."""
        c = cursor('.ASCIZ "ABC ; not a comment').strip_trailing_comment()
        assert str(c) == '.ASCIZ "ABC ; not a comment'

    def test_trailing_whitespace_removed(self):
        """Trailing blanks without a comment are removed."""
        assert str(cursor("HLT \t ").strip_trailing_comment()) == "HLT"


# =============================================================================
# Parameter Splitting
# =============================================================================

class TestSplitUnquoted:
    """Test comma splitting of parameter lists."""

    def test_split_simple(self):
        """Pieces are trimmed."""
        pieces = cursor("1, 2 ,3").split_unquoted(char_equal(","))
        assert [str(p) for p in pieces] == ["1", "2", "3"]

    def test_comma_in_quotes(self):
        """Commas inside quotes do not split."""
        pieces = cursor('"A,B", 5').split_unquoted(char_equal(","))
        assert [str(p) for p in pieces] == ['"A,B"', "5"]

    def test_empty(self):
        """Blank input gives no pieces."""
        assert cursor("   ").split_unquoted(char_equal(",")) == []

    def test_piece_locations(self):
        """Each piece knows where it starts."""
        pieces = cursor("A,  B").split_unquoted(char_equal(","))
        assert pieces[1].location.column == 5
