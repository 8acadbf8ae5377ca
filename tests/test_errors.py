# =============================================================================
# test_errors.py - Error and Diagnostic Unit Tests
# =============================================================================
# Tests for exception formatting and the diagnostic collector.
# =============================================================================

from pdp8asm.errors import (
    DiagnosticCollector,
    DuplicateSymbolError,
    FieldError,
    OffPageError,
    SourceLocation,
    UndefinedSymbolError,
)


def loc(line: int, column: int = 1) -> SourceLocation:
    return SourceLocation("test.pal", line, column)


# =============================================================================
# Exceptions
# =============================================================================

class TestExceptions:
    """Test exception messages and codes."""

    def test_code_and_location_in_message(self):
        """The formatted message carries location and code."""
        error = OffPageError("0400 is not reachable", loc(3, 9))
        assert error.code == "W"
        assert str(error).startswith("test.pal:3:9: W 0400 is not reachable")

    def test_caret_under_column(self):
        """Source context is shown with a caret."""
        error = OffPageError("bad", loc(1, 5), source_line="    TAD X")
        lines = str(error).splitlines()
        assert lines[1] == "        TAD X"
        assert lines[2] == "        ^"

    def test_undefined_symbol_suggestions(self):
        """Similar names become a hint."""
        error = UndefinedSymbolError("COUTN", loc(2), similar_symbols=["COUNT"])
        assert error.code == "U"
        assert "did you mean 'COUNT'?" in str(error)

    def test_duplicate_points_at_original(self):
        """M errors name the first definition line."""
        error = DuplicateSymbolError("A", loc(7), original_line=2)
        assert error.code == "M"
        assert "first defined on line 2" in str(error)


# =============================================================================
# Diagnostic Collector
# =============================================================================

class TestDiagnosticCollector:
    """Test collecting, suppressing and reporting diagnostics."""

    def test_counts(self):
        """F is a warning; everything else is an error."""
        collector = DiagnosticCollector()
        collector.add(FieldError("field 10 is not 0-7", loc(1)))
        assert not collector.has_errors()
        assert collector.warning_count() == 1

        collector.add(OffPageError("off page", loc(2)))
        assert collector.has_errors()
        assert collector.error_count() == 1

    def test_duplicates_dropped(self):
        """The same diagnostic is recorded once."""
        collector = DiagnosticCollector()
        collector.record("W", "off page", loc(4))
        collector.record("W", "off page", loc(4))
        assert len(collector.diagnostics) == 1

    def test_sorted_by_line(self):
        """Diagnostics come back in line order."""
        collector = DiagnosticCollector()
        collector.record("U", "later", loc(9))
        collector.record("X", "earlier", loc(2))
        assert [d.line for d in collector.diagnostics] == [2, 9]

    def test_suppress_after_line(self):
        """Suppression applies to lines after the declaration."""
        collector = DiagnosticCollector()
        collector.suppress("W", from_line=5)
        collector.record("W", "before", loc(3))
        collector.record("W", "after", loc(6))
        assert [d.message for d in collector.diagnostics] == ["before"]

    def test_suppressed_for_whole_unit(self):
        """Codes passed at construction are suppressed everywhere."""
        collector = DiagnosticCollector(frozenset({"F"}))
        collector.add(FieldError("field 9", loc(1)))
        assert collector.diagnostics == []

    def test_report(self):
        """The report ends with a summary line."""
        collector = DiagnosticCollector()
        collector.record("U", "undefined symbol 'X'", loc(3, 5))
        report = collector.report().splitlines()
        assert report[0] == "test.pal:3:5: U undefined symbol 'X'"
        assert report[-1] == "1 error, 0 warnings"

    def test_clear_keeps_suppression(self):
        """clear() empties diagnostics only."""
        collector = DiagnosticCollector()
        collector.suppress("W", from_line=0)
        collector.record("X", "bad", loc(1))
        collector.clear()
        assert collector.diagnostics == []
        assert collector.is_suppressed("W", 1)
