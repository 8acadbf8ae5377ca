"""
PDP-8 Assembler Error Hierarchy
===============================

This module defines the exception hierarchy and the diagnostic collector
used by the assembler. All exceptions inherit from Pdp8Error, allowing
callers to catch all package errors with a single except clause.

Diagnostic Codes
----------------
Classic PDP-8 assemblers flag a listing line with a single letter. Every
assembler exception carries one of these codes:

| Code | Meaning                                   | Class   |
|------|-------------------------------------------|---------|
| O    | Illegal micro-coded combination           | error   |
| W    | Illegal off-page reference                | error   |
| M    | Symbol defined more than once             | error   |
| F    | Off-field reference                       | warning |
| A    | Number out of range                       | error   |
| P    | Page full (no room for a link)            | error   |
| Z    | Badly formed pseudo-op                    | error   |
| S    | Malformed symbol                          | error   |
| X    | Syntax error                              | error   |
| U    | Undefined symbol                          | error   |

Exception Hierarchy
-------------------
Pdp8Error (base)
└── AssemblerError (code X unless overridden)
    ├── AssemblySyntaxError   - X
    ├── AddressingModeError   - X
    ├── ExpressionError       - X
    ├── UndefinedSymbolError  - U
    ├── DuplicateSymbolError  - M
    ├── MalformedSymbolError  - S
    ├── PseudoOpError         - Z
    ├── RangeError            - A
    ├── FieldError            - F
    ├── PageFullError         - P
    ├── OffPageError          - W
    └── MicrocodeError        - O

Design Philosophy
-----------------
Assembly never stops on a coded condition. Handlers raise an exception
when they cannot continue with the current field; the line loop catches
it and turns it into a ``Diagnostic``. Conditions that still allow a
best-effort result are recorded directly without raising.

Error messages follow this format:
    filename:line:column: X description
    source_line_text
        ^ (pointer to error location)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Pdp8Error(Exception):
    """
    Base exception for all pdp8asm errors.

        try:
            assembler.assemble_file("monitor.pal")
        except Pdp8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Display column (1-indexed, tabs expanded to stops of 8)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Diagnostic Codes
# =============================================================================

ILLEGAL_MICROCODE = "O"
ILLEGAL_OFF_PAGE = "W"
MULTIPLY_DEFINED = "M"
OFF_FIELD = "F"
OUT_OF_RANGE = "A"
PAGE_FULL = "P"
BAD_PSEUDO_OP = "Z"
MALFORMED_SYMBOL = "S"
SYNTAX = "X"
UNDEFINED_SYMBOL = "U"

DIAGNOSTIC_CODES: dict[str, str] = {
    ILLEGAL_MICROCODE: "illegal micro-coded combination",
    ILLEGAL_OFF_PAGE: "illegal off-page reference",
    MULTIPLY_DEFINED: "multiply defined symbol",
    OFF_FIELD: "off-field reference",
    OUT_OF_RANGE: "number out of range",
    PAGE_FULL: "page full",
    BAD_PSEUDO_OP: "badly formed pseudo-op",
    MALFORMED_SYMBOL: "malformed symbol",
    SYNTAX: "syntax error",
    UNDEFINED_SYMBOL: "undefined symbol",
}

# Codes that do not make the assembly fail
WARNING_CODES = frozenset({OFF_FIELD})


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Pdp8Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        code: Single-letter diagnostic code
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    code = SYNTAX

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            tty.pal:15:9: U undefined symbol 'TTYOUT'
                    JMS     TTYOUT
                            ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: {self.code} {self.message}")
        else:
            parts.append(f"{self.code} {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line.expandtabs(8)}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in a source line.

    Examples:
        - Unknown mnemonic
        - Unbalanced parentheses or brackets
        - Garbage after an operand
    """
    pass


class AddressingModeError(AssemblerError):
    """
    Operand syntax not accepted by the instruction class.

    Example:
        CLA [5]     ; X: operate instructions take no memory operand
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        super().__init__(
            f"'{mnemonic}' does not accept {mode} operands",
            location=location,
            source_line=source_line,
        )


class ExpressionError(AssemblerError):
    """
    Malformed expression (bad literal, division by zero, stray token).
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a symbol that has no value.

    Suggests similarly-named symbols when there are any, to help catch
    typos.
    """

    code = UNDEFINED_SYMBOL

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Symbol defined more than once in the same scope.

    The first definition is kept; the hint points at it.
    """

    code = MULTIPLY_DEFINED

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_line: Optional[int] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_line = original_line

        hint = None
        if original_line:
            hint = f"'{symbol}' was first defined on line {original_line}"

        super().__init__(
            f"multiply defined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MalformedSymbolError(AssemblerError):
    """Label or assignment name that is not a legal symbol."""

    code = MALFORMED_SYMBOL


class PseudoOpError(AssemblerError):
    """
    Badly formed pseudo-op: wrong parameter count or unusable parameter.

    The directive's handler is not executed.
    """

    code = BAD_PSEUDO_OP


class RangeError(AssemblerError):
    """Value does not fit the 12-bit word (or the field it goes into)."""

    code = OUT_OF_RANGE


class FieldError(AssemblerError):
    """Memory field outside 0-7."""

    code = OFF_FIELD


class PageFullError(AssemblerError):
    """No free slot left in the page's link table."""

    code = PAGE_FULL


class OffPageError(AssemblerError):
    """Direct memory reference outside page zero and the current page."""

    code = ILLEGAL_OFF_PAGE


class MicrocodeError(AssemblerError):
    """Operate micro-instructions from incompatible groups on one line."""

    code = ILLEGAL_MICROCODE


# =============================================================================
# Diagnostics
# =============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """
    One coded diagnostic, as shown in the listing margin.

    Attributes:
        line: Source line number (1-indexed)
        code: Single-letter diagnostic code
        message: Description of the problem
        column: Display column (1-indexed), 0 when unknown
        filename: Source file name
        hint: Suggestion carried over from the exception, if any
    """
    line: int
    code: str
    message: str
    column: int = 0
    filename: str = "<input>"
    hint: Optional[str] = None

    @property
    def is_warning(self) -> bool:
        return self.code in WARNING_CODES

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}: {self.code} {self.message}"


class DiagnosticCollector:
    """
    Collects diagnostics for batch reporting.

    The assembler never stops on a coded condition: every problem becomes
    a Diagnostic and assembly continues. ``.NOWARN`` suppression is applied
    when recording, based on the line the suppression was declared on, so
    the same collector works for both passes.

    Example:
        collector = DiagnosticCollector()
        collector.suppress("W", from_line=10)
        collector.add(OffPageError("...", location))

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, suppressed: frozenset[str] = frozenset()):
        """
        Initialize the collector.

        Args:
            suppressed: Codes suppressed for the whole unit (e.g. from the CLI)
        """
        self._diagnostics: list[Diagnostic] = []
        self._suppressed_from: dict[str, int] = {code: 0 for code in suppressed}
        self._seen: set[tuple[int, str, str, int]] = set()

    def suppress(self, code: str, from_line: int) -> None:
        """Suppress a code on every line after ``from_line``."""
        current = self._suppressed_from.get(code)
        if current is None or from_line < current:
            self._suppressed_from[code] = from_line

    def is_suppressed(self, code: str, line: int) -> bool:
        start = self._suppressed_from.get(code)
        return start is not None and line > start

    def record(
        self,
        code: str,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Record a diagnostic unless its code is suppressed for that line.

        Identical diagnostics (same line, column, code and message) are
        kept only once.
        """
        line = location.line if location else 0
        column = location.column if location else 0
        if self.is_suppressed(code, line):
            return
        key = (line, code, message, column)
        if key in self._seen:
            return
        self._seen.add(key)
        self._diagnostics.append(Diagnostic(
            line=line,
            code=code,
            message=message,
            column=column,
            filename=location.filename if location else "<input>",
            hint=hint,
        ))

    def add(self, error: AssemblerError) -> None:
        """Record an assembler exception as a diagnostic."""
        self.record(error.code, error.message, error.location, error.hint)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """All diagnostics, in source line order."""
        return sorted(self._diagnostics, key=lambda d: d.line)

    def has_errors(self) -> bool:
        """Return True if any error-class diagnostic was recorded."""
        return any(not d.is_warning for d in self._diagnostics)

    def error_count(self) -> int:
        return sum(1 for d in self._diagnostics if not d.is_warning)

    def warning_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.is_warning)

    def report(self) -> str:
        """
        Format all diagnostics for display.

        Returns:
            One line per diagnostic plus a summary line
        """
        lines = []
        for d in self.diagnostics:
            lines.append(str(d))
            if d.hint:
                lines.append(f"    hint: {d.hint}")

        errors = self.error_count()
        warnings = self.warning_count()
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        lines.append(f"{errors} {error_word}, {warnings} {warning_word}")

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected diagnostics (suppressions are kept)."""
        self._diagnostics.clear()
        self._seen.clear()
