"""
pdp8asm - Cross-Assembler for the PDP-8 Family
==============================================

This package provides a two-pass cross-assembler for the DEC PDP-8 and
its single-chip descendants, the Harris HM6120 and the Intersil IM6100
family. Source text goes in; 12-bit words, a symbol table and coded
diagnostics come out.

Main Components
---------------
- **assembler**: The assembly engine and output writers
- **config**: Run configuration (CPU variant, suppressed diagnostics)
- **errors**: Exception hierarchy and diagnostic collector
- **cli**: The ``p8asm`` command

Quick Start
-----------
    >>> from pdp8asm import Assembler
    >>> asm = Assembler()
    >>> result = asm.assemble_file("monitor.pal")
    >>> asm.write_bin("monitor.bin")

Or from the command line:
    $ p8asm monitor.pal -o monitor.bin -l monitor.lst

Reference Documentation
-----------------------
- PDP-8 Handbook (Digital Equipment Corporation)
- HM-6120 data sheet (Harris Semiconductor)
- IM6100 family data book (Intersil)
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from pdp8asm.assembler import Assembler, AssemblyResult, ObjectWord, assemble, assemble_file
from pdp8asm.config import AssemblerConfig
from pdp8asm.errors import (
    Pdp8Error,
    AssemblerError,
    AssemblySyntaxError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    AddressingModeError,
    Diagnostic,
    DiagnosticCollector,
    SourceLocation,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "AssemblyResult",
    "ObjectWord",
    "assemble",
    "assemble_file",
    # Errors
    "Pdp8Error",
    "AssemblerError",
    "AssemblySyntaxError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "AddressingModeError",
    "Diagnostic",
    "DiagnosticCollector",
    "SourceLocation",
]
