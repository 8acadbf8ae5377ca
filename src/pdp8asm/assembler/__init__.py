"""
PDP-8 Family Cross-Assembler
============================

This package assembles PDP-8 source code (base PDP-8 with memory
extension, Harris HM6120, Intersil IM6100 family) into 12-bit words.

Main Components
---------------
- **Assembler**: Two-pass driver; returns an AssemblyResult
- **SourceCursor**: Immutable, tab-aware view of one source line
- **InstructionTable**: Base opcode table plus CPU overlays
- **PseudoOp**: The fixed set of assembler directives
- **SymbolTable**: Global labels, scoped local labels and constants
- **InstructionEncoder**: MRI page addressing and links, OPR groups, IOTs

Assembly Process
----------------
1. **Pass 1**: Define labels, lay out memory, record occupied addresses
2. **Pass 2**: Evaluate operands, encode words, allocate page links,
   record diagnostics

Example Usage
-------------
>>> from pdp8asm.assembler import assemble
>>> result = assemble('''
...         .ORG 200
...         CLA CLL
...         HLT
... ''')
>>> [oct(w.value) for w in result.words]
['0o7300', '0o7402']
"""

from pdp8asm.assembler.assembler import (
    AssemblerState,
    Assembler,
    AssemblyResult,
    ListedLine,
    ObjectWord,
    assemble,
    assemble_file,
)
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.encoder import InstructionEncoder, MemoryOperand, PageLinkTables
from pdp8asm.assembler.expressions import ExprNode, evaluate, parse_expression
from pdp8asm.assembler.opcodes import (
    BASE_OPCODES,
    CpuVariant,
    InstructionKind,
    InstructionTable,
    OpcodeEntry,
)
from pdp8asm.assembler.output import bin_tape, render_listing, render_symbols
from pdp8asm.assembler.parser import SourceLine, parse_line
from pdp8asm.assembler.pseudo_ops import PSEUDO_OPS, PseudoOp
from pdp8asm.assembler.symbols import SymbolTable

__all__ = [
    # Main class and functions
    "Assembler",
    "AssemblerState",
    "AssemblyResult",
    "ListedLine",
    "ObjectWord",
    "assemble",
    "assemble_file",
    # Scanning and parsing
    "SourceCursor",
    "SourceLine",
    "parse_line",
    # Instruction set
    "BASE_OPCODES",
    "CpuVariant",
    "InstructionKind",
    "InstructionTable",
    "OpcodeEntry",
    "PSEUDO_OPS",
    "PseudoOp",
    # Symbols and expressions
    "ExprNode",
    "SymbolTable",
    "evaluate",
    "parse_expression",
    # Encoding
    "InstructionEncoder",
    "MemoryOperand",
    "PageLinkTables",
    # Output
    "bin_tape",
    "render_listing",
    "render_symbols",
]
