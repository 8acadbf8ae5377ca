"""
PDP-8 Assembler - Main Interface
================================

This module provides the Assembler class, the primary interface for
assembling PDP-8 family source code. It runs the two passes over the
source lines, dispatches directives and instructions, and collects the
emitted words, the symbol table and the diagnostics into an
``AssemblyResult``.

Example Usage
-------------
>>> from pdp8asm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> result = asm.assemble_string('''
...         .ORG 200
... START,  CLA CLL
...         TAD VALUE
...         HLT
... VALUE,  0d42
... ''')
>>> [f"{w.address:04o} {w.value:04o}" for w in result.words]
['0200 7300', '0201 1203', '0202 7402', '0203 0052']

Passes
------
Pass 1 walks the source to define every label at its address and to
record which words each line occupies. Pass 2 walks it again with the
complete symbol table, evaluates every operand, encodes the words and
records diagnostics. Both passes advance the location counter in exactly
the same way; an instruction line always takes one word, whatever its
errors.

Values that move the location counter (``.ORG``, ``.BLOCK``, ``.PAGE n``,
``.FIELD``) are computed in pass 1 and reused in pass 2, so they must
only refer to symbols defined earlier in the source.

Command-Line Usage
------------------
    $ p8asm monitor.pal -o monitor.bin -l monitor.lst -s monitor.sym

See ``pdp8asm.cli.p8asm`` for the options.
"""

import difflib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO

from pdp8asm.config import AssemblerConfig
from pdp8asm.errors import (
    DIAGNOSTIC_CODES,
    AddressingModeError,
    AssemblerError,
    AssemblySyntaxError,
    Diagnostic,
    DiagnosticCollector,
    DuplicateSymbolError,
    ExpressionError,
    FieldError,
    MalformedSymbolError,
    PseudoOpError,
    RangeError,
    SourceLocation,
    UndefinedSymbolError,
)
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.encoder import (
    FIELD_COUNT,
    PAGE_SIZE,
    PAGES_PER_FIELD,
    InstructionEncoder,
    is_page_start,
    page_of,
    parse_memory_operand,
)
from pdp8asm.assembler.expressions import (
    WORD_MASK,
    Evaluation,
    ExprNode,
    evaluate,
    fits_word,
    parse_expression,
    parse_string_literal,
    to_word,
)
from pdp8asm.assembler.opcodes import (
    ALL_MNEMONICS,
    CpuVariant,
    InstructionKind,
    InstructionTable,
    OpcodeEntry,
)
from pdp8asm.assembler.parser import (
    Assignment,
    LabelDef,
    SourceLine,
    parse_line,
    split_assignment,
    split_words,
)
from pdp8asm.assembler.predicates import (
    alpha,
    char_equal,
    describe_count,
    identifier_char,
    immediate,
    indirect,
)
from pdp8asm.assembler.pseudo_ops import PseudoOp, get_pseudo_op
from pdp8asm.assembler.symbols import SymbolTable, is_local_name, is_valid_symbol_name

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = 0o200
JMS = 0o4000
JMP = 0o5000

# Six-bit text covers ASCII space through underscore
SIXBIT_FIRST = 0o040
SIXBIT_LAST = 0o137


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class ObjectWord:
    """
    One emitted 12-bit word.

    Attributes:
        field: Memory field (0-7)
        address: Address within the field
        value: Word value (0-7777 octal)
        line: Source line that produced it (0 for page link words)
    """
    field: int
    address: int
    value: int
    line: int


@dataclass(frozen=True)
class ListedLine:
    """A source line with the words it produced, for the listing."""
    line: int
    text: str
    field: int
    address: int
    values: tuple[int, ...] = ()


@dataclass
class AssemblyResult:
    """
    Everything one assembly run produced.

    Attributes:
        words: Emitted words in emission order, page link words last
        symbols: Final symbol table (name -> value)
        diagnostics: Diagnostics in source line order
        title: Title from ``.TITLE`` (empty if none)
        origin: Address of the first ``.ORG`` (None if there was none)
        listing: Per-line listing entries
        filename: Source file name
    """
    words: list[ObjectWord]
    symbols: dict[str, int]
    diagnostics: list[Diagnostic]
    title: str = ""
    origin: Optional[int] = None
    listing: list[ListedLine] = field(default_factory=list)
    filename: str = "<input>"

    @property
    def has_errors(self) -> bool:
        """True if any error-class diagnostic survived suppression."""
        return any(not d.is_warning for d in self.diagnostics)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if not d.is_warning)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_warning)

    def memory(self) -> dict[tuple[int, int], int]:
        """Memory image: (field, address) -> value; later words win."""
        return {(w.field, w.address): w.value for w in self.words}


# =============================================================================
# Assembler State
# =============================================================================

@dataclass
class AssemblerState:
    """
    Mutable state of one assembly run.

    Symbols, pass-1 layout values, the dot-word decisions and the
    occupied-address set live for the whole run; everything else is
    reset at the start of each pass.
    """
    symbols: SymbolTable = field(default_factory=SymbolTable)
    layout_values: dict[tuple[int, int], Evaluation] = field(default_factory=dict)
    dot_symbols: dict[int, bool] = field(default_factory=dict)
    occupied: set[tuple[int, int]] = field(default_factory=set)

    pass_number: int = 1
    cpu: CpuVariant = CpuVariant.PDP8
    table: InstructionTable = field(default_factory=InstructionTable)
    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)
    encoder: Optional[InstructionEncoder] = None
    current_field: int = 0
    pc: int = DEFAULT_ORIGIN
    origin: Optional[int] = None
    scope: Optional[str] = None
    title: str = ""
    stack: Optional[tuple[ExprNode, ...]] = None
    ended: bool = False
    words: list[ObjectWord] = field(default_factory=list)
    listing: list[ListedLine] = field(default_factory=list)


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Two-pass PDP-8 family assembler.

    Each ``assemble_*`` call starts from a fresh state, so one Assembler
    can be reused and assembling the same source twice gives identical
    results.

    Attributes:
        config: AssemblerConfig in effect
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        self.config = config or AssemblerConfig()
        self._cpu = CpuVariant.parse(self.config.cpu)
        self._state = AssemblerState()
        self._result: Optional[AssemblyResult] = None

        self._directives: dict[PseudoOp, Callable[[SourceLine, list[SourceCursor]], None]] = {
            PseudoOp.END: self._do_end,
            PseudoOp.ORG: self._do_org,
            PseudoOp.DATA: self._do_data,
            PseudoOp.TITLE: self._do_title,
            PseudoOp.ASCIZ: self._do_asciz,
            PseudoOp.TEXT: self._do_text,
            PseudoOp.BLOCK: self._do_block,
            PseudoOp.SIXBIT: self._do_sixbit,
            PseudoOp.OPDEF: self._do_opdef,
            PseudoOp.PAGE: self._do_page,
            PseudoOp.FIELD: self._do_field,
            PseudoOp.IM6100: self._do_im6100,
            PseudoOp.HM6120: self._do_hm6120,
            PseudoOp.VECTOR: self._do_vector,
            PseudoOp.STACK: self._do_stack,
            PseudoOp.PUSH: self._do_push,
            PseudoOp.POP: self._do_pop,
            PseudoOp.PUSHJ: self._do_pushj,
            PseudoOp.POPJ: self._do_popj,
            PseudoOp.NOWARN: self._do_nowarn,
        }

    # =========================================================================
    # Public Interface
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> AssemblyResult:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for diagnostics

        Returns:
            AssemblyResult (check ``has_errors``; assembly never stops on a
            coded diagnostic)
        """
        return self.assemble_lines(source.splitlines(), filename)

    def assemble_file(self, filepath: str | Path) -> AssemblyResult:
        """
        Assemble a source file.

        Raises:
            OSError: If the file cannot be read
        """
        filepath = Path(filepath)
        self._log(f"Assembling {filepath}")
        return self.assemble_string(filepath.read_text(), str(filepath))

    def assemble_stream(self, stream: TextIO, filename: Optional[str] = None) -> AssemblyResult:
        """Assemble everything readable from a text stream."""
        name = filename or getattr(stream, "name", "<stream>")
        return self.assemble_string(stream.read(), str(name))

    def assemble_lines(self, lines: Iterable[str], filename: str = "<input>") -> AssemblyResult:
        """Assemble a sequence of source lines (without terminators)."""
        lines = list(lines)
        self._state = AssemblerState()

        self._run_pass(1, lines, filename)
        self._log(f"Pass 1: {len(self._state.symbols)} symbols, "
                  f"{len(self._state.occupied)} words")

        self._run_pass(2, lines, filename)
        state = self._state
        for field_number, address, value in state.encoder.links.words():
            state.words.append(ObjectWord(field_number, address, value, 0))
        self._log(f"Pass 2: {len(state.words)} words, {len(state.encoder.links)} page links")

        self._result = AssemblyResult(
            words=list(state.words),
            symbols=state.symbols.to_dict(),
            diagnostics=state.diagnostics.diagnostics,
            title=state.title,
            origin=state.origin,
            listing=list(state.listing),
            filename=filename,
        )
        logger.info(
            f"{filename}: {len(self._result.words)} words, "
            f"{self._result.error_count} errors, {self._result.warning_count} warnings"
        )
        return self._result

    @property
    def result(self) -> Optional[AssemblyResult]:
        """Result of the most recent run."""
        return self._result

    def has_errors(self) -> bool:
        return self._result is not None and self._result.has_errors

    def get_error_report(self) -> str:
        return self._state.diagnostics.report()

    def get_symbols(self) -> dict[str, int]:
        return dict(self._result.symbols) if self._result else {}

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_bin(self, filepath: str | Path) -> None:
        """Write the last result as a BIN-format paper tape image."""
        from pdp8asm.assembler.output import write_bin
        write_bin(self._require_result(), filepath)
        self._log(f"Wrote {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        from pdp8asm.assembler.output import write_listing
        write_listing(self._require_result(), filepath)
        self._log(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        from pdp8asm.assembler.output import write_symbols
        write_symbols(self._require_result(), filepath)
        self._log(f"Wrote symbols to {filepath}")

    def _require_result(self) -> AssemblyResult:
        if self._result is None:
            raise RuntimeError("nothing has been assembled yet")
        return self._result

    def _log(self, message: str) -> None:
        if self.config.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    # =========================================================================
    # Pass Driver
    # =========================================================================

    def _run_pass(self, pass_number: int, lines: list[str], filename: str) -> None:
        state = self._state
        state.pass_number = pass_number
        state.cpu = self._cpu
        state.table = InstructionTable.for_cpu(self._cpu)
        state.current_field = 0
        state.pc = DEFAULT_ORIGIN
        state.origin = None
        state.scope = None
        state.title = ""
        state.stack = None
        state.ended = False
        state.words = []
        state.listing = []

        if pass_number == 1:
            # Pass 1 diagnostics are discarded; pass 2 reports everything in order
            state.diagnostics = DiagnosticCollector()
            state.encoder = None
        else:
            state.diagnostics = DiagnosticCollector(self.config.nowarn)
            state.encoder = InstructionEncoder(state.diagnostics, frozenset(state.occupied))

        logger.debug(f"Pass {pass_number} over {len(lines)} lines of {filename}")

        for row, text in enumerate(lines, start=1):
            line = parse_line(text, row, filename)
            start_field = state.current_field
            start_pc = state.pc
            start_words = len(state.words)

            try:
                self._assemble_line(line)
            except AssemblerError as e:
                state.diagnostics.add(e)

            if pass_number == 2:
                values = tuple(w.value for w in state.words[start_words:])
                state.listing.append(ListedLine(row, text, start_field, start_pc, values))

            if state.ended:
                break

    @property
    def _pass2(self) -> bool:
        return self._state.pass_number == 2

    def _assemble_line(self, line: SourceLine) -> None:
        """Process one line in the current pass."""
        for label in line.labels:
            self._define_label(label)

        if line.assignment is not None:
            self._define_constant(line.assignment)
            return

        if line.mnemonic is None:
            return

        name = str(line.mnemonic).upper()

        pseudo = get_pseudo_op(name)
        if pseudo is not None:
            self._pseudo_op(pseudo, line)
            return

        if len(name) > 1 and name[0] == "." and alpha(name[1]) and not self._dot_symbol(line):
            raise PseudoOpError(
                f"unknown pseudo-op '{name}'",
                line.mnemonic.location,
                hint=self._dot_symbol_hint(line),
            )

        entry = self._state.table.lookup(name)
        if entry is not None:
            self._instruction(line, name, entry)
            return

        if self._state.symbols.get_opcode(name) is not None:
            self._user_opcode(line, name)
            return

        if name in ALL_MNEMONICS:
            raise AssemblySyntaxError(
                f"'{name}' is not available on the {self._state.cpu.value} instruction set",
                line.mnemonic.location,
                hint="select the CPU with .HM6120, .IM6100 or --cpu",
            )

        self._data_word(line)

    def _dot_symbol(self, line: SourceLine) -> bool:
        """
        Whether a line starting with ``.NAME`` is a data word using a symbol.

        Decided in pass 1 and reused in pass 2 so that both passes give
        the line the same size; the symbol must be defined earlier.
        """
        state = self._state
        if not self._pass2:
            state.dot_symbols[line.row] = self._dot_symbol_key(line) in state.symbols
        return state.dot_symbols.get(line.row, False)

    def _dot_symbol_key(self, line: SourceLine) -> str:
        symbol, _ = line.mnemonic.consume_while(identifier_char)
        return SymbolTable.qualify(str(symbol).upper(), self._state.scope)

    def _dot_symbol_hint(self, line: SourceLine) -> Optional[str]:
        if self._dot_symbol_key(line) in self._state.symbols:
            return "symbols starting with '.' must be defined before use"
        return None

    # =========================================================================
    # Symbols
    # =========================================================================

    def _define_label(self, label: LabelDef) -> None:
        state = self._state
        name = label.name

        if not is_valid_symbol_name(name):
            if self._pass2:
                state.diagnostics.add(MalformedSymbolError(f"malformed label '{name}'", label.location))
            return

        if not is_local_name(name):
            state.scope = name

        existing = state.symbols.define_label(name, state.pc, label.location, state.scope)
        if self._pass2 and existing is not None and existing.location != label.location:
            state.diagnostics.add(DuplicateSymbolError(
                name, label.location, original_line=existing.line))

    def _define_constant(self, assignment: Assignment, is_opcode: bool = False) -> None:
        state = self._state
        name = assignment.name

        if not is_valid_symbol_name(name):
            raise MalformedSymbolError(f"malformed symbol '{name}'", assignment.location)

        expression = parse_expression(assignment.value)
        existing = state.symbols.define_constant(
            name, expression, assignment.location,
            pc=state.pc, scope=state.scope, is_opcode=is_opcode,
        )
        if not self._pass2:
            return

        if existing is not None and existing.location != assignment.location:
            state.diagnostics.add(DuplicateSymbolError(
                name, assignment.location, original_line=existing.line))
            return

        result = state.symbols.evaluate_constant(SymbolTable.qualify(name, state.scope))
        self._report(result, assignment.value.location)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def _report(self, result: Evaluation, location: SourceLocation) -> None:
        """Record U and X conditions of an evaluation (pass 2 only)."""
        if not self._pass2:
            return
        if result.undefined is not None:
            similar = difflib.get_close_matches(result.undefined, list(self._state.symbols.to_dict()), n=3)
            self._state.diagnostics.add(UndefinedSymbolError(
                result.undefined,
                result.undefined_location or location,
                similar_symbols=similar,
            ))
        if result.error is not None:
            self._state.diagnostics.add(ExpressionError(result.error, location))

    def _evaluate(self, node: ExprNode, location: SourceLocation) -> int:
        """Evaluate with diagnostics; the value is not range checked."""
        state = self._state
        result = evaluate(node, state.symbols.lookup_in(state.scope), state.pc)
        self._report(result, location)
        return result.value

    def _checked(self, value: int, location: SourceLocation) -> int:
        """Range check and mask a value to 12 bits."""
        if self._pass2 and not fits_word(value):
            self._state.diagnostics.add(RangeError(
                f"value {value:o} does not fit in 12 bits", location))
        return to_word(value)

    def _value(self, cursor: SourceCursor) -> int:
        """Parse, evaluate and range check an operand expression."""
        return self._checked(self._evaluate(parse_expression(cursor), cursor.location), cursor.location)

    def _layout_value(self, line: SourceLine, index: int, cursor: SourceCursor) -> int:
        """
        Value of a parameter that moves the location counter.

        Computed once in pass 1 and reused in pass 2, so both passes lay
        out memory identically.
        """
        state = self._state
        key = (line.row, index)
        if not self._pass2 or key not in state.layout_values:
            node = parse_expression(cursor)
            state.layout_values[key] = evaluate(node, state.symbols.lookup_in(state.scope), state.pc)

        result = state.layout_values[key]
        if self._pass2 and result.undefined is not None:
            state.diagnostics.add(UndefinedSymbolError(
                result.undefined,
                result.undefined_location or cursor.location,
                hint="symbols that set the location must be defined before use",
            ))
        if self._pass2 and result.error is not None:
            state.diagnostics.add(ExpressionError(result.error, cursor.location))
        return result.value

    # =========================================================================
    # Emission
    # =========================================================================

    def _emit(self, value: int, line: SourceLine) -> None:
        """Place one word at the location counter and advance it."""
        state = self._state
        if self._pass2:
            state.words.append(ObjectWord(state.current_field, state.pc, value & WORD_MASK, line.row))
        else:
            state.occupied.add((state.current_field, state.pc))
        state.pc = (state.pc + 1) & WORD_MASK

    def _data_word(self, line: SourceLine) -> None:
        value = 0
        try:
            if self._pass2:
                value = self._value(line.body)
        finally:
            self._emit(value, line)

    # =========================================================================
    # Instructions
    # =========================================================================

    def _instruction(self, line: SourceLine, name: str, entry: OpcodeEntry) -> None:
        word = entry.value
        try:
            if self._pass2:
                word = self._encode(line, name, entry)
        finally:
            self._emit(word, line)

    def _encode(self, line: SourceLine, name: str, entry: OpcodeEntry) -> int:
        state = self._state
        encoder = state.encoder
        operand = line.operand
        kind = entry.kind

        if kind == InstructionKind.MRI:
            if operand.is_empty():
                raise AssemblySyntaxError(f"'{name}' needs an address", line.mnemonic.location)
            memory = parse_memory_operand(operand)
            target = self._checked(self._evaluate(memory.expression, operand.location), operand.location)
            return encoder.memory_reference(
                entry.value, target, state.current_field, state.pc, operand.location,
                indirect=memory.indirect, literal=memory.literal,
            )

        for word in split_words(operand):
            if word.starts_with(indirect):
                raise AddressingModeError(name, "indirect", word.location)
            if word.starts_with(immediate):
                raise AddressingModeError(name, "literal", word.location)

        if kind == InstructionKind.OPR:
            return encoder.operate([line.mnemonic] + split_words(operand), state.table)

        if kind == InstructionKind.IOT:
            if operand.is_empty():
                return entry.value
            return encoder.io_transfer(entry.value, self._value(operand))

        if kind == InstructionKind.CXF:
            if operand.is_empty():
                return encoder.field_change(entry.value, state.current_field)
            number = self._evaluate(parse_expression(operand), operand.location)
            return encoder.field_change(entry.value, number, operand.location)

        # PIE and PIO instructions are fixed patterns
        if not operand.is_empty():
            raise AssemblySyntaxError(f"'{name}' takes no operand", operand.location)
        return entry.value

    def _user_opcode(self, line: SourceLine, name: str) -> None:
        """Instruction defined with .OPDEF: value ORed with the operand."""
        word = 0
        try:
            if self._pass2:
                word = self._checked(self._evaluate(
                    parse_expression(line.mnemonic), line.mnemonic.location), line.mnemonic.location)
                if not line.operand.is_empty():
                    word |= self._value(line.operand)
        finally:
            self._emit(word, line)

    # =========================================================================
    # Pseudo-Ops
    # =========================================================================

    def _pseudo_op(self, pseudo: PseudoOp, line: SourceLine) -> None:
        params = line.operand.split_unquoted(char_equal(","))
        if not pseudo.accepts(len(params)):
            raise PseudoOpError(
                f"{pseudo.directive} takes {describe_count(pseudo.param_check)}, got {len(params)}",
                line.mnemonic.location,
            )
        self._directives[pseudo](line, params)

    def _do_end(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._state.ended = True

    def _do_org(self, line: SourceLine, params: list[SourceCursor]) -> None:
        state = self._state
        address = self._checked(self._layout_value(line, 0, params[0]), params[0].location)
        state.pc = address
        if state.origin is None:
            state.origin = address

    def _do_data(self, line: SourceLine, params: list[SourceCursor]) -> None:
        for param in params:
            value = 0
            try:
                if self._pass2:
                    value = self._value(param)
            except AssemblerError as e:
                self._state.diagnostics.add(e)
            self._emit(value, line)

    def _do_title(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._state.title = ", ".join(str(p) for p in params)

    def _string_param(self, param: SourceCursor) -> str:
        text, terminated = parse_string_literal(param)
        if not terminated and self._pass2:
            self._state.diagnostics.add(AssemblySyntaxError("unterminated string", param.location))
        return text

    def _range_error(self, message: str, location: SourceLocation) -> None:
        if self._pass2:
            self._state.diagnostics.add(RangeError(message, location))

    def _do_asciz(self, line: SourceLine, params: list[SourceCursor]) -> None:
        param = params[0]
        for c in self._string_param(param):
            code = ord(c)
            if code > 0o377:
                self._range_error(f"character {c!r} does not fit in 8 bits", param.location)
            self._emit(code & 0o377, line)
        self._emit(0, line)

    def _emit_sixbit(self, param: SourceCursor, line: SourceLine, terminate: bool) -> None:
        codes = []
        for c in self._string_param(param):
            # Only ASCII letters fold; other characters keep their code
            code = ord(c.upper()) if "a" <= c <= "z" else ord(c)
            if not SIXBIT_FIRST <= code <= SIXBIT_LAST:
                self._range_error(f"character {c!r} has no six-bit code", param.location)
            codes.append(code & 0o77)
        if terminate:
            codes.append(0)
        if len(codes) % 2:
            codes.append(0)
        for i in range(0, len(codes), 2):
            self._emit((codes[i] << 6) | codes[i + 1], line)

    def _do_text(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._emit_sixbit(params[0], line, terminate=True)

    def _do_sixbit(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._emit_sixbit(params[0], line, terminate=False)

    def _do_block(self, line: SourceLine, params: list[SourceCursor]) -> None:
        state = self._state
        for index, param in enumerate(params):
            count = self._layout_value(line, index, param)
            if not 0 <= count <= WORD_MASK:
                raise RangeError(f".BLOCK count {count:o} is out of range", param.location)
            if not self._pass2:
                for offset in range(count):
                    state.occupied.add((state.current_field, (state.pc + offset) & WORD_MASK))
            state.pc = (state.pc + count) & WORD_MASK

    def _do_opdef(self, line: SourceLine, params: list[SourceCursor]) -> None:
        assignment = split_assignment(params[0])
        if assignment is None:
            raise PseudoOpError(".OPDEF expects NAME=value", params[0].location)
        self._define_constant(assignment, is_opcode=True)

    def _do_page(self, line: SourceLine, params: list[SourceCursor]) -> None:
        state = self._state
        if not params:
            if not is_page_start(state.pc):
                state.pc = (page_of(state.pc) + PAGE_SIZE) & WORD_MASK
            return

        page = self._layout_value(line, 0, params[0])
        if not 0 <= page < PAGES_PER_FIELD:
            if self._pass2:
                state.diagnostics.add(RangeError(f"page {page:o} is not 0-37", params[0].location))
            page &= PAGES_PER_FIELD - 1
        state.pc = page * PAGE_SIZE

    def _do_field(self, line: SourceLine, params: list[SourceCursor]) -> None:
        state = self._state
        number = self._layout_value(line, 0, params[0])
        if not 0 <= number < FIELD_COUNT:
            if self._pass2:
                state.diagnostics.add(FieldError(f"field {number:o} is not 0-7", params[0].location))
            number &= FIELD_COUNT - 1
        state.current_field = number
        state.pc = DEFAULT_ORIGIN
        logger.debug(f"Field {number}")

    def _select_cpu(self, variant: CpuVariant) -> None:
        state = self._state
        if variant != state.cpu:
            logger.debug(f"Instruction set {state.cpu.value} -> {variant.value}")
        state.cpu = variant
        state.table = InstructionTable.for_cpu(variant)

    def _do_im6100(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._select_cpu(CpuVariant.IM6100)

    def _do_hm6120(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._select_cpu(CpuVariant.HM6120)

    def _do_vector(self, line: SourceLine, params: list[SourceCursor]) -> None:
        state = self._state
        jump = JMP
        if self._pass2:
            jump = state.encoder.memory_reference(
                JMP, state.pc + 1, state.current_field, state.pc, line.mnemonic.location, indirect=True)
        self._emit(jump, line)
        self._do_data(line, params)

    # =========================================================================
    # Stack Convention
    # =========================================================================

    def _do_stack(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._state.stack = tuple(parse_expression(p) for p in params)

    def _stack_call(self, line: SourceLine, index: int, opcode: int) -> None:
        """Emit a call to one of the .STACK routines."""
        state = self._state
        directive = line.mnemonic
        if state.stack is None:
            raise PseudoOpError(f"{str(directive).upper()} needs a preceding .STACK", directive.location)

        word = opcode
        if self._pass2:
            routine = self._checked(self._evaluate(state.stack[index], directive.location), directive.location)
            word = state.encoder.memory_reference(
                opcode, routine, state.current_field, state.pc, directive.location, auto_link=True)
        self._emit(word, line)

    def _do_push(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._stack_call(line, 0, JMS)
        self._do_data(line, params)

    def _do_pop(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._stack_call(line, 1, JMS)

    def _do_pushj(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._stack_call(line, 2, JMS)
        self._do_data(line, params)

    def _do_popj(self, line: SourceLine, params: list[SourceCursor]) -> None:
        self._stack_call(line, 3, JMP)

    def _do_nowarn(self, line: SourceLine, params: list[SourceCursor]) -> None:
        if not self._pass2:
            return
        state = self._state
        for param in params:
            code = str(param).upper()
            if code not in DIAGNOSTIC_CODES:
                state.diagnostics.add(PseudoOpError(f"unknown diagnostic code '{param}'", param.location))
                continue
            state.diagnostics.suppress(code, line.row)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>", cpu: str = "pdp8") -> AssemblyResult:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        filename: Virtual filename for diagnostics
        cpu: Initial CPU variant

    Returns:
        AssemblyResult
    """
    return Assembler(AssemblerConfig(cpu=cpu)).assemble_string(source, filename)


def assemble_file(filepath: str | Path, cpu: str = "pdp8") -> AssemblyResult:
    """Convenience function to assemble a file."""
    return Assembler(AssemblerConfig(cpu=cpu)).assemble_file(filepath)
