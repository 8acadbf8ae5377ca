"""
Instruction Encoder
===================

Turns a resolved instruction into its 12-bit word.

Memory Reference Addressing
---------------------------
A memory reference instruction (MRI) can reach only two pages directly:
page zero and the page it sits on.

    +-----+---+---+---------------+
    | op  | I | P |    offset     |
    +-----+---+---+---------------+
     11-9   8   7       6-0

- I (0400): indirect through the addressed word
- P (0200): offset is on the current page (clear: page zero)

Any other target needs a *link*: a word on the current page holding the
full address, reached indirectly. Links are placed at the top of the
page, growing downward, and are shared between all references on the
page that need the same value. A slot can only be used when no code,
data or ``.BLOCK`` reservation from pass 1 occupies it.

``[expr]`` literals live in the same table: the value is placed in a
page slot and addressed directly.

Operate Micro-Instructions
--------------------------
OPR mnemonics on one line are ORed together, within one group:

| Group | Bit 0400 | Bit 0001 | Examples              |
|-------|----------|----------|-----------------------|
| 1     | clear    | (IAC)    | CLL CMA IAC RAL       |
| 2     | set      | clear    | SZA SNL SKP HLT OSR   |
| 3     | set      | set      | MQL MQA SWP CAM       |

NOP and CLA belong to every group.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pdp8asm.errors import (
    AssemblySyntaxError,
    DiagnosticCollector,
    ExpressionError,
    FieldError,
    MicrocodeError,
    OffPageError,
    PageFullError,
    SourceLocation,
)
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.expressions import ExprNode, WORD_MASK, parse_expression
from pdp8asm.assembler.opcodes import (
    InstructionKind,
    InstructionTable,
    ROTATE_BITS,
    SENSE_BIT,
    SKIP_BITS,
    is_universal_operate,
    operate_group,
)
from pdp8asm.assembler.predicates import immediate, indirect

logger = logging.getLogger(__name__)


# =============================================================================
# Memory Layout Constants
# =============================================================================

PAGE_SIZE = 0o200
PAGE_MASK = 0o7600
OFFSET_MASK = 0o0177
INDIRECT_BIT = 0o0400
CURRENT_PAGE_BIT = 0o0200
FIELD_COUNT = 8
PAGES_PER_FIELD = 0o40


def page_of(address: int) -> int:
    """Start address of the page containing ``address``."""
    return address & PAGE_MASK


def is_page_start(address: int) -> bool:
    return address & OFFSET_MASK == 0


def address_bits(address: int, pc: int) -> Optional[int]:
    """
    Page and offset bits that reach ``address`` from an instruction at ``pc``.

    Returns:
        The P bit and 7-bit offset, or None if the address is neither on
        page zero nor on the current page
    """
    address &= WORD_MASK
    if page_of(address) == 0:
        return address & OFFSET_MASK
    if page_of(address) == page_of(pc):
        return CURRENT_PAGE_BIT | (address & OFFSET_MASK)
    return None


# =============================================================================
# Memory Operands
# =============================================================================

@dataclass(frozen=True)
class MemoryOperand:
    """
    Parsed MRI operand.

    Attributes:
        expression: Target address (or literal value for ``[expr]``)
        indirect: ``@`` prefix
        literal: ``[expr]`` form
    """
    expression: ExprNode
    indirect: bool = False
    literal: bool = False


def parse_memory_operand(cursor: SourceCursor) -> MemoryOperand:
    """
    Parse ``expr``, ``@expr``, ``[expr]`` or ``@[expr]``.

    Raises:
        AssemblySyntaxError: Unbalanced brackets
        ExpressionError: Malformed expression
    """
    cursor = cursor.consume_whitespace().strip_trailing_whitespace()
    is_indirect = cursor.starts_with(indirect)
    if is_indirect:
        cursor = cursor.consume(1).consume_whitespace()

    if cursor.starts_with(immediate):
        if not cursor.text.endswith("]"):
            raise AssemblySyntaxError("expected ']' to close literal",
                                      cursor.location, source_line=cursor.full)
        inner = cursor.consume(1).trunc(len(cursor) - 2)
        return MemoryOperand(parse_expression(inner), indirect=is_indirect, literal=True)

    if cursor.is_empty():
        raise ExpressionError("missing address", cursor.location, source_line=cursor.full)
    return MemoryOperand(parse_expression(cursor), indirect=is_indirect)


# =============================================================================
# Page Link Tables
# =============================================================================

class PageLinkTables:
    """
    Per-page tables of link and literal words.

    Each (field, page) gets its own table, filled from the top address of
    the page downward. A value appears at most once per page.

    Args:
        occupied: (field, address) pairs used by code, data or reservations
            in pass 1; these are never handed out as link slots
    """

    def __init__(self, occupied: frozenset[tuple[int, int]] = frozenset()):
        self._occupied = occupied
        self._tables: dict[tuple[int, int], dict[int, int]] = {}
        self._next_slot: dict[tuple[int, int], int] = {}

    def allocate(self, field: int, page: int, value: int) -> Optional[int]:
        """
        Return the address of a slot on the page holding ``value``.

        Returns:
            The slot address, or None when the page has no free slot left
        """
        key = (field, page)
        table = self._tables.setdefault(key, {})
        if value in table:
            return table[value]

        slot = self._next_slot.get(key, page + OFFSET_MASK)
        while slot >= page and (field, slot) in self._occupied:
            slot -= 1
        if slot < page:
            return None

        table[value] = slot
        self._next_slot[key] = slot - 1
        logger.debug(f"Link {value:04o} at {field}:{slot:04o}")
        return slot

    def words(self) -> list[tuple[int, int, int]]:
        """All allocated slots as (field, address, value), in address order."""
        result = [
            (field, address, value)
            for (field, _page), table in self._tables.items()
            for value, address in table.items()
        ]
        return sorted(result)

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())


# =============================================================================
# Encoder
# =============================================================================

class InstructionEncoder:
    """
    Encodes instructions, recording best-effort conditions as diagnostics.

    Conditions that still produce a usable word (W, P, O, F) are recorded
    on the collector and encoding continues. The caller supplies already
    evaluated operand values.

    Usage:
        encoder = InstructionEncoder(collector, occupied)
        word = encoder.memory_reference(0o1000, target, field=0, pc=0o200,
                                        location=loc)
    """

    def __init__(
        self,
        diagnostics: DiagnosticCollector,
        occupied: frozenset[tuple[int, int]] = frozenset(),
    ):
        self._diagnostics = diagnostics
        self.links = PageLinkTables(occupied)

    # =========================================================================
    # Memory Reference
    # =========================================================================

    def memory_reference(
        self,
        opcode: int,
        target: int,
        field: int,
        pc: int,
        location: Optional[SourceLocation] = None,
        indirect: bool = False,
        literal: bool = False,
        auto_link: bool = False,
    ) -> int:
        """
        Encode an MRI.

        Args:
            opcode: Instruction pattern (0000-5000)
            target: Target address, or the literal value when ``literal``
            field: Current field
            pc: Address of the instruction
            location: Source location for diagnostics
            indirect: ``@`` was written
            literal: ``[expr]`` was written
            auto_link: Reach an off-page target through a link even without
                ``@`` (used for generated calls)

        Returns:
            The 12-bit instruction word
        """
        target &= WORD_MASK
        indirect_bit = INDIRECT_BIT if indirect else 0
        page = page_of(pc)

        if literal:
            slot = self.links.allocate(field, page, target)
            if slot is None:
                self._diagnostics.add(PageFullError(
                    f"no room on page {page:04o} for literal {target:04o}", location))
                return opcode | indirect_bit | CURRENT_PAGE_BIT
            return opcode | indirect_bit | address_bits(slot, pc)

        bits = address_bits(target, pc)
        if bits is not None:
            return opcode | indirect_bit | bits

        if indirect or auto_link:
            slot = self.links.allocate(field, page, target)
            if slot is None:
                self._diagnostics.add(PageFullError(
                    f"no room on page {page:04o} for a link to {target:04o}", location))
                return opcode | INDIRECT_BIT | CURRENT_PAGE_BIT | (target & OFFSET_MASK)
            return opcode | INDIRECT_BIT | address_bits(slot, pc)

        self._diagnostics.add(OffPageError(
            f"{target:04o} is not on page zero or the current page {page:04o}", location))
        return opcode | CURRENT_PAGE_BIT | (target & OFFSET_MASK)

    # =========================================================================
    # Operate
    # =========================================================================

    def operate(
        self,
        tokens: list[SourceCursor],
        table: InstructionTable,
    ) -> int:
        """
        Combine operate micro-instructions into one word.

        Tokens that are not OPR mnemonics are X; tokens from another group
        (or a second rotate, or a skip of the opposite sense) are O. The
        offending token is dropped and the bits before it are kept.
        """
        word: Optional[int] = None
        group: Optional[int] = None
        sense: Optional[bool] = None

        for token in tokens:
            name = str(token).upper()
            entry = table.lookup(name)
            if entry is None or entry.kind != InstructionKind.OPR:
                self._diagnostics.add(AssemblySyntaxError(
                    f"'{name}' is not an operate instruction", token.location))
                continue

            value = entry.value
            token_group = None if is_universal_operate(value) else operate_group(value)
            token_sense = _skip_sense(value) if token_group == 2 else None

            if word is not None:
                if token_group is not None and group is not None and token_group != group:
                    self._diagnostics.add(MicrocodeError(
                        f"'{name}' (group {token_group}) cannot be combined with group {group}",
                        token.location))
                    continue
                if token_group == 1 and word & ROTATE_BITS and value & ROTATE_BITS:
                    self._diagnostics.add(MicrocodeError(
                        f"'{name}' adds a second rotate", token.location))
                    continue
                if token_sense is not None and sense is not None and token_sense != sense:
                    self._diagnostics.add(MicrocodeError(
                        f"'{name}' mixes skip senses", token.location))
                    continue

            word = value if word is None else word | value
            group = group or token_group
            if token_sense is not None:
                sense = token_sense

        return word if word is not None else table.lookup("NOP").value

    # =========================================================================
    # Fixed Patterns
    # =========================================================================

    def io_transfer(self, pattern: int, operand: Optional[int] = None) -> int:
        """IOT: the pattern with an optional operand ORed in."""
        if operand is None:
            return pattern
        return (pattern | operand) & WORD_MASK

    def field_change(
        self,
        pattern: int,
        field: int,
        location: Optional[SourceLocation] = None,
    ) -> int:
        """CDF/CIF/CXF: field number in bits 3-5."""
        if not 0 <= field < FIELD_COUNT:
            self._diagnostics.add(FieldError(f"field {field:o} is not 0-7", location))
            field &= FIELD_COUNT - 1
        return pattern | (field << 3)


def _skip_sense(value: int) -> Optional[bool]:
    """
    Sense of a group 2 skip: True for reversed (SPA SNA SZL SKP), False for
    direct (SMA SZA SNL), None for non-skips (HLT OSR).
    """
    if not value & (SKIP_BITS | SENSE_BIT):
        return None
    return bool(value & SENSE_BIT)
