"""
Symbol Table
============

Labels, local labels and named constants for one assembly run.

Scopes
------
A label whose name starts with ``_`` is local to the most recent global
label (the *scope symbol*). ``_LOOP`` after ``MAIN,`` is stored as
``MAIN:_LOOP``; a bare ``_LOOP`` reference only finds the local of the
current scope, while ``MAIN:_LOOP`` can be used from anywhere.

Definitions
-----------
The first definition of a name wins. A redefinition flags the symbol as
multiply defined and is reported, but the value never changes, so a
label's value is final as soon as pass 1 has seen it.

Constants
---------
``NAME=expr`` and ``.OPDEF NAME=expr`` store the expression unevaluated,
together with the location counter and scope at the point of definition.
The value is computed on demand, which lets a constant refer to labels
defined later in the file.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from pdp8asm.errors import SourceLocation
from pdp8asm.assembler.expressions import Evaluation, ExprNode, evaluate
from pdp8asm.assembler.opcodes import ALL_MNEMONICS
from pdp8asm.assembler.predicates import label_char, label_start_char
from pdp8asm.assembler.pseudo_ops import PSEUDO_OPS

logger = logging.getLogger(__name__)

SCOPE_SEPARATOR = ":"


# =============================================================================
# Symbol Table Entries
# =============================================================================

@dataclass
class Symbol:
    """
    Label table entry.

    Attributes:
        name: Name as written (upper case)
        value: Address the label was defined at
        location: Where the label was first defined
        scope: Owning scope symbol for local labels, None for globals
        multiply_defined: Set when a later definition was rejected
    """
    name: str
    value: int
    location: SourceLocation
    scope: Optional[str] = None
    multiply_defined: bool = False

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def is_local(self) -> bool:
        return self.scope is not None


@dataclass
class Constant:
    """
    Named expression, evaluated on demand.

    Attributes:
        name: Constant name (upper case)
        expression: Unevaluated expression tree
        location: Where the constant was defined
        pc: Location counter at the definition (value of ``.``)
        scope: Scope symbol at the definition, for local references
        is_opcode: True for ``.OPDEF`` names usable as mnemonics
    """
    name: str
    expression: ExprNode
    location: SourceLocation
    pc: int = 0
    scope: Optional[str] = None
    is_opcode: bool = False
    multiply_defined: bool = False
    _cached: Optional[int] = field(default=None, repr=False)

    @property
    def line(self) -> int:
        return self.location.line


# =============================================================================
# Name Validation
# =============================================================================

def is_local_name(name: str) -> bool:
    return name.startswith("_")


def is_valid_symbol_name(name: str) -> bool:
    """
    Check that a name may be defined as a label or constant.

    A symbol starts with a letter, ``_`` or ``.``, continues with letters,
    digits, ``_`` or ``.``, and is not spelled like a mnemonic, a
    pseudo-op, or the location counter.
    """
    if not name or name == ".":
        return False
    if not label_start_char(name[0]) or not all(label_char(c) for c in name):
        return False
    upper = name.upper()
    return upper not in ALL_MNEMONICS and upper not in PSEUDO_OPS


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolTable:
    """
    Global labels, scoped local labels and constants.

    Usage:
        table = SymbolTable()
        table.define_label("START", 0o200, location)
        table.define_label("_LOOP", 0o201, location, scope="START")
        table.lookup("_LOOP", scope="START")       # 0o201
        table.lookup("START:_LOOP", scope=None)    # 0o201
    """

    def __init__(self):
        self._labels: dict[str, Symbol] = {}
        self._constants: dict[str, Constant] = {}
        self._evaluating: set[str] = set()

    # =========================================================================
    # Keys
    # =========================================================================

    @staticmethod
    def qualify(name: str, scope: Optional[str]) -> str:
        """
        Table key for a name referenced or defined in a scope.

        Globals and already-qualified names are used as-is; bare locals are
        prefixed with the scope symbol.
        """
        if is_local_name(name):
            return f"{scope or ''}{SCOPE_SEPARATOR}{name}"
        return name

    # =========================================================================
    # Definitions
    # =========================================================================

    def define_label(
        self,
        name: str,
        value: int,
        location: SourceLocation,
        scope: Optional[str] = None,
    ) -> Optional[Symbol | Constant]:
        """
        Define a label.

        Args:
            name: Label name (upper case)
            value: Address
            location: Definition location
            scope: Current scope symbol (used only for local labels)

        Returns:
            None if the label was defined, otherwise the existing entry
            that kept the name (the new definition is ignored)
        """
        local = is_local_name(name)
        key = self.qualify(name, scope)

        existing = self._labels.get(key) or self._constants.get(key)
        if existing is not None:
            if existing.location != location:
                existing.multiply_defined = True
            return existing

        self._labels[key] = Symbol(
            name=name,
            value=value,
            location=location,
            scope=(scope or "") if local else None,
        )
        return None

    def define_constant(
        self,
        name: str,
        expression: ExprNode,
        location: SourceLocation,
        pc: int = 0,
        scope: Optional[str] = None,
        is_opcode: bool = False,
    ) -> Optional[Symbol | Constant]:
        """
        Define a named constant.

        Returns:
            None if the constant was defined, otherwise the existing entry
        """
        key = self.qualify(name, scope)
        existing = self._labels.get(key) or self._constants.get(key)
        if existing is not None:
            if existing.location != location:
                existing.multiply_defined = True
            return existing

        self._constants[key] = Constant(
            name=name,
            expression=expression,
            location=location,
            pc=pc,
            scope=scope,
            is_opcode=is_opcode,
        )
        return None

    def get_opcode(self, name: str) -> Optional[Constant]:
        """Return the ``.OPDEF`` constant for a mnemonic, if any."""
        constant = self._constants.get(name)
        if constant is not None and constant.is_opcode:
            return constant
        return None

    # =========================================================================
    # Lookup
    # =========================================================================

    def lookup(self, name: str, scope: Optional[str] = None) -> Optional[int]:
        """
        Value of a symbol as seen from a scope.

        Returns:
            The value, or None if the symbol is undefined (or is a constant
            whose expression cannot be resolved yet)
        """
        key = self.qualify(name, scope)

        symbol = self._labels.get(key)
        if symbol is not None:
            return symbol.value

        constant = self._constants.get(key)
        if constant is not None:
            return self._evaluate_constant(key, constant)

        return None

    def lookup_in(self, scope: Optional[str]):
        """Return a lookup callable bound to a scope, for ``evaluate``."""
        return lambda name: self.lookup(name, scope)

    def evaluate_constant(self, key: str) -> Evaluation:
        """Evaluate a constant, reporting its first unresolved dependency."""
        constant = self._constants[key]
        self._evaluating.add(key)
        try:
            return evaluate(constant.expression, self.lookup_in(constant.scope), constant.pc)
        finally:
            self._evaluating.discard(key)

    def _evaluate_constant(self, key: str, constant: Constant) -> Optional[int]:
        if constant._cached is not None:
            return constant._cached
        if key in self._evaluating:
            logger.debug(f"Circular definition of constant {key}")
            return None

        self._evaluating.add(key)
        try:
            result = evaluate(constant.expression, self.lookup_in(constant.scope), constant.pc)
        finally:
            self._evaluating.discard(key)

        if not result.resolved:
            return None
        # Label values never change once defined, so a resolved value is final
        constant._cached = result.value
        return result.value

    # =========================================================================
    # Export
    # =========================================================================

    def to_dict(self) -> dict[str, int]:
        """
        Final symbol table: name -> 12-bit value.

        Local labels appear under their qualified name (``MAIN:_LOOP``).
        Constants that never resolved are left out.
        """
        values: dict[str, int] = {}
        for key, symbol in self._labels.items():
            values[key] = symbol.value & 0o7777
        for key, constant in self._constants.items():
            value = self._evaluate_constant(key, constant)
            if value is not None:
                values[key] = value & 0o7777
        return dict(sorted(values.items()))

    def __len__(self) -> int:
        return len(self._labels) + len(self._constants)

    def __contains__(self, key: str) -> bool:
        return key in self._labels or key in self._constants
