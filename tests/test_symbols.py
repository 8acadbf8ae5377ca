# =============================================================================
# test_symbols.py - Symbol Table Unit Tests
# =============================================================================
# Tests for labels, scoped local labels and lazily evaluated constants.
# =============================================================================

from pdp8asm.errors import SourceLocation
from pdp8asm.assembler.cursor import SourceCursor
from pdp8asm.assembler.expressions import parse_expression
from pdp8asm.assembler.symbols import SymbolTable, is_valid_symbol_name


def loc(line: int, column: int = 1) -> SourceLocation:
    return SourceLocation("test.pal", line, column)


def expr(text: str):
    return parse_expression(SourceCursor.from_line(text, 1))


# =============================================================================
# Labels
# =============================================================================

class TestLabels:
    """Test label definition and lookup."""

    def test_define_and_lookup(self):
        """A defined label resolves to its address."""
        table = SymbolTable()
        assert table.define_label("START", 0o200, loc(1)) is None
        assert table.lookup("START") == 0o200

    def test_first_definition_wins(self):
        """A redefinition is rejected and flags the symbol."""
        table = SymbolTable()
        table.define_label("A", 0o200, loc(1))
        existing = table.define_label("A", 0o300, loc(5))
        assert existing is not None
        assert existing.line == 1
        assert existing.multiply_defined
        assert table.lookup("A") == 0o200

    def test_same_location_is_not_a_redefinition(self):
        """Pass 2 seeing the same definition again is harmless."""
        table = SymbolTable()
        table.define_label("A", 0o200, loc(1))
        existing = table.define_label("A", 0o200, loc(1))
        assert not existing.multiply_defined

    def test_undefined(self):
        """Unknown names resolve to None."""
        assert SymbolTable().lookup("NOPE") is None


# =============================================================================
# Local Labels
# =============================================================================

class TestLocalLabels:
    """Test scoping of _NAME labels."""

    def test_local_in_scope(self):
        """A bare local resolves in its own scope."""
        table = SymbolTable()
        table.define_label("_LOOP", 0o201, loc(2), scope="MAIN")
        assert table.lookup("_LOOP", scope="MAIN") == 0o201

    def test_local_not_visible_elsewhere(self):
        """A bare local does not resolve from another scope."""
        table = SymbolTable()
        table.define_label("_LOOP", 0o201, loc(2), scope="MAIN")
        assert table.lookup("_LOOP", scope="OTHER") is None

    def test_qualified_reference(self):
        """SCOPE:_NAME resolves from anywhere."""
        table = SymbolTable()
        table.define_label("_LOOP", 0o201, loc(2), scope="MAIN")
        assert table.lookup("MAIN:_LOOP", scope="OTHER") == 0o201

    def test_same_local_in_two_scopes(self):
        """Locals with the same name in different scopes do not collide."""
        table = SymbolTable()
        assert table.define_label("_X", 1, loc(2), scope="A") is None
        assert table.define_label("_X", 2, loc(4), scope="B") is None
        assert table.lookup("_X", scope="A") == 1
        assert table.lookup("_X", scope="B") == 2

    def test_exported_qualified(self):
        """The final table lists locals under their qualified name."""
        table = SymbolTable()
        table.define_label("MAIN", 0o200, loc(1))
        table.define_label("_LOOP", 0o201, loc(2), scope="MAIN")
        assert table.to_dict() == {"MAIN": 0o200, "MAIN:_LOOP": 0o201}


# =============================================================================
# Constants
# =============================================================================

class TestConstants:
    """Test lazily evaluated constants."""

    def test_constant_with_forward_label(self):
        """A constant can refer to a label defined later."""
        table = SymbolTable()
        table.define_constant("PTR", expr("BUF+1"), loc(1))
        assert table.lookup("PTR") is None
        table.define_label("BUF", 0o400, loc(9))
        assert table.lookup("PTR") == 0o401

    def test_constant_uses_definition_pc(self):
        """. in a constant is the location where it was defined."""
        table = SymbolTable()
        table.define_constant("HERE", expr("."), loc(1), pc=0o250)
        assert table.lookup("HERE") == 0o250

    def test_cycle_is_unresolved(self):
        """Mutually recursive constants never resolve."""
        table = SymbolTable()
        table.define_constant("A", expr("B+1"), loc(1))
        table.define_constant("B", expr("A+1"), loc(2))
        assert table.lookup("A") is None
        result = table.evaluate_constant("A")
        assert result.undefined == "B"

    def test_constant_collides_with_label(self):
        """Constants share the label namespace."""
        table = SymbolTable()
        table.define_label("N", 0o200, loc(1))
        existing = table.define_constant("N", expr("5"), loc(2))
        assert existing is not None
        assert table.lookup("N") == 0o200

    def test_opcode_constants(self):
        """.OPDEF constants are found as opcodes."""
        table = SymbolTable()
        table.define_constant("KCC", expr("6032"), loc(1), is_opcode=True)
        table.define_constant("N", expr("5"), loc(2))
        assert table.get_opcode("KCC") is not None
        assert table.get_opcode("N") is None

    def test_unresolved_constant_left_out(self):
        """Constants that never resolve are not exported."""
        table = SymbolTable()
        table.define_constant("X", expr("MISSING"), loc(1))
        assert table.to_dict() == {}


# =============================================================================
# Name Validation
# =============================================================================

class TestNameValidation:
    """Test symbol name rules."""

    def test_valid_names(self):
        """Letters, _ and . may start a name."""
        assert is_valid_symbol_name("START")
        assert is_valid_symbol_name("_LOOP")
        assert is_valid_symbol_name("A1.B")

    def test_invalid_names(self):
        """Digits first, mnemonics and directives are rejected."""
        assert not is_valid_symbol_name("1ABC")
        assert not is_valid_symbol_name("TAD")
        assert not is_valid_symbol_name(".ORG")
        assert not is_valid_symbol_name(".")
        assert not is_valid_symbol_name("")
