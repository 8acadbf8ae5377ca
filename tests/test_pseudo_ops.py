# =============================================================================
# test_pseudo_ops.py - Pseudo-Op Table Unit Tests
# =============================================================================
# Tests for the directive registry and its parameter-count contracts.
# =============================================================================

import pytest

from pdp8asm.assembler.pseudo_ops import PSEUDO_OPS, PseudoOp, get_pseudo_op


class TestPseudoOpTable:
    """Test directive lookup and count checks."""

    def test_all_directives_registered(self):
        """Every directive is reachable by name."""
        assert len(PSEUDO_OPS) == 20
        assert get_pseudo_op(".ORG") is PseudoOp.ORG
        assert get_pseudo_op(".FOO") is None

    @pytest.mark.parametrize("op,accepted,rejected", [
        (PseudoOp.END, [0], [1]),
        (PseudoOp.ORG, [1], [0, 2]),
        (PseudoOp.DATA, [0, 1, 9], []),
        (PseudoOp.BLOCK, [1, 3], [0]),
        (PseudoOp.PAGE, [0, 1], [2]),
        (PseudoOp.STACK, [4], [3, 5]),
        (PseudoOp.NOWARN, [1, 2], [0]),
        (PseudoOp.POPJ, [0], [1]),
    ])
    def test_param_counts(self, op, accepted, rejected):
        """Each directive accepts exactly its documented counts."""
        for count in accepted:
            assert op.accepts(count)
        for count in rejected:
            assert not op.accepts(count)

    def test_directive_name(self):
        """Members carry their source spelling."""
        assert PseudoOp.HM6120.directive == ".HM6120"
