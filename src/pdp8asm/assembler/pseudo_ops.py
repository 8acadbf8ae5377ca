"""
Pseudo-Op Table
===============

The closed set of assembler directives and the parameter count each one
accepts. The count is checked before a directive runs; a mismatch is a
``Z`` diagnostic and the directive has no effect.

| Directive | Parameters  | Effect                                      |
|-----------|-------------|---------------------------------------------|
| .END      | none        | stop assembling                             |
| .ORG      | exactly 1   | set location counter                        |
| .DATA     | any         | one word per expression                     |
| .TITLE    | any         | listing title                               |
| .ASCIZ    | exactly 1   | 8-bit characters, one per word, zero word   |
| .TEXT     | exactly 1   | six-bit characters, two per word, zero end  |
| .BLOCK    | at least 1  | reserve words                               |
| .SIXBIT   | exactly 1   | six-bit characters, two per word            |
| .OPDEF    | exactly 1   | define an opcode (NAME=value)               |
| .PAGE     | at most 1   | next page, or page n                        |
| .FIELD    | exactly 1   | select memory field                         |
| .IM6100   | none        | Intersil instruction overlay                |
| .HM6120   | none        | Harris instruction overlay                  |
| .VECTOR   | exactly 1   | JMP I .+1 / address                         |
| .STACK    | exactly 4   | name push, pop, pushj, popj routines        |
| .PUSH     | exactly 1   | JMS push / value                            |
| .POP      | none        | JMS pop                                     |
| .PUSHJ    | exactly 1   | JMS pushj / address                         |
| .POPJ     | none        | JMP popj                                    |
| .NOWARN   | at least 1  | suppress diagnostic codes                   |
"""

from enum import Enum
from typing import Optional

from pdp8asm.assembler.predicates import (
    CountPredicate,
    any_count,
    at_least,
    at_most,
    exactly,
    none,
)


class PseudoOp(Enum):
    """
    Assembler directives.

    Each member's value is ``(directive name, parameter count predicate)``.
    """

    END = (".END", none)
    ORG = (".ORG", exactly(1))
    DATA = (".DATA", any_count)
    TITLE = (".TITLE", any_count)
    ASCIZ = (".ASCIZ", exactly(1))
    TEXT = (".TEXT", exactly(1))
    BLOCK = (".BLOCK", at_least(1))
    SIXBIT = (".SIXBIT", exactly(1))
    OPDEF = (".OPDEF", exactly(1))
    PAGE = (".PAGE", at_most(1))
    FIELD = (".FIELD", exactly(1))
    IM6100 = (".IM6100", none)
    HM6120 = (".HM6120", none)
    VECTOR = (".VECTOR", exactly(1))
    STACK = (".STACK", exactly(4))
    PUSH = (".PUSH", exactly(1))
    POP = (".POP", none)
    PUSHJ = (".PUSHJ", exactly(1))
    POPJ = (".POPJ", none)
    NOWARN = (".NOWARN", at_least(1))

    @property
    def directive(self) -> str:
        return self.value[0]

    @property
    def param_check(self) -> CountPredicate:
        return self.value[1]

    def accepts(self, count: int) -> bool:
        return self.param_check(count)


PSEUDO_OPS: dict[str, PseudoOp] = {op.directive: op for op in PseudoOp}


def get_pseudo_op(name: str) -> Optional[PseudoOp]:
    """Look up a directive by upper-case name (including the dot)."""
    return PSEUDO_OPS.get(name)

