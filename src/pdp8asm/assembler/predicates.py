"""
Character and Parameter-Count Predicates
=========================================

Small composable classifiers used by the scanner, the pseudo-op table and
the encoder instead of ad hoc character tests.

Byte Predicates
---------------
Each byte predicate takes a single character and returns a bool:

>>> whitespace("\\t")
True
>>> label_char("_")
True
>>> char_equal(",")(",")
True

Count Predicates
----------------
Each pseudo-op declares how many parameters it accepts with one of:

- ``none``          no parameters
- ``any_count``     any number of parameters
- ``exactly(n)``    exactly n parameters
- ``at_least(n)``   n or more parameters
- ``at_most(n)``    n or fewer parameters

>>> exactly(4)(4), at_most(1)(2)
(True, False)
"""

from typing import Callable

BytePredicate = Callable[[str], bool]
CountPredicate = Callable[[int], bool]


# =============================================================================
# Count Predicates
# =============================================================================

def any_count(count: int) -> bool:
    return True


def none(count: int) -> bool:
    return count == 0


def exactly(n: int) -> CountPredicate:
    def check(count: int) -> bool:
        return count == n
    check.__doc__ = f"exactly {n}"
    return check


def at_least(n: int) -> CountPredicate:
    def check(count: int) -> bool:
        return count >= n
    check.__doc__ = f"at least {n}"
    return check


def at_most(n: int) -> CountPredicate:
    def check(count: int) -> bool:
        return count <= n
    check.__doc__ = f"at most {n}"
    return check


def describe_count(predicate: CountPredicate) -> str:
    """Human-readable form of a count predicate for diagnostics."""
    if predicate is none:
        return "no parameters"
    if predicate is any_count:
        return "any number of parameters"
    return f"{predicate.__doc__} parameter(s)"


# =============================================================================
# Byte Predicates
# =============================================================================

def char_equal(c: str) -> BytePredicate:
    return lambda b: b == c


def whitespace(c: str) -> bool:
    return c == " " or c == "\t"


def word_char(c: str) -> bool:
    return not whitespace(c)


def comment(c: str) -> bool:
    return c == ";"


# No hexadecimal: the PDP-8 world never used it.
def binary(c: str) -> bool:
    return c == "0" or c == "1"


def octal(c: str) -> bool:
    return "0" <= c <= "7"


def decimal(c: str) -> bool:
    return "0" <= c <= "9"


def alpha(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


def indirect(c: str) -> bool:
    return c == "@"


def immediate(c: str) -> bool:
    return c == "["


def label_start_char(c: str) -> bool:
    return alpha(c) or c == "_" or c == "."


def label_char(c: str) -> bool:
    return label_start_char(c) or decimal(c)


def identifier_start_char(c: str) -> bool:
    return label_start_char(c)


def identifier_char(c: str) -> bool:
    # ':' joins a scope symbol to a local label (MAIN:_LOOP)
    return label_char(c) or c == ":"


def string_quote(c: str) -> bool:
    return c == '"' or c == "'"


def label_terminator(c: str) -> bool:
    return c == "," or c == ":"
