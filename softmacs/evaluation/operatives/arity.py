from __future__ import annotations

from typing import Optional

from softmacs import Term
from softmacs.errors import ArityOrShapeError, SoftmacsTypeError


def check_count(name: str, items: list, low: int, high: Optional[int] = None, term: Term = None) -> None:
    """Raise ArityOrShapeError unless low <= len(items) <= high (high=None: no upper bound)."""
    n = len(items)
    if n < low or (high is not None and n > high):
        if high == low:
            expected = f"{low}"
        elif high is None:
            expected = f"at least {low}"
        else:
            expected = f"{low} to {high}"
        raise ArityOrShapeError(f"{name} expects {expected} operand(s), got {n}", term)


def expect_type(name: str, value: Term, kind, description: str) -> Term:
    if not isinstance(value, kind):
        raise SoftmacsTypeError(f"{name} expects {description}, got {value!r}", value)
    return value


def expect_number(name: str, value: Term) -> Term:
    # bool is an int subclass but not a number here
    if type(value) is bool or not isinstance(value, (int, float)):
        raise SoftmacsTypeError(f"{name} expects a number, got {value!r}", value)
    return value
