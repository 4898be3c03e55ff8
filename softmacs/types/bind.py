"""Parameter-tree binding for compound operatives and `define`.

A parameter tree is a Symbol (binds the whole operand), Ignore (matches
anything), Nil (matches only Nil) or a Pair of parameter trees. Operand
structure that has been replaced by content references is resolved through
`force` only where a pair pattern needs to look inside it.
"""

from __future__ import annotations

from typing import Callable

from softmacs import Term
from softmacs.errors import ArityOrShapeError
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair
from softmacs.types.symbol import Symbol


def check_ptree(ptree: Term, eparam: Term = Ignore) -> None:
    """Reject malformed parameter trees and duplicate names at construction time."""
    seen: set[Symbol] = set()
    stack = [ptree]
    while stack:
        node = stack.pop()
        if type(node) is Symbol:
            if node in seen:
                raise ArityOrShapeError(f"Parameter {node} appears more than once", ptree)
            seen.add(node)
        elif type(node) is Pair:
            stack.append(node.cdr)
            stack.append(node.car)
        elif node is not Nil and node is not Ignore:
            raise ArityOrShapeError(f"Invalid parameter tree element {node!r}", ptree)
    if eparam is not Ignore:
        if type(eparam) is not Symbol:
            raise ArityOrShapeError(f"Environment parameter must be a symbol or #ignore, got {eparam!r}", eparam)
        if eparam in seen:
            raise ArityOrShapeError(f"Environment parameter {eparam} also appears in the parameter tree", ptree)


def match_tree(ptree: Term, operands: Term, force: Callable[[Term], Term]) -> dict[Symbol, Term]:
    """Match `operands` against `ptree`, returning the bindings to install.

    Raises ArityOrShapeError when the operand structure does not fit.
    """
    bindings: dict[Symbol, Term] = {}
    stack = [(ptree, operands)]
    while stack:
        pattern, value = stack.pop()
        if type(pattern) is Symbol:
            bindings[pattern] = value
        elif pattern is Ignore:
            continue
        elif pattern is Nil:
            if force(value) is not Nil:
                raise ArityOrShapeError(f"Too many operands: {value!r} left over for {ptree!r}", operands)
        elif type(pattern) is Pair:
            value = force(value)
            if type(value) is not Pair:
                raise ArityOrShapeError(f"Operands {operands!r} do not match parameters {ptree!r}", operands)
            stack.append((pattern.cdr, value.cdr))
            stack.append((pattern.car, value.car))
        else:
            raise ArityOrShapeError(f"Invalid parameter tree element {pattern!r}", ptree)
    return bindings
