"""Combiner constructors: vau, lambda, wrap and unwrap.

    (vau ptree eparam body...)   operative closing over the current environment
    (lambda ptree body...)       shorthand for (wrap (vau ptree #ignore body...))
"""

from __future__ import annotations

from softmacs import Term
from softmacs.errors import ArityOrShapeError
from softmacs.evaluation.frames import check_body
from softmacs.evaluation.operatives.arity import check_count, expect_type
from softmacs.types.combiner import Applicative, Combiner, CompoundOperative
from softmacs.types.environment import Environment
from softmacs.types.nil import Ignore
from softmacs.types.pair import Pair


def vau_form(operands: Term, env: Environment, machine, kont):
    operands = machine.force(operands)
    rest = machine.force(operands.cdr) if type(operands) is Pair else None
    if type(rest) is not Pair:
        raise ArityOrShapeError("vau: expected (vau ptree eparam body...)", operands)
    check_body(rest.cdr, operands)
    return CompoundOperative(operands.car, rest.car, rest.cdr, env), None, kont


def lambda_form(operands: Term, env: Environment, machine, kont):
    operands = machine.force(operands)
    if type(operands) is not Pair:
        raise ArityOrShapeError("lambda: expected (lambda ptree body...)", operands)
    check_body(operands.cdr, operands)
    return Applicative(CompoundOperative(operands.car, Ignore, operands.cdr, env)), None, kont


def wrap(env: Environment, args: list) -> Applicative:
    check_count("wrap", args, 1, 1)
    return Applicative(expect_type("wrap", args[0], Combiner, "a combiner"))


def unwrap(env: Environment, args: list) -> Combiner:
    check_count("unwrap", args, 1, 1)
    return expect_type("unwrap", args[0], Applicative, "an applicative").combiner
