"""Built-in data primitives for the Softmacs global environment.

Arithmetic, comparison, pair construction and access, and type predicates.
Each is a plain function `fn(env, args)` over already evaluated arguments;
`register` wraps them as applicatives and installs them together with the
evaluation primitives from softmacs.evaluation.operatives.
"""
from __future__ import annotations

import operator
from typing import Callable

from softmacs import Term
from softmacs.errors import SoftmacsTypeError
from softmacs.evaluation.continuations import DEFAULT_PROMPT
from softmacs.evaluation.operatives import APPLICATIVES, OPERATIVES, applicative
from softmacs.evaluation.operatives.arity import check_count, expect_number
from softmacs.types.combiner import Applicative, Operative
from softmacs.types.continuation import Continuation
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil
from softmacs.types.pair import Pair, atoms_equal, make_list, terms_equal
from softmacs.types.symbol import Symbol


def add(env: Environment, args: list[Term]) -> Term:
    """Sum of the arguments; (+) is 0."""
    return sum((expect_number("+", x) for x in args), 0)


def sub(env: Environment, args: list[Term]) -> Term:
    """Subtract the rest from the first; a single argument is negated."""
    check_count("-", args, 1)
    first = expect_number("-", args[0])
    if len(args) == 1:
        return -first
    for x in args[1:]:
        first -= expect_number("-", x)
    return first


def mul(env: Environment, args: list[Term]) -> Term:
    """Product of the arguments; (*) is 1."""
    result = 1
    for x in args:
        result *= expect_number("*", x)
    return result


def _comparison(name: str, op: Callable[[Term, Term], bool]):
    def compare(env: Environment, args: list[Term]) -> bool:
        check_count(name, args, 1)
        numbers = [expect_number(name, x) for x in args]
        return all(op(a, b) for a, b in zip(numbers, numbers[1:]))

    compare.__name__ = compare.__qualname__ = f"compare_{op.__name__}"
    compare.__doc__ = f"#t when every adjacent pair of arguments satisfies {name}."
    return compare


num_eq = _comparison("=", operator.eq)
lt = _comparison("<", operator.lt)
gt = _comparison(">", operator.gt)
lte = _comparison("<=", operator.le)
gte = _comparison(">=", operator.ge)


def cons(env: Environment, args: list[Term]) -> Pair:
    check_count("cons", args, 2, 2)
    return Pair(args[0], args[1])


def _expect_pair(name: str, value: Term) -> Pair:
    if type(value) is not Pair:
        raise SoftmacsTypeError(f"{name} expects a pair, got {value!r}", value)
    return value


def car(env: Environment, args: list[Term]) -> Term:
    """First element of a pair. (car ()) is an error."""
    check_count("car", args, 1, 1)
    return _expect_pair("car", args[0]).car


def cdr(env: Environment, args: list[Term]) -> Term:
    check_count("cdr", args, 1, 1)
    return _expect_pair("cdr", args[0]).cdr


def list_builtin(env: Environment, args: list[Term]) -> Term:
    """Construct a list from the provided arguments."""
    return make_list(*args)


def is_eq(env: Environment, args: list[Term]) -> bool:
    """Identity for combiners, environments and pairs; value equality for atoms."""
    check_count("eq?", args, 2, 2)
    a, b = args
    return a is b or atoms_equal(a, b)


def is_equal(env: Environment, args: list[Term]) -> bool:
    """Structural equality; content references compare by hash."""
    check_count("equal?", args, 2, 2)
    return terms_equal(args[0], args[1])


def _predicate(name: str, test: Callable[[Term], bool]):
    def predicate(env: Environment, args: list[Term]) -> bool:
        check_count(name, args, 1, 1)
        return test(args[0])

    predicate.__name__ = predicate.__qualname__ = name.rstrip("?").replace("-", "_") + "_p"
    return predicate


is_null = _predicate("null?", lambda x: x is Nil)
is_pair = _predicate("pair?", lambda x: type(x) is Pair)
is_symbol = _predicate("symbol?", lambda x: type(x) is Symbol)
is_operative = _predicate("operative?", lambda x: isinstance(x, Operative))
is_applicative = _predicate("applicative?", lambda x: type(x) is Applicative)
is_environment = _predicate("environment?", lambda x: type(x) is Environment)
is_continuation = _predicate("continuation?", lambda x: type(x) is Continuation)


BUILTINS = {
    Symbol("+"): add,
    Symbol("-"): sub,
    Symbol("*"): mul,
    Symbol("="): num_eq,
    Symbol("<"): lt,
    Symbol(">"): gt,
    Symbol("<="): lte,
    Symbol(">="): gte,
    Symbol("cons"): cons,
    Symbol("car"): car,
    Symbol("cdr"): cdr,
    Symbol("list"): list_builtin,
    Symbol("eq?"): is_eq,
    Symbol("equal?"): is_equal,
    Symbol("null?"): is_null,
    Symbol("pair?"): is_pair,
    Symbol("symbol?"): is_symbol,
    Symbol("operative?"): is_operative,
    Symbol("applicative?"): is_applicative,
    Symbol("environment?"): is_environment,
    Symbol("continuation?"): is_continuation,
}

# equal? sees Refs as they are and compares them by hash
_UNFORCED = frozenset({Symbol("equal?")})


def register(env: Environment) -> None:
    """Register all primitives and constants into the given environment."""
    env.update(OPERATIVES)
    env.update(APPLICATIVES)
    env.update(
        {
            name: applicative(name.id, fn, force=name not in _UNFORCED)
            for name, fn in BUILTINS.items()
        }
    )
    env.define(Symbol("default-prompt"), DEFAULT_PROMPT)


def make_global_environment() -> Environment:
    """A fresh global environment holding every primitive.

    Each call builds new frames, so definitions made in one global
    environment are never visible in another.
    """
    env = Environment()
    register(env)
    return env
