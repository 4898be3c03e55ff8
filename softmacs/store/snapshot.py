"""Frozen copies of mutable terms for the store.

Environments (and closures over them) change under `define` and `set!`,
so the store never keeps the live objects. `freeze` copies every mutable
frame reachable from a term into a frozen Environment, preserving sharing
and cycles through closures, and rebuilds pairs and combiners around the
copies. The copy hashes like the original did at the moment it was taken.
Frozen frames are returned as they are.
"""

from __future__ import annotations

from softmacs import Term
from softmacs.types.cell import Cell
from softmacs.types.combiner import Applicative, CompoundOperative
from softmacs.types.environment import Environment
from softmacs.types.pair import Pair


class Freezer:
    """Copies mutable environments once each; `value` may be called repeatedly."""

    def __init__(self):
        # id(original) -> (original, copy); the original is kept alive so ids stay unique
        self._copies: dict[int, tuple[Environment, Environment]] = {}

    def env(self, env: Environment) -> Environment:
        if env is None or env.frozen:
            return env
        known = self._copies.get(id(env))
        if known is not None:
            return known[1]
        dup = Environment(self.env(env.outer))
        self._copies[id(env)] = (env, dup)
        # registered before filling so closures over `env` find the copy
        dup.vars.update({name: Cell(self.value(value)) for name, value in env.bindings()})
        dup.frozen = True
        return dup

    def value(self, value: Term) -> Term:
        t = type(value)
        if t is Environment:
            return self.env(value)
        if t is Pair:
            return self.pair(value)
        if t is CompoundOperative:
            static = self.env(value.static_env)
            ptree = self.value(value.ptree)
            body = self.value(value.body)
            if static is value.static_env and ptree is value.ptree and body is value.body:
                return value
            return CompoundOperative(ptree, value.eparam, body, static, value.name)
        if t is Applicative:
            inner = self.value(value.combiner)
            return value if inner is value.combiner else Applicative(inner)
        return value

    def pair(self, term: Pair) -> Term:
        """Rebuild `term` around frozen leaves; unchanged sub-structure is kept."""
        if term.cached_digest() is not None:
            # only pairs without environments cache their digest
            return term
        results: list[Term] = []
        stack: list[tuple[Term, bool]] = [(term, False)]
        while stack:
            node, ready = stack.pop()
            if ready:
                cdr = results.pop()
                car = results.pop()
                results.append(node if car is node.car and cdr is node.cdr else Pair(car, cdr))
            elif type(node) is Pair and node.cached_digest() is None:
                stack.append((node, True))
                stack.append((node.cdr, False))
                stack.append((node.car, False))
            elif type(node) is Pair:
                results.append(node)
            else:
                results.append(self.value(node))
        return results.pop()


def freeze(term: Term) -> Term:
    """`term` with every reachable mutable environment replaced by a frozen copy."""
    return Freezer().value(term)
