"""Pairs, content references and list helpers.

Pairs are immutable two-field cells; proper lists are chains of pairs ending
in Nil. A Ref names another term by its content hash and is transparent: a
structure holding `Ref(h)` is equal to (and hashes like) the same structure
holding the term whose digest is `h`.
"""

from __future__ import annotations

import re
from typing import Iterator

from softmacs import Term, Hash
from softmacs.errors import ArityOrShapeError
from softmacs.types.nil import Nil, NilType, IgnoreType
from softmacs.types.symbol import Symbol

_HASH_RE = re.compile(r"^[0-9a-f]{64}$")


def is_hash(value: object) -> bool:
    return isinstance(value, str) and _HASH_RE.match(value) is not None


class Pair:
    __slots__ = ("car", "cdr", "_digest")

    def __init__(self, car: Term, cdr: Term):
        object.__setattr__(self, "car", car)
        object.__setattr__(self, "cdr", cdr)
        # raw digest, filled in lazily for pairs built only from stable terms
        object.__setattr__(self, "_digest", None)

    def __setattr__(self, name, value):
        raise AttributeError("Pair is immutable")

    def cache_digest(self, digest: bytes) -> None:
        object.__setattr__(self, "_digest", digest)

    def cached_digest(self) -> bytes | None:
        return self._digest

    def __iter__(self) -> Iterator[Term]:
        """Iterate over the elements of a list; stops at the first non-pair tail."""
        node = self
        while type(node) is Pair:
            yield node.car
            node = node.cdr

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Pair, Ref)):
            return NotImplemented
        return terms_equal(self, other)

    def __hash__(self) -> int:
        from softmacs.store.encoding import digest
        return hash(digest(self))

    def __repr__(self) -> str:
        from softmacs.printer import show
        return show(self)


class Ref:
    """A content reference: stands for the term whose digest is `hash`."""

    __slots__ = ("hash",)

    def __init__(self, digest: Hash):
        if not is_hash(digest):
            raise ValueError(f"Not a content hash: {digest!r}")
        object.__setattr__(self, "hash", digest)

    def __setattr__(self, name, value):
        raise AttributeError("Ref is immutable")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Ref):
            return self.hash == other.hash
        if isinstance(other, Pair):
            return terms_equal(self, other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.hash)

    def __repr__(self) -> str:
        return f"Ref({self.hash[:12]}…)"


def atoms_equal(a: Term, b: Term) -> bool:
    """Equality of non-pair terms: same type and same value (so #t != 1 and 1 != 1.0).

    Floats are equal when their encodings are, so 0.0 and -0.0 differ.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if type(a) is float:
        return a.hex() == b.hex()
    if isinstance(a, (bool, int, str, Symbol, NilType, IgnoreType)):
        return a == b
    # combiners, environments and continuations compare by identity
    return False


def terms_equal(a: Term, b: Term) -> bool:
    """Structural equality with content references compared by digest."""
    from softmacs.store.encoding import digest

    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        if x is y:
            continue
        if type(x) is Ref or type(y) is Ref:
            if digest(x) != digest(y):
                return False
            continue
        if type(x) is Pair:
            if type(y) is not Pair:
                return False
            stack.append((x.cdr, y.cdr))
            stack.append((x.car, y.car))
            continue
        if not atoms_equal(x, y):
            return False
    return True


def make_list(*items: Term, tail: Term = Nil) -> Term:
    result = tail
    for item in reversed(items):
        result = Pair(item, result)
    return result


def reverse_list(term: Term) -> Term:
    result = Nil
    while type(term) is Pair:
        result = Pair(term.car, result)
        term = term.cdr
    return result


def list_to_python(term: Term, owner: Term = None) -> list[Term]:
    """Elements of a proper list as a Python list; ArityOrShapeError otherwise."""
    items = []
    node = term
    while type(node) is Pair:
        items.append(node.car)
        node = node.cdr
    if node is not Nil:
        raise ArityOrShapeError(f"Expected a proper list, got {term!r}", owner if owner is not None else term)
    return items


def from_python(obj: object) -> Term:
    """Convert nested Python lists/tuples into Pair lists; None becomes Nil."""
    if obj is None:
        return Nil
    if isinstance(obj, (list, tuple)):
        return make_list(*(from_python(x) for x in obj))
    return obj


def to_python(term: Term) -> object:
    """Inverse of from_python for proper lists; improper lists are left as pairs."""
    if term is Nil:
        return []
    if type(term) is Pair:
        items = []
        node = term
        while type(node) is Pair:
            items.append(node.car)
            node = node.cdr
        if node is not Nil:
            return term
        return [to_python(x) for x in items]
    return term
