"""Canonical encoding and content digests.

This module is the compatibility contract between stores: two processes that
agree on it compute identical hashes for identical terms. The digest of a
term is ``sha256(PREFIX + encoding)`` where the encoding starts with a one
byte tag:

    N                       nil
    G                       #ignore
    B 0|1                   boolean
    I <decimal>             integer
    F <float.hex()>         float
    S <len><utf-8>          symbol
    T <len><utf-8>          string
    P <car><cdr>            pair; raw 32-byte digests of both fields
    O <len><utf-8>          native operative, by registered name
    V <ptree><eparam><body><env>
                            compound operative; raw digests
    A <combiner>            applicative; raw digest of the wrapped combiner
    E <parent><count>(<len><name><value>)*
                            environment frame; parent digest or 32 zero
                            bytes, bindings sorted by symbol name
    R <depth>               back-reference to the environment `depth` levels
                            up the stack of environments being encoded

Lengths, counts and depths are 4-byte big-endian unsigned integers. A
content reference is not encoded at all: its digest *is* the referenced
hash, so replacing a subterm by its reference leaves every enclosing digest
unchanged.
"""

from __future__ import annotations

import hashlib
import struct

from softmacs import Term, Hash
from softmacs.errors import NotInternable
from softmacs.types.combiner import (
    Applicative,
    CompoundOperative,
    ContinuationOperative,
    NativeOperative,
)
from softmacs.types.continuation import Continuation
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref
from softmacs.types.symbol import Symbol

PREFIX = b"softmacs/1"
NO_PARENT = bytes(32)

_U32 = struct.Struct(">I")


def _sha(*parts: bytes) -> bytes:
    h = hashlib.sha256(PREFIX)
    for part in parts:
        h.update(part)
    return h.digest()


def _lp(data: bytes) -> bytes:
    return _U32.pack(len(data)) + data


def encode_atom(term: Term) -> bytes:
    """Encoding of a term with no subterms; NotInternable for anything else."""
    t = type(term)
    if t is Symbol:
        return b"S" + _lp(term.id.encode("utf-8"))
    if t is bool:
        return b"B1" if term else b"B0"
    if t is int:
        return b"I" + str(term).encode("ascii")
    if t is float:
        return b"F" + term.hex().encode("ascii")
    if t is str:
        return b"T" + _lp(term.encode("utf-8"))
    if term is Nil:
        return b"N"
    if term is Ignore:
        return b"G"
    if t is NativeOperative:
        return b"O" + _lp(term.name.encode("utf-8"))
    raise NotInternable(f"Cannot hash {term!r}: not an atom", term)


def pair_digest(car: bytes, cdr: bytes) -> bytes:
    return _sha(b"P", car, cdr)


class _Encoder:
    """Digest computation for one top-level term.

    Environments are mutable and may be reached again through the closures
    they bind, so their digests are computed fresh, relative to the stack of
    environments currently being encoded. Pairs built only from stable terms
    cache their digest on the pair itself.
    """

    def __init__(self):
        self.env_stack: list[Environment] = []

    def digest(self, term: Term) -> bytes:
        return self.digest_stable(term)[0]

    def digest_stable(self, term: Term) -> tuple[bytes, bool]:
        t = type(term)
        if t is Ref:
            return bytes.fromhex(term.hash), True
        if t is Pair:
            return self._pair(term)
        if t is Applicative:
            inner, stable = self.digest_stable(term.combiner)
            return _sha(b"A", inner), stable
        if t is CompoundOperative:
            return self._compound(term), False
        if t is Environment:
            return self._environment(term), False
        if t is Continuation or t is ContinuationOperative:
            raise NotInternable(f"Continuations have no content hash: {term!r}", term)
        return _sha(encode_atom(term)), True

    def _pair(self, term: Pair) -> tuple[bytes, bool]:
        cached = term.cached_digest()
        if cached is not None:
            return cached, True
        # post-order over car and cdr with an explicit stack
        results: list[tuple[bytes, bool]] = []
        stack: list[tuple[Term, bool]] = [(term, False)]
        while stack:
            node, ready = stack.pop()
            if ready:
                cdr, cdr_stable = results.pop()
                car, car_stable = results.pop()
                acc = pair_digest(car, cdr)
                stable = car_stable and cdr_stable
                if stable:
                    node.cache_digest(acc)
                results.append((acc, stable))
            elif type(node) is Pair:
                cached = node.cached_digest()
                if cached is not None:
                    results.append((cached, True))
                else:
                    stack.append((node, True))
                    stack.append((node.cdr, False))
                    stack.append((node.car, False))
            else:
                results.append(self.digest_stable(node))
        return results.pop()

    def _compound(self, term: CompoundOperative) -> bytes:
        return _sha(
            b"V",
            self.digest(term.ptree),
            self.digest(term.eparam),
            self.digest(term.body),
            self.digest(term.static_env),
        )

    def _environment(self, env: Environment) -> bytes:
        for depth, seen in enumerate(reversed(self.env_stack)):
            if seen is env:
                return _sha(b"R", _U32.pack(depth))
        self.env_stack.append(env)
        try:
            parent = self.digest(env.outer) if env.outer is not None else NO_PARENT
            items = sorted(env.bindings(), key=lambda kv: kv[0].id)
            parts = [b"E", parent, _U32.pack(len(items))]
            for name, value in items:
                parts.append(_lp(name.id.encode("utf-8")))
                parts.append(self.digest(value))
            return _sha(*parts)
        finally:
            self.env_stack.pop()


def raw_digest(term: Term) -> bytes:
    return _Encoder().digest(term)


def digest(term: Term) -> Hash:
    """Hex content hash of `term`."""
    return raw_digest(term).hex()


def is_stable(term: Term) -> bool:
    """True when the digest of `term` cannot change (no environments reachable)."""
    return _Encoder().digest_stable(term)[1]
