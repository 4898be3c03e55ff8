"""Content-addressed term store.

Terms are interned under the hex SHA-256 digest of their canonical encoding
(see softmacs.store.encoding). Interning is recursive: every sub-list of a
pair structure gets its own entry, and a structure that is already present
is returned instead of the new copy, so equal fragments share one
representation (hash-consing).

Entries are immutable: environments and closures are stored as frozen
copies (softmacs.store.snapshot), so later `define`s in the original do not
reach the entry. Beside each entry the store keeps a reference count:
one per parent entry that points at it plus one per `intern` call (or cached
resolution) that has not been `release`d. An entry whose count drops to zero
is removed and releases its children.

Concurrency: the entry table is guarded by lock stripes chosen from the
digest, so insert-if-absent and count updates on one digest are atomic and
unrelated digests do not contend.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from softmacs import Term, Hash
from softmacs.config import get_resolve_timeout, get_store_stripes
from softmacs.errors import (
    NotInternable,
    SoftmacsTypeError,
    StoreCorruption,
    UnresolvedReference,
)
from softmacs.store.encoding import digest, encode_atom, pair_digest
from softmacs.store.resolver import Resolver, TimeoutPolicy
from softmacs.store.snapshot import freeze
from softmacs.types.combiner import Applicative, CompoundOperative
from softmacs.types.environment import Environment
from softmacs.types.pair import Pair, Ref, is_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreEntry:
    digest: Hash
    term: Term
    # digests of the entries this one holds a reference on
    children: tuple[Hash, ...] = ()
    # (car, cdr) digests for pairs; what the digest was computed from
    parts: tuple[Hash, ...] = ()


class TermStore:
    """Interns terms by content hash and resolves hashes back to terms."""

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        *,
        resolve_timeout: Optional[float] = None,
        timeout_policy: Optional[TimeoutPolicy] = None,
        stripes: Optional[int] = None,
    ):
        self.resolver = resolver
        if timeout_policy is None:
            timeout_policy = TimeoutPolicy(resolve_timeout if resolve_timeout is not None else get_resolve_timeout())
        self.timeout_policy = timeout_policy
        self._entries: dict[Hash, StoreEntry] = {}
        self._refcounts: dict[Hash, int] = {}
        n = stripes if stripes is not None else get_store_stripes()
        self._locks = tuple(threading.Lock() for _ in range(n))

    def _lock_for(self, digest_hex: Hash) -> threading.Lock:
        return self._locks[int(digest_hex[:8], 16) % len(self._locks)]

    # --- Interning ---
    def intern(self, term: Term) -> Hash:
        """Store `term` (and all of its sub-structure) and return its hash.

        Each call holds one reference on the returned entry until `release`.
        Raises NotInternable for terms without a content hash.
        """
        digest_hex, _, _ = self._intern(term)
        return digest_hex

    def _intern(self, term: Term) -> tuple[Hash, Term, bool]:
        """Intern `term`.

        Returns (hash, canonical term, held) where `held` says whether a
        reference on a local entry was taken for the caller.
        """
        t = type(term)
        if t is Ref:
            # the referent may live elsewhere; only count it when it is local
            return term.hash, term, self._retain_if_present(term.hash)
        if t is Pair:
            return self._intern_pair(term)
        if t is Environment or t is CompoundOperative or t is Applicative:
            # entries never change, so mutable frames are stored as frozen copies
            term = freeze(term)
        digest_hex = digest(term)
        return digest_hex, self._acquire(digest_hex, term, ()), True

    def _intern_pair(self, term: Pair) -> tuple[Hash, Term, bool]:
        # post-order over car and cdr with an explicit stack
        results: list[tuple[Hash, Term, bool]] = []
        stack: list[tuple[Term, bool]] = [(term, False)]
        while stack:
            node, ready = stack.pop()
            if not ready:
                if type(node) is Pair:
                    stack.append((node, True))
                    stack.append((node.cdr, False))
                    stack.append((node.car, False))
                else:
                    results.append(self._intern(node))
                continue
            tail_digest, tail, tail_held = results.pop()
            car_digest, car, car_held = results.pop()
            if car is node.car and tail is node.cdr:
                candidate = node
            else:
                candidate = Pair(car, tail)
            pair_hex = pair_digest(bytes.fromhex(car_digest), bytes.fromhex(tail_digest)).hex()
            # the references just taken on car and tail become the new entry's child references
            children = tuple(d for d, held in ((car_digest, car_held), (tail_digest, tail_held)) if held)
            stored = self._acquire(pair_hex, candidate, children, (car_digest, tail_digest))
            results.append((pair_hex, stored, True))
        return results.pop()

    def _acquire(
        self, digest_hex: Hash, term: Term, children: tuple[Hash, ...], parts: tuple[Hash, ...] = ()
    ) -> Term:
        created = False
        with self._lock_for(digest_hex):
            entry = self._entries.get(digest_hex)
            if entry is None:
                entry = StoreEntry(digest_hex, term, children, parts)
                self._entries[digest_hex] = entry
                self._refcounts[digest_hex] = 1
                created = True
            else:
                self._check_collision(entry, term, parts)
                self._refcounts[digest_hex] += 1
        if created:
            logger.debug("interned %s (%s)", digest_hex[:12], type(term).__name__)
        else:
            # the existing entry already references its children
            for child in children:
                self.release(child)
        return entry.term

    def _retain_if_present(self, digest_hex: Hash) -> bool:
        with self._lock_for(digest_hex):
            if digest_hex in self._refcounts:
                self._refcounts[digest_hex] += 1
                return True
        return False

    def _check_collision(self, entry: StoreEntry, term: Term, parts: tuple[Hash, ...]) -> None:
        existing = entry.term
        if existing is term:
            return
        if type(existing) is Pair or type(term) is Pair:
            same = type(existing) is Pair and type(term) is Pair and entry.parts == parts
        elif isinstance(existing, (Environment, CompoundOperative, Applicative)):
            same = type(existing) is type(term)
        else:
            try:
                same = encode_atom(existing) == encode_atom(term)
            except NotInternable:
                same = False
        if not same:
            message = f"Hash invariant broken: {existing!r} and {term!r} share digest {entry.digest}"
            logger.critical(message)
            raise StoreCorruption(message, entry.digest)

    # --- Lifetime ---
    def release(self, digest_hex: Hash) -> None:
        """Drop one reference; entries reaching zero are removed with their children."""
        pending = [digest_hex]
        while pending:
            current = pending.pop()
            with self._lock_for(current):
                count = self._refcounts.get(current)
                if count is None:
                    logger.debug("release of %s ignored: no local entry", current[:12])
                    continue
                if count > 1:
                    self._refcounts[current] = count - 1
                    continue
                entry = self._entries.pop(current)
                del self._refcounts[current]
            logger.debug("removed %s", current[:12])
            pending.extend(entry.children)

    def refcount(self, digest_hex: Hash) -> int:
        return self._refcounts.get(digest_hex, 0)

    # --- Resolution ---
    def resolve(self, digest_hex: Hash) -> Term:
        """Term stored under `digest_hex`, consulting the resolver on a local miss.

        A term supplied by the resolver must hash to the requested digest; it is
        then cached locally. Raises UnresolvedReference on any failure.
        """
        if not is_hash(digest_hex):
            raise SoftmacsTypeError(f"Not a content hash: {digest_hex!r}", digest_hex)
        entry = self._entries.get(digest_hex)
        if entry is not None:
            return entry.term
        if self.resolver is None:
            raise UnresolvedReference(f"No entry for {digest_hex} and no resolver configured", digest_hex)

        logger.debug("resolving %s externally", digest_hex[:12])
        try:
            term = self.timeout_policy.call(self.resolver, digest_hex)
        except UnresolvedReference:
            raise
        except Exception as exc:
            logger.warning("resolver failed for %s: %s", digest_hex, exc)
            raise UnresolvedReference(f"Resolver failed for {digest_hex}: {exc}", digest_hex) from exc
        if term is None:
            raise UnresolvedReference(f"Resolver could not supply {digest_hex}", digest_hex)

        try:
            actual = digest(term)
        except NotInternable as exc:
            raise UnresolvedReference(f"Resolver supplied an unhashable term for {digest_hex}", digest_hex) from exc
        if actual != digest_hex:
            logger.warning("resolver returned %s for %s", actual, digest_hex)
            raise UnresolvedReference(
                f"Resolver returned a term hashing to {actual} for {digest_hex}", digest_hex
            )
        # the cached copy keeps one reference of its own
        _, canonical, _ = self._intern(term)
        return canonical

    def canonical(self, term: Term) -> Term:
        """The stored representation of `term` if one exists, otherwise `term` itself."""
        entry = self._entries.get(term.hash if type(term) is Ref else digest(term))
        return term if entry is None else entry.term

    def contains(self, digest_hex: Hash) -> bool:
        return digest_hex in self._entries

    def __contains__(self, digest_hex: object) -> bool:
        return isinstance(digest_hex, str) and digest_hex in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        self.timeout_policy.shutdown()

    def __repr__(self) -> str:
        return f"<TermStore entries={len(self._entries)} resolver={self.resolver!r}>"
