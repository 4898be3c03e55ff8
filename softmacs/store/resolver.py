"""External resolution collaborators.

The store consults a resolver only when a hash has no local entry. A
resolver is any callable ``resolver(hash) -> Term | None`` where None means
"not found"; it may block (network, disk), which is why the embedding host,
not the evaluator, owns the timeout policy wrapped around it.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Mapping, Optional, Protocol, TYPE_CHECKING

from softmacs import Term, Hash
from softmacs.errors import UnresolvedReference

if TYPE_CHECKING:
    from softmacs.store.term_store import TermStore

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    def __call__(self, digest: Hash) -> Optional[Term]: ...


class MappingResolver:
    """Resolve from a hash -> term mapping (a peer's published terms)."""

    def __init__(self, terms: Mapping[Hash, Term] | None = None):
        self.terms: dict[Hash, Term] = dict(terms or {})
        self.calls = 0

    def publish(self, digest: Hash, term: Term) -> None:
        self.terms[digest] = term

    def __call__(self, digest: Hash) -> Optional[Term]:
        self.calls += 1
        return self.terms.get(digest)


class StoreResolver:
    """Treat another TermStore as the remote side."""

    def __init__(self, store: TermStore):
        self.store = store

    def __call__(self, digest: Hash) -> Optional[Term]:
        try:
            return self.store.resolve(digest)
        except UnresolvedReference:
            return None


class ChainResolver:
    """Ask each resolver in turn; the first non-None answer wins."""

    def __init__(self, *resolvers: Resolver):
        self.resolvers = list(resolvers)

    def __call__(self, digest: Hash) -> Optional[Term]:
        for resolver in self.resolvers:
            term = resolver(digest)
            if term is not None:
                return term
        return None


class TimeoutPolicy:
    """Run resolver calls with an optional deadline.

    Without a timeout the resolver runs on the calling thread. With one, it
    runs on a worker thread; when the deadline passes the future is cancelled
    and the lookup fails with UnresolvedReference.
    """

    def __init__(self, timeout: Optional[float] = None, executor: Optional[ThreadPoolExecutor] = None):
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.timeout = timeout
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="softmacs-resolve")
            return self._executor

    def call(self, resolver: Resolver, digest: Hash) -> Optional[Term]:
        if self.timeout is None:
            return resolver(digest)
        future: Future = self._get_executor().submit(resolver, digest)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeout as exc:
            future.cancel()
            logger.warning("resolution of %s timed out after %ss", digest, self.timeout)
            raise UnresolvedReference(
                f"Resolution of {digest} timed out after {self.timeout}s", digest
            ) from exc

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None and self._owns_executor:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
