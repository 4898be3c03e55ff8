from softmacs.store.encoding import digest
from softmacs.store.resolver import ChainResolver, MappingResolver, StoreResolver, TimeoutPolicy
from softmacs.store.snapshot import freeze
from softmacs.store.term_store import StoreEntry, TermStore

__all__ = [
    "digest",
    "freeze",
    "ChainResolver",
    "MappingResolver",
    "StoreResolver",
    "TimeoutPolicy",
    "StoreEntry",
    "TermStore",
]
