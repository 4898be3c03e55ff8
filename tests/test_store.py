import threading

import pytest
from hypothesis import given, settings, strategies as st

from softmacs.errors import FrozenEnvironment, NotInternable, SoftmacsTypeError, StoreCorruption, UnresolvedReference
from softmacs.store import ChainResolver, MappingResolver, StoreResolver, TermStore, TimeoutPolicy, digest
from softmacs.store.encoding import is_stable
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref, from_python, make_list, terms_equal, to_python
from softmacs.types.symbol import Symbol

from terms import sx

atoms = st.one_of(
    st.integers(),
    st.floats(allow_nan=False),
    st.booleans(),
    st.text(max_size=20),
    st.text(min_size=1, max_size=10).map(Symbol),
    st.just(Nil),
    st.just(Ignore),
)

terms = st.recursive(
    atoms,
    lambda children: st.one_of(
        st.lists(children, max_size=5).map(lambda xs: make_list(*xs)),
        st.tuples(children, children).map(lambda p: Pair(*p)),
    ),
    max_leaves=30,
)


@given(terms)
def test_resolve_intern_round_trip(term):
    store = TermStore()
    assert terms_equal(store.resolve(store.intern(term)), term)


@given(terms)
def test_structurally_equal_terms_hash_equal(term):
    rebuilt = from_python(to_python(term)) if type(term) is Pair else term
    assert digest(rebuilt) == digest(term)
    store = TermStore()
    assert store.intern(rebuilt) == store.intern(term)


@settings(max_examples=50)
@given(terms, terms)
def test_different_terms_hash_differently(a, b):
    if not terms_equal(a, b):
        assert digest(a) != digest(b)


def test_atoms_of_different_kinds_hash_differently():
    hashes = {digest(x) for x in (1, 1.0, True, "1", Symbol("1"), Nil, Ignore)}
    assert len(hashes) == 7


def test_intern_shares_equal_structure(store):
    first = make_list(1, make_list(2, 3))
    second = make_list(1, make_list(2, 3))
    assert store.intern(first) == store.intern(second)
    canonical = store.resolve(digest(first))
    assert canonical is first
    shared = make_list(0, make_list(2, 3))
    store.intern(shared)
    # the inner list is stored once and referenced by both parents
    assert store.refcount(digest(make_list(2, 3))) == 2


def test_canonical(store):
    stored = make_list(Symbol("a"), 1)
    store.intern(stored)
    assert store.canonical(make_list(Symbol("a"), 1)) is stored
    assert store.canonical(Ref(digest(stored))) is stored
    fresh = make_list(2)
    assert store.canonical(fresh) is fresh


def test_refcount_and_release(store):
    term = make_list(1, 2)
    h = store.intern(term)
    # 1, 2, (), (2) and (1 2)
    assert len(store) == 5
    assert store.intern(term) == h
    assert store.refcount(h) == 2
    assert store.refcount(digest(make_list(2))) == 1

    store.release(h)
    assert store.contains(h)
    store.release(h)
    assert not store.contains(h)
    assert len(store) == 0
    # releasing an absent entry is a no-op
    store.release(h)


def test_resolve_missing_without_resolver(store):
    missing = digest(Symbol("nowhere"))
    with pytest.raises(UnresolvedReference) as err:
        store.resolve(missing)
    assert err.value.hash == missing
    assert err.value.term == missing


def test_resolve_rejects_non_hash(store):
    with pytest.raises(SoftmacsTypeError):
        store.resolve("xyz")


def test_ref_is_transparent_for_hashing(store):
    inner = make_list(2, 3)
    ref = Ref(store.intern(inner))
    assert digest(ref) == digest(inner)
    assert digest(make_list(1, ref)) == digest(make_list(1, inner))
    assert make_list(1, ref) == make_list(1, inner)
    # interning through a reference keeps the already stored entry
    assert store.intern(make_list(1, ref)) == store.intern(make_list(1, inner))


def test_continuations_are_not_internable(store, interp):
    k = interp.eval(sx(["reset", ["capture"]]))
    with pytest.raises(NotInternable):
        store.intern(k)
    with pytest.raises(TypeError):
        digest(k)


def test_collision_is_fatal(store):
    h = store.intern(1)
    with pytest.raises(StoreCorruption) as err:
        # pretend a different term produced the same digest
        store._acquire(h, 2, ())
    assert err.value.digest == h
    assert not isinstance(err.value, Exception)


def test_environments_hash_by_content(interp):
    a = interp.make_global_environment()
    b = interp.make_global_environment()
    assert digest(a) == digest(b)
    assert not is_stable(a)
    interp.eval(sx(["define", "x", 1]), a)
    assert digest(a) != digest(b)
    interp.eval(sx(["define", "x", 1]), b)
    assert digest(a) == digest(b)


def test_recursive_closure_environment_hashes(interp):
    env = interp.make_global_environment()
    # f's static environment binds f itself
    interp.eval(sx(["define", "f", ["lambda", ["n"], ["f", "n"]]]), env)
    other = interp.make_global_environment()
    interp.eval(sx(["define", "f", ["lambda", ["n"], ["f", "n"]]]), other)
    assert digest(env) == digest(other)
    assert digest(env.lookup(Symbol("f"))) == digest(other.lookup(Symbol("f")))
    h = interp.intern(env)
    stored = interp.resolve(h)
    assert stored is not env
    assert digest(stored) == h
    # the frozen copy of f closes over the frozen copy of env
    assert stored.lookup(Symbol("f")).combiner.static_env is stored


def test_stored_environment_ignores_later_definitions(interp):
    env = interp.make_global_environment()
    h = interp.intern(env)
    interp.eval(sx(["define", "x", 1]), env)
    assert digest(env) != h
    stored = interp.resolve(h)
    assert digest(stored) == h
    assert not stored.is_bound(Symbol("x"))
    # a peer fetching the entry verifies the same digest
    peer = TermStore(StoreResolver(interp.store))
    assert digest(peer.resolve(h)) == h


def test_stored_environment_is_read_only(interp):
    stored = interp.resolve(interp.intern(interp.make_global_environment()))
    assert stored.frozen
    with pytest.raises(FrozenEnvironment):
        interp.eval(sx(["define", "x", 1]), stored)
    with pytest.raises(FrozenEnvironment):
        interp.eval(sx(["set!", "car", 1]), stored)
    # child frames of a stored environment are ordinary
    child = interp.eval(sx(["make-environment", ["quote", stored]]))
    interp.eval(sx(["define", "x", 1]), child)
    assert child.lookup(Symbol("x")) == 1
    # interning a stored environment again keeps the same entry
    assert interp.store.canonical(stored) is stored


def test_stored_closure_ignores_later_definitions(interp):
    env = interp.make_global_environment()
    closure = interp.eval(sx(["lambda", ["x"], ["+", "x", 1]]), env)
    h = interp.intern(closure)
    interp.eval(sx(["define", "y", 2]), env)
    stored = interp.resolve(h)
    assert digest(stored) == h
    assert stored is not closure
    assert interp.eval(make_list(Ref(h), 41)) == 42


def test_deeply_nested_cars(store):
    term = Nil
    for _ in range(10_000):
        term = Pair(term, Nil)
    h = store.intern(term)
    assert h == digest(term)
    assert store.resolve(h) is term
    assert store.refcount(h) == 1
    store.release(h)
    assert len(store) == 0


def test_deeply_nested_cars_with_an_environment(interp):
    term = interp.make_global_environment()
    for _ in range(5_000):
        term = Pair(term, Nil)
    h = interp.intern(term)
    stored = interp.resolve(h)
    assert stored is not term
    assert digest(stored) == h


def test_signed_zeros_are_different_terms():
    assert make_list(0.0) != make_list(-0.0)
    assert digest(make_list(0.0)) != digest(make_list(-0.0))
    assert make_list(1.5) == make_list(1.5)
    assert hash(make_list(1.5)) == hash(make_list(1.5))


def test_resolver_supplies_and_caches():
    term = make_list(Symbol("a"), 1)
    h = digest(term)
    remote = MappingResolver({h: term})
    store = TermStore(remote)
    assert store.resolve(h) == term
    assert store.resolve(h) == term
    assert remote.calls == 1
    assert store.refcount(h) == 1


def test_resolver_returning_wrong_term():
    h = digest(1)
    store = TermStore(MappingResolver({h: 2}))
    with pytest.raises(UnresolvedReference):
        store.resolve(h)
    assert not store.contains(h)


def test_resolver_failure_is_unresolved():
    def broken(_):
        raise ConnectionError("peer down")

    store = TermStore(broken)
    with pytest.raises(UnresolvedReference) as err:
        store.resolve(digest(1))
    assert isinstance(err.value.__cause__, ConnectionError)


def test_chain_and_store_resolvers():
    peer = TermStore()
    h = peer.intern(make_list(1, 2))
    empty = MappingResolver()
    store = TermStore(ChainResolver(empty, StoreResolver(peer)))
    assert store.resolve(h) == make_list(1, 2)
    assert empty.calls == 1
    with pytest.raises(UnresolvedReference):
        store.resolve(digest(3))


def test_resolve_timeout():
    release = threading.Event()

    def slow(h):
        release.wait(5)
        return None

    store = TermStore(slow, resolve_timeout=0.05)
    try:
        with pytest.raises(UnresolvedReference, match="timed out"):
            store.resolve(digest(1))
    finally:
        release.set()
        store.close()


def test_resolve_timeout_from_environment(monkeypatch):
    monkeypatch.setenv("SOFTMACS_RESOLVE_TIMEOUT", "2.5")
    store = TermStore()
    assert store.timeout_policy.timeout == 2.5


def test_timeout_policy_rejects_non_positive():
    with pytest.raises(ValueError):
        TimeoutPolicy(0)


def test_concurrent_interning_is_consistent():
    store = TermStore(stripes=4)
    term = make_list(*range(50))
    results = []

    def worker():
        results.append(store.intern(make_list(*range(50))))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert set(results) == {digest(term)}
    assert store.refcount(digest(term)) == 8
