from __future__ import annotations

from typing import Optional

from softmacs import Term, Hash
from softmacs.builtin.env_builtin import make_global_environment
from softmacs.errors import SoftmacsTypeError
from softmacs.evaluation import continuations
from softmacs.evaluation.frames import push_prompt
from softmacs.evaluation.machine import Machine
from softmacs.store.resolver import Resolver
from softmacs.store.term_store import TermStore
from softmacs.types.continuation import Continuation
from softmacs.types.environment import Environment
from softmacs.types.pair import Ref


class Interpreter:
    """
    Embedding facade: a global environment, a term store and the continuation
    mode, shared by every evaluation started through it.

    Each `eval` or `resume` call runs in its own Machine, so continuations
    may be resumed from several threads at once.
    """

    def __init__(
        self,
        store: Optional[TermStore] = None,
        resolver: Optional[Resolver] = None,
        resolve_timeout: Optional[float] = None,
        one_shot: Optional[bool] = None,
    ):
        if store is None:
            store = TermStore(resolver, resolve_timeout=resolve_timeout)
        elif resolver is not None:
            raise ValueError("Pass either a store or a resolver for a new store, not both")
        self.store = store
        self.one_shot = one_shot
        self.env: Environment = make_global_environment()
        self.last_machine: Optional[Machine] = None

    def machine(self) -> Machine:
        return Machine(self.store, self.one_shot)

    def eval(self, term: Term, env: Optional[Environment] = None) -> Term:
        machine = self.machine()
        self.last_machine = machine
        return machine.evaluate(term, self.env if env is None else env)

    def make_global_environment(self) -> Environment:
        return make_global_environment()

    def resume(self, k: Continuation, value: Term) -> Term:
        """Run `k` to completion with `value` and return its result."""
        if not isinstance(k, Continuation):
            raise SoftmacsTypeError(f"resume expects a continuation, got {k!r}", k)
        machine = self.machine()
        self.last_machine = machine
        control, env, kont = continuations.invoke(machine, k, value, push_prompt(k.tag, None))
        return machine.run(control, env, kont)

    def intern(self, term: Term) -> Hash:
        return self.store.intern(term)

    def resolve(self, ref: Ref | Hash) -> Term:
        return self.store.resolve(ref.hash if isinstance(ref, Ref) else ref)

    def release(self, ref: Ref | Hash) -> None:
        self.store.release(ref.hash if isinstance(ref, Ref) else ref)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> Interpreter:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
