"""Step machine over an explicit control stack.

The machine never recurses on the host stack: every evaluation step returns
the next ``(control, env, kont)`` state to `run`. Tail positions (operative
bodies, the last form of a sequence, `if` branches, `eval`, the last operand
of `and`/`or`) hand their term back without pushing a frame, so loops written
as self-recursive calls run in constant control-stack depth.
"""

from __future__ import annotations

import logging
from typing import Optional

from softmacs import Term
from softmacs.config import one_shot_continuations
from softmacs.errors import ArityOrShapeError, NotCombinable, UnresolvedReference
from softmacs.evaluation import continuations
from softmacs.evaluation.frames import ArgsFrame, CombineFrame, Kont, SequenceFrame, push, push_prompt
from softmacs.printer import show
from softmacs.types.bind import match_tree
from softmacs.types.combiner import (
    Applicative,
    CompoundOperative,
    ContinuationOperative,
    NativeOperative,
)
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref, reverse_list
from softmacs.types.symbol import Symbol

logger = logging.getLogger(__name__)


class Machine:
    """One evaluation context: a store for Refs and the continuation mode.

    A machine is used by one thread at a time. `max_depth` is the deepest
    control stack seen since the machine was created.
    """

    def __init__(self, store=None, one_shot: Optional[bool] = None):
        self.store = store
        self.one_shot = one_shot_continuations() if one_shot is None else one_shot
        self.max_depth = 0
        self.steps = 0

    def evaluate(self, term: Term, env: Environment) -> Term:
        """Evaluate `term` in `env` under a root prompt tagged DEFAULT_PROMPT."""
        return self.run(term, env, push_prompt(continuations.DEFAULT_PROMPT, None))

    def run(self, control: Term, env: Optional[Environment], kont: Kont) -> Term:
        max_depth = self.max_depth
        steps = 0
        try:
            while True:
                steps += 1
                if env is None:
                    if kont is None:
                        return control
                    frame, rest, _ = kont
                    control, env, kont = frame.resume(self, control, rest)
                else:
                    t = type(control)
                    if t is Symbol:
                        control, env = env.lookup(control), None
                    elif t is Pair:
                        head = control.car
                        if type(head) is Symbol:
                            control, env, kont = self.combine(env.lookup(head), control.cdr, env, kont)
                        else:
                            kont = push(CombineFrame(control.cdr, env), kont)
                            control = head
                    elif t is Ref:
                        control = self.force(control)
                    else:
                        env = None
                if kont is not None and kont[2] > max_depth:
                    max_depth = kont[2]
        finally:
            self.max_depth = max_depth
            self.steps += steps

    # --- Combination ---
    def combine(self, combiner, operands: Term, env: Environment, kont: Kont):
        t = type(combiner)
        if t is Applicative:
            return self.eval_operands(combiner.combiner, operands, env, Nil, kont)
        if t is CompoundOperative:
            bindings = self.match(combiner.ptree, operands)
            if combiner.eparam is not Ignore:
                bindings[combiner.eparam] = env
            return self.sequence(combiner.body, Environment(combiner.static_env, bindings), kont)
        if t is NativeOperative:
            if combiner.control:
                return combiner.fn(operands, env, self, kont)
            args = self.operand_list(operands, combiner)
            if combiner.force:
                args = [self.force(arg) for arg in args]
            return combiner.fn(env, args), None, kont
        if t is ContinuationOperative:
            args = self.operand_list(operands, combiner)
            if len(args) != 1:
                raise ArityOrShapeError(f"A continuation takes exactly one value, got {len(args)}", operands)
            return continuations.invoke(self, combiner.continuation, args[0], kont)
        if t is Ref:
            return self.combine(self.force(combiner), operands, env, kont)
        raise NotCombinable(f"Not a combiner: {show(combiner)}", combiner)

    def eval_operands(self, combiner, pending: Term, env: Environment, done: Term, kont: Kont):
        """Evaluate `pending` left to right onto `done` (reversed), then combine."""
        while True:
            t = type(pending)
            if t is Pair:
                operand = pending.car
                ot = type(operand)
                if ot is Symbol:
                    done = Pair(env.lookup(operand), done)
                elif ot is Pair or ot is Ref:
                    return operand, env, push(ArgsFrame(combiner, pending.cdr, env, done), kont)
                else:
                    done = Pair(operand, done)
                pending = pending.cdr
            elif pending is Nil:
                return self.combine(combiner, reverse_list(done), env, kont)
            elif t is Ref:
                pending = self.force(pending)
            else:
                raise ArityOrShapeError(f"Operands must form a proper list, got {show(pending)}", pending)

    def sequence(self, body: Term, env: Environment, kont: Kont):
        body = self.force(body)
        if body is Nil:
            return Nil, None, kont
        if type(body) is not Pair:
            raise ArityOrShapeError(f"Body must be a proper list, got {show(body)}", body)
        rest = self.force(body.cdr)
        if rest is Nil:
            return body.car, env, kont
        return body.car, env, push(SequenceFrame(rest, env), kont)

    def short_circuit(self, pending: Term, env: Environment, kont: Kont, frame_cls, value: Term):
        """Shared step of `and`/`or`: `value` is the result when nothing is pending."""
        pending = self.force(pending)
        if pending is Nil:
            return value, None, kont
        if type(pending) is not Pair:
            raise ArityOrShapeError(f"Operands must form a proper list, got {show(pending)}", pending)
        rest = self.force(pending.cdr)
        if rest is Nil:
            return pending.car, env, kont
        return pending.car, env, push(frame_cls(rest, env), kont)

    # --- Helpers ---
    def force(self, term: Term) -> Term:
        """Resolve content references until `term` is not a Ref."""
        while type(term) is Ref:
            if self.store is None:
                raise UnresolvedReference(f"No store to resolve {term.hash}", term.hash)
            term = self.store.resolve(term.hash)
        return term

    def match(self, ptree: Term, operands: Term) -> dict:
        return match_tree(ptree, operands, self.force)

    def operand_list(self, operands: Term, owner: Term = None) -> list:
        items = []
        node = self.force(operands)
        while type(node) is Pair:
            items.append(node.car)
            node = self.force(node.cdr)
        if node is not Nil:
            raise ArityOrShapeError(
                f"Operands must form a proper list, got {show(operands)}",
                owner if owner is not None else operands,
            )
        return items

    def __repr__(self) -> str:
        mode = "one-shot" if self.one_shot else "multi-shot"
        return f"<Machine {mode} max_depth={self.max_depth} store={self.store!r}>"
