"""Control-stack frames for the evaluator.

The control stack is a persistent linked list of nodes ``(frame, next, depth)``
with ``None`` at the bottom. Frames are immutable; capturing a continuation
copies references to them and never the host call stack.

A machine state is a triple ``(control, env, kont)``:

- ``env`` is an Environment: evaluate the term ``control`` in ``env``;
- ``env`` is None: ``control`` is a value being returned to ``kont``.

Every frame implements ``resume(machine, value, kont)``, returning the next
state, and ``relocate(copier)``, returning the same frame over copied
environments (used to keep resumptions of a continuation independent).
"""

from __future__ import annotations

from typing import Optional

from softmacs import Term
from softmacs.errors import ArityOrShapeError
from softmacs.types.environment import Environment, next_serial
from softmacs.types.nil import Nil
from softmacs.types.pair import Pair
from softmacs.types.symbol import Symbol

Kont = Optional[tuple]


def push(frame, kont: Kont) -> tuple:
    return (frame, kont, kont[2] + 1 if kont is not None else 1)


def is_truthy(value: Term) -> bool:
    # Only #f and () are false
    return not (value is False or value is Nil)


class Frame:
    __slots__ = ()

    def resume(self, machine, value: Term, kont: Kont):
        raise NotImplementedError

    def relocate(self, copier) -> Frame:
        return self


class CombineFrame(Frame):
    """Waiting for the head of a combination; `operands` are still unevaluated."""

    __slots__ = ("operands", "env")

    def __init__(self, operands: Term, env: Environment):
        self.operands = operands
        self.env = env

    def resume(self, machine, value, kont):
        return machine.combine(value, self.operands, self.env, kont)

    def relocate(self, copier):
        return CombineFrame(self.operands, copier.env(self.env))


class ArgsFrame(Frame):
    """Evaluating the operands of an applicative, left to right.

    `done` holds the values computed so far as a reversed Pair list, so a
    resumed continuation never sees values appended by another resumption.
    """

    __slots__ = ("combiner", "pending", "env", "done")

    def __init__(self, combiner, pending: Term, env: Environment, done: Term):
        self.combiner = combiner
        self.pending = pending
        self.env = env
        self.done = done

    def resume(self, machine, value, kont):
        return machine.eval_operands(self.combiner, self.pending, self.env, Pair(value, self.done), kont)

    def relocate(self, copier):
        return ArgsFrame(copier.value(self.combiner), self.pending, copier.env(self.env), copier.values(self.done))


class SequenceFrame(Frame):
    """Remaining expressions of a body; the last one runs in tail position."""

    __slots__ = ("pending", "env")

    def __init__(self, pending: Pair, env: Environment):
        self.pending = pending
        self.env = env

    def resume(self, machine, value, kont):
        return machine.sequence(self.pending, self.env, kont)

    def relocate(self, copier):
        return SequenceFrame(self.pending, copier.env(self.env))


class IfFrame(Frame):
    __slots__ = ("consequent", "alternative", "env")

    def __init__(self, consequent: Term, alternative: Term, env: Environment):
        self.consequent = consequent
        self.alternative = alternative
        self.env = env

    def resume(self, machine, value, kont):
        branch = self.consequent if is_truthy(value) else self.alternative
        return branch, self.env, kont

    def relocate(self, copier):
        return IfFrame(self.consequent, self.alternative, copier.env(self.env))


class DefineFrame(Frame):
    """Bind the value of a `define` against its parameter tree."""

    __slots__ = ("ptree", "env")

    def __init__(self, ptree: Term, env: Environment):
        self.ptree = ptree
        self.env = env

    def resume(self, machine, value, kont):
        if type(self.ptree) is Symbol:
            self.env.define(self.ptree, value)
        else:
            for name, bound in machine.match(self.ptree, value).items():
                self.env.define(name, bound)
        return Nil, None, kont

    def relocate(self, copier):
        return DefineFrame(self.ptree, copier.env(self.env))


class SetFrame(Frame):
    __slots__ = ("symbol", "env")

    def __init__(self, symbol: Symbol, env: Environment):
        self.symbol = symbol
        self.env = env

    def resume(self, machine, value, kont):
        self.env.set(self.symbol, value)
        return value, None, kont

    def relocate(self, copier):
        return SetFrame(self.symbol, copier.env(self.env))


class AndFrame(Frame):
    __slots__ = ("pending", "env")

    def __init__(self, pending: Pair, env: Environment):
        self.pending = pending
        self.env = env

    def resume(self, machine, value, kont):
        if not is_truthy(value):
            return False, None, kont
        return machine.short_circuit(self.pending, self.env, kont, AndFrame, value)

    def relocate(self, copier):
        return AndFrame(self.pending, copier.env(self.env))


class OrFrame(Frame):
    __slots__ = ("pending", "env")

    def __init__(self, pending: Pair, env: Environment):
        self.pending = pending
        self.env = env

    def resume(self, machine, value, kont):
        if is_truthy(value):
            return value, None, kont
        return machine.short_circuit(self.pending, self.env, kont, OrFrame, value)

    def relocate(self, copier):
        return OrFrame(self.pending, copier.env(self.env))


class PromptFrame(Frame):
    """Delimiter of a region; values pass through it unchanged.

    `watermark` is an environment serial taken when the prompt was pushed:
    environments created inside the region have larger serials.
    """

    __slots__ = ("tag", "watermark")

    def __init__(self, tag: Term, watermark: int):
        self.tag = tag
        self.watermark = watermark

    def resume(self, machine, value, kont):
        return value, None, kont

    def __repr__(self) -> str:
        return f"<PromptFrame {self.tag!r}>"


class PromptTagFrame(Frame):
    """Waiting for the tag of `push-prompt`; then installs the prompt and runs the body."""

    __slots__ = ("body", "env")

    def __init__(self, body: Term, env: Environment):
        self.body = body
        self.env = env

    def resume(self, machine, value, kont):
        return machine.sequence(self.body, self.env, push_prompt(value, kont))

    def relocate(self, copier):
        return PromptTagFrame(self.body, copier.env(self.env))


def check_body(body: Term, owner: Term) -> None:
    node = body
    while type(node) is Pair:
        node = node.cdr
    if node is not Nil:
        raise ArityOrShapeError(f"Body must be a proper list, got {body!r}", owner)


def push_prompt(tag: Term, kont: Kont) -> tuple:
    return push(PromptFrame(tag, next_serial()), kont)
