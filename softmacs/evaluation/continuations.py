"""Delimited continuation manager.

Prompts are PromptFrames on the control stack. Capturing copies the frames
between the current point and the nearest prompt with the requested tag into
a Continuation; nothing is unwound. Aborting drops those frames and returns a
value from the prompt. Invoking pushes a fresh prompt with the
continuation's tag and then the captured frames, so the resumed region
behaves as if `capture` had returned the value, and its result comes back to
the invoker (composable, multi-shot unless configured one-shot).

Resumptions are isolated from each other: environments created inside the
region (serial above the prompt's watermark) are snapshotted at capture and
copied again for every invocation. Environments older than the prompt are
the shared ancestors and are not copied.

Usage (terms written as s-expressions):

  (reset (+ 1 (shift k (k (k 10)))))                    ; => 12
  (push-prompt 'p (+ 1 (abort 'p 41)))                  ; => 41
  (define k (reset (+ 10 ((lambda (c) (if (continuation? c) (abort default-prompt c) c))
                           (capture)))))
  (invoke k 5)                                          ; => 15
  (invoke k 7)                                          ; => 17
"""

from __future__ import annotations

import logging

from softmacs import Term
from softmacs.errors import NoActivePrompt
from softmacs.evaluation.frames import Kont, PromptFrame, push, push_prompt
from softmacs.printer import show
from softmacs.types.cell import Cell
from softmacs.types.combiner import Applicative, CompoundOperative
from softmacs.types.continuation import Continuation
from softmacs.types.environment import Environment
from softmacs.types.pair import Pair, terms_equal
from softmacs.types.symbol import Symbol

logger = logging.getLogger(__name__)

# Tag of the root prompt every evaluation runs under
DEFAULT_PROMPT = Symbol("%default-prompt")


def tags_match(a: Term, b: Term) -> bool:
    return a is b or terms_equal(a, b)


def split_at_prompt(kont: Kont, tag: Term) -> tuple[list, tuple]:
    """Frames above the nearest prompt for `tag` (top first) and the prompt's node."""
    frames = []
    node = kont
    while node is not None:
        frame = node[0]
        if type(frame) is PromptFrame and tags_match(frame.tag, tag):
            return frames, node
        frames.append(frame)
        node = node[1]
    raise NoActivePrompt(f"No active prompt for tag {show(tag)}", tag)


def has_prompt(kont: Kont, tag: Term) -> bool:
    node = kont
    while node is not None:
        frame = node[0]
        if type(frame) is PromptFrame and tags_match(frame.tag, tag):
            return True
        node = node[1]
    return False


class RegionCopier:
    """Copies environments created after `watermark`, preserving sharing.

    Closures and first-class environments bound in a copied frame are
    redirected to the copies as well, so a resumption cannot reach the cells
    of another one through them. Frozen frames cannot change and are shared.
    """

    def __init__(self, watermark: int):
        self.watermark = watermark
        # id(original) -> (original, copy); the original is kept alive so ids stay unique
        self._copies: dict[int, tuple[Environment, Environment]] = {}

    def env(self, env: Environment) -> Environment:
        if env is None or env.frozen or env.serial <= self.watermark:
            return env
        known = self._copies.get(id(env))
        if known is not None:
            return known[1]
        dup = Environment(self.env(env.outer))
        self._copies[id(env)] = (env, dup)
        # registered before filling so closures over `env` find the copy
        dup.vars.update({name: Cell(self.value(value)) for name, value in env.bindings()})
        return dup

    def value(self, value: Term) -> Term:
        t = type(value)
        if t is Environment:
            return self.env(value)
        if t is CompoundOperative:
            static = self.env(value.static_env)
            if static is value.static_env:
                return value
            return CompoundOperative(value.ptree, value.eparam, value.body, static, value.name)
        if t is Applicative:
            inner = self.value(value.combiner)
            return value if inner is value.combiner else Applicative(inner)
        return value

    def values(self, items: Term) -> Term:
        """Copy each element of a Pair list (used for partially evaluated operands)."""
        copied = []
        changed = False
        node = items
        while type(node) is Pair:
            new = self.value(node.car)
            changed = changed or new is not node.car
            copied.append(new)
            node = node.cdr
        if not changed:
            return items
        result = node
        for item in reversed(copied):
            result = Pair(item, result)
        return result


def capture(machine, tag: Term, kont: Kont) -> Continuation:
    """Reify the frames up to the nearest prompt for `tag`; the stack is left as it is."""
    frames, prompt_node = split_at_prompt(kont, tag)
    prompt = prompt_node[0]
    copier = RegionCopier(prompt.watermark)
    snapshot = tuple(frame.relocate(copier) for frame in frames)
    k = Continuation(snapshot, prompt.tag, prompt.watermark, machine.one_shot)
    logger.debug("captured %r", k)
    return k


def abort(tag: Term, value: Term, kont: Kont):
    """Discard the frames up to and including the nearest prompt for `tag`, returning `value` there."""
    _, prompt_node = split_at_prompt(kont, tag)
    logger.debug("abort to %s", show(tag))
    return value, None, prompt_node[1]


def invoke(machine, k: Continuation, value: Term, kont: Kont):
    """Resume `k` on top of `kont` as if its capture had returned `value`."""
    if not has_prompt(kont, k.tag):
        raise NoActivePrompt(f"Cannot invoke {k!r}: no active prompt for tag {show(k.tag)}", k.tag)
    k.consume()
    copier = RegionCopier(k.watermark)
    kont = push_prompt(k.tag, kont)
    for frame in reversed(k.frames):
        kont = push(frame.relocate(copier), kont)
    logger.debug("invoke %r", k)
    return value, None, kont
