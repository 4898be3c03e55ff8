"""Delimited control: prompts, capture, abort, invoke and shift/reset.

    (push-prompt tag body...)          evaluate body under a prompt for tag
    (capture [tag])                    continuation up to the nearest prompt
    (abort tag [value])                return value from the nearest prompt
    (invoke k value)                   resume k with value, result comes back
    (continuation->applicative k)      k as an applicative of one argument
    (reset body...)                    push-prompt with default-prompt
    (shift k body...)                  capture to the nearest reset, leave the
                                       region, run body with k bound
"""

from __future__ import annotations

from softmacs import Term
from softmacs.errors import ArityOrShapeError, SoftmacsTypeError
from softmacs.evaluation import continuations
from softmacs.evaluation.continuations import DEFAULT_PROMPT
from softmacs.evaluation.frames import PromptTagFrame, check_body, push, push_prompt
from softmacs.evaluation.operatives.arity import check_count, expect_type
from softmacs.types.combiner import Applicative, ContinuationOperative
from softmacs.types.continuation import Continuation
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil
from softmacs.types.pair import Pair
from softmacs.types.symbol import Symbol


def push_prompt_form(operands: Term, env: Environment, machine, kont):
    operands = machine.force(operands)
    if type(operands) is not Pair:
        raise ArityOrShapeError("push-prompt: expected (push-prompt tag body...)", operands)
    check_body(operands.cdr, operands)
    return operands.car, env, push(PromptTagFrame(operands.cdr, env), kont)


def reset_form(operands: Term, env: Environment, machine, kont):
    return machine.sequence(operands, env, push_prompt(DEFAULT_PROMPT, kont))


def shift_form(operands: Term, env: Environment, machine, kont):
    operands = machine.force(operands)
    if type(operands) is not Pair or type(operands.car) is not Symbol:
        raise ArityOrShapeError("shift: expected (shift name body...)", operands)
    check_body(operands.cdr, operands)
    k = continuations.capture(machine, DEFAULT_PROMPT, kont)
    # the body runs inside the reset, with the captured region discarded
    _, prompt_node = continuations.split_at_prompt(kont, DEFAULT_PROMPT)
    body_env = Environment(env, {operands.car: Applicative(ContinuationOperative(k))})
    return machine.sequence(operands.cdr, body_env, prompt_node)


def capture_form(operands: Term, env: Environment, machine, kont):
    items = [machine.force(item) for item in machine.operand_list(operands)]
    check_count("capture", items, 0, 1, operands)
    tag = items[0] if items else DEFAULT_PROMPT
    return continuations.capture(machine, tag, kont), None, kont


def abort_form(operands: Term, env: Environment, machine, kont):
    items = machine.operand_list(operands)
    check_count("abort", items, 1, 2, operands)
    value = items[1] if len(items) == 2 else Nil
    return continuations.abort(machine.force(items[0]), value, kont)


def invoke_form(operands: Term, env: Environment, machine, kont):
    items = machine.operand_list(operands)
    check_count("invoke", items, 2, 2, operands)
    k = expect_type("invoke", machine.force(items[0]), Continuation, "a continuation")
    return continuations.invoke(machine, k, items[1], kont)


def continuation_to_applicative(env: Environment, args: list) -> Applicative:
    check_count("continuation->applicative", args, 1, 1)
    k = args[0]
    if not isinstance(k, Continuation):
        raise SoftmacsTypeError(f"continuation->applicative expects a continuation, got {k!r}", k)
    return Applicative(ContinuationOperative(k))
