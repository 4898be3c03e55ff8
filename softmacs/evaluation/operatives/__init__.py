"""Registry of the primitive combiners that shape evaluation.

Operatives receive their operands unevaluated; the applicatives listed here
need the machine (the current continuation, the store or the tail position)
and so are wrapped control operatives. Plain data primitives live in
softmacs.builtin.env_builtin.
"""

from softmacs.types.combiner import Applicative, NativeOperative
from softmacs.types.symbol import Symbol
from softmacs.evaluation.operatives.quote_form import quote_form
from softmacs.evaluation.operatives.vau_form import vau_form, lambda_form, wrap, unwrap
from softmacs.evaluation.operatives.if_form import if_form
from softmacs.evaluation.operatives.sequence_form import begin_form
from softmacs.evaluation.operatives.define_form import define_form, set_form
from softmacs.evaluation.operatives.logic_forms import and_form, or_form, logical_not
from softmacs.evaluation.operatives.eval_form import eval_form, make_environment
from softmacs.evaluation.operatives.prompt_forms import (
    push_prompt_form,
    reset_form,
    shift_form,
    capture_form,
    abort_form,
    invoke_form,
    continuation_to_applicative,
)
from softmacs.evaluation.operatives.store_forms import intern_form, resolve_form


def operative(name: str, fn) -> NativeOperative:
    return NativeOperative(name, fn, control=True)


def applicative(name: str, fn, control: bool = False, force: bool = True) -> Applicative:
    return Applicative(NativeOperative(name, fn, control=control, force=force))


OPERATIVES = {
    Symbol("quote"): operative("quote", quote_form),
    Symbol("vau"): operative("vau", vau_form),
    Symbol("lambda"): operative("lambda", lambda_form),
    Symbol("define"): operative("define", define_form),
    Symbol("set!"): operative("set!", set_form),
    Symbol("if"): operative("if", if_form),
    Symbol("begin"): operative("begin", begin_form),
    Symbol("and"): operative("and", and_form),
    Symbol("or"): operative("or", or_form),
    Symbol("push-prompt"): operative("push-prompt", push_prompt_form),
    Symbol("reset"): operative("reset", reset_form),
    Symbol("shift"): operative("shift", shift_form),
}

APPLICATIVES = {
    Symbol("wrap"): applicative("wrap", wrap),
    Symbol("unwrap"): applicative("unwrap", unwrap),
    Symbol("not"): applicative("not", logical_not),
    Symbol("eval"): applicative("eval", eval_form, control=True),
    Symbol("make-environment"): applicative("make-environment", make_environment),
    Symbol("capture"): applicative("capture", capture_form, control=True),
    Symbol("abort"): applicative("abort", abort_form, control=True),
    Symbol("invoke"): applicative("invoke", invoke_form, control=True),
    Symbol("continuation->applicative"): applicative("continuation->applicative", continuation_to_applicative),
    Symbol("intern"): applicative("intern", intern_form, control=True),
    Symbol("resolve"): applicative("resolve", resolve_form, control=True),
}

__all__ = ["OPERATIVES", "APPLICATIVES", "operative", "applicative"]
