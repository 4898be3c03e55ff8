from softmacs import Term
from softmacs.evaluation.frames import AndFrame, OrFrame, is_truthy
from softmacs.evaluation.operatives.arity import check_count
from softmacs.types.environment import Environment


def and_form(operands: Term, env: Environment, machine, kont):
    """Short-circuiting logical AND.

    (and a b c ...) evaluates operands left to right and returns #f at the
    first false one; otherwise the value of the last operand, which is in
    tail position. With zero operands, returns #t.
    """
    return machine.short_circuit(operands, env, kont, AndFrame, True)


def or_form(operands: Term, env: Environment, machine, kont):
    """Short-circuiting logical OR.

    (or a b c ...) returns the first true value; the last operand is in tail
    position. With zero operands, returns #f.
    """
    return machine.short_circuit(operands, env, kont, OrFrame, False)


def logical_not(env: Environment, args: list) -> bool:
    check_count("not", args, 1, 1)
    return not is_truthy(args[0])
