from softmacs import Term
from softmacs.types.environment import Environment


def begin_form(operands: Term, env: Environment, machine, kont):
    """
    (begin e1 ... en) evaluates in order and returns the value of en, which
    runs in tail position. (begin) is ().
    """
    return machine.sequence(operands, env, kont)
