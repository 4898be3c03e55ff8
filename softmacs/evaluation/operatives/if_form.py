from softmacs import Term
from softmacs.evaluation.frames import IfFrame, push
from softmacs.evaluation.operatives.arity import check_count
from softmacs.types.environment import Environment


def if_form(operands: Term, env: Environment, machine, kont):
    """
    (if test consequent [alternative])
    Only the selected branch is evaluated, in tail position. A missing
    alternative yields #f.
    """
    items = machine.operand_list(operands)
    check_count("if", items, 2, 3, operands)
    alternative = items[2] if len(items) == 3 else False
    return items[0], env, push(IfFrame(items[1], alternative, env), kont)
