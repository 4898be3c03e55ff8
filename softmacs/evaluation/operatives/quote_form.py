from softmacs import Term
from softmacs.evaluation.operatives.arity import check_count
from softmacs.types.environment import Environment


def quote_form(operands: Term, env: Environment, machine, kont):
    """
    (quote x) returns x unevaluated.
    """
    items = machine.operand_list(operands)
    check_count("quote", items, 1, 1, operands)
    return items[0], None, kont
