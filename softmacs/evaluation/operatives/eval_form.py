from softmacs import Term
from softmacs.evaluation.operatives.arity import check_count, expect_type
from softmacs.types.environment import Environment


def eval_form(operands: Term, env: Environment, machine, kont):
    """
    (eval expr environment)
    Both operands are already evaluated; `expr` is evaluated again in
    `environment`, in tail position.
    """
    items = [machine.force(item) for item in machine.operand_list(operands)]
    check_count("eval", items, 2, 2, operands)
    expr, target = items
    return expr, expect_type("eval", target, Environment, "an environment"), kont


def make_environment(env: Environment, args: list) -> Environment:
    """
    (make-environment [parent]) returns a new empty environment.
    """
    check_count("make-environment", args, 0, 1)
    parent = expect_type("make-environment", args[0], Environment, "an environment") if args else None
    return Environment(parent)
