from softmacs import Term
from softmacs.errors import SoftmacsTypeError
from softmacs.evaluation.frames import DefineFrame, SetFrame, push
from softmacs.evaluation.operatives.arity import check_count
from softmacs.types.bind import check_ptree
from softmacs.types.environment import Environment
from softmacs.types.symbol import Symbol


def define_form(operands: Term, env: Environment, machine, kont):
    """
    (define ptree expr)
    Binds in the innermost frame of the calling environment. `ptree` may be a
    parameter tree, destructuring the value. Returns ().
    """
    items = machine.operand_list(operands)
    check_count("define", items, 2, 2, operands)
    ptree, expr = items
    if type(ptree) is not Symbol:
        check_ptree(ptree)
    return expr, env, push(DefineFrame(ptree, env), kont)


def set_form(operands: Term, env: Environment, machine, kont):
    """
    (set! name expr)
    Mutates the innermost existing binding of `name` and returns the new value.
    """
    items = machine.operand_list(operands)
    check_count("set!", items, 2, 2, operands)
    name, expr = items
    if type(name) is not Symbol:
        raise SoftmacsTypeError(f"set! expects a symbol, got {name!r}", name)
    return expr, env, push(SetFrame(name, env), kont)
