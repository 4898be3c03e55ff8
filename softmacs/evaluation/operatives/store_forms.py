from softmacs import Term
from softmacs.errors import SoftmacsError, SoftmacsTypeError
from softmacs.evaluation.operatives.arity import check_count
from softmacs.types.environment import Environment
from softmacs.types.pair import Ref, is_hash


def _store(machine, name: str):
    if machine.store is None:
        raise SoftmacsError(f"{name}: no term store attached to this evaluation")
    return machine.store


def intern_form(operands: Term, env: Environment, machine, kont):
    """
    (intern term) stores `term` and returns a reference to it.
    """
    items = machine.operand_list(operands)
    check_count("intern", items, 1, 1, operands)
    return Ref(_store(machine, "intern").intern(items[0])), None, kont


def resolve_form(operands: Term, env: Environment, machine, kont):
    """
    (resolve ref) returns the referent of `ref`, a Ref or a hash string.
    """
    items = machine.operand_list(operands)
    check_count("resolve", items, 1, 1, operands)
    target = items[0]
    if type(target) is Ref:
        digest = target.hash
    elif is_hash(target):
        digest = target
    else:
        raise SoftmacsTypeError(f"resolve expects a reference, got {target!r}", target)
    return _store(machine, "resolve").resolve(digest), None, kont
