"""Combiner variants.

A combiner is either an operative, which receives its operand tree
unevaluated together with the calling environment, or an applicative, which
wraps another combiner and evaluates the operands first. Special forms are
operatives; procedures are applicatives.

    Operative   = NativeOperative | CompoundOperative | ContinuationOperative
    Applicative = Applicative(Combiner)

The evaluator dispatches on the concrete class, never on a shared method.
"""

from __future__ import annotations

from io import StringIO
from typing import Callable, Optional

from softmacs import Term
from softmacs.types.bind import check_ptree
from softmacs.types.environment import Environment
from softmacs.types.nil import Ignore


class Combiner:
    __slots__ = ()


class Operative(Combiner):
    __slots__ = ()


class NativeOperative(Operative):
    """An operative implemented by a Python function.

    With `control=False` the function is called as `fn(env, operands)` with the
    operand list converted to a Python list, and its return value becomes the
    result; top-level Ref operands are resolved first unless `force=False`.
    With `control=True` it is called as `fn(operands, env, machine, kont)`
    and returns the next machine state itself.
    """

    __slots__ = ("name", "fn", "control", "force")

    def __init__(self, name: str, fn: Callable, control: bool = False, force: bool = True):
        self.name = name
        self.fn = fn
        self.control = control
        self.force = force

    def __repr__(self) -> str:
        return f"#<operative {self.name}>"


class CompoundOperative(Operative):
    """A user-defined operative created by `vau`.

    `ptree` is matched against the operand tree, `eparam` (a Symbol or Ignore)
    receives the dynamic environment of the call, and `body` is a proper list
    of expressions evaluated in sequence in a child of `static_env`.
    """

    __slots__ = ("ptree", "eparam", "body", "static_env", "name")

    def __init__(
        self,
        ptree: Term,
        eparam: Term,
        body: Term,
        static_env: Environment,
        name: Optional[str] = None,
    ):
        check_ptree(ptree, eparam)
        self.ptree = ptree
        self.eparam = eparam
        self.body = body
        self.static_env = static_env
        self.name = name

    def __str__(self) -> str:
        from softmacs.printer import show
        with StringIO() as buffer:
            buffer.write("(vau ")
            buffer.write(show(self.ptree))
            buffer.write(" ")
            buffer.write("#ignore" if self.eparam is Ignore else str(self.eparam))
            for form in self.body:
                buffer.write(" ")
                buffer.write(show(form))
            buffer.write(")")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return f"#<operative {self.name}>" if self.name else str(self)


class ContinuationOperative(Operative):
    """Operative face of a continuation (see `continuation->applicative`)."""

    __slots__ = ("continuation",)

    def __init__(self, continuation):
        self.continuation = continuation

    def __repr__(self) -> str:
        return f"#<operative {self.continuation!r}>"


class Applicative(Combiner):
    """Wraps a combiner; operands are evaluated before it is invoked."""

    __slots__ = ("combiner",)

    def __init__(self, combiner: Combiner):
        self.combiner = combiner

    def __repr__(self) -> str:
        inner = self.combiner
        if isinstance(inner, NativeOperative):
            return f"#<applicative {inner.name}>"
        if isinstance(inner, CompoundOperative) and inner.name:
            return f"#<applicative {inner.name}>"
        return f"#<applicative {inner!r}>"


def is_combiner(value: Term) -> bool:
    return isinstance(value, Combiner)
