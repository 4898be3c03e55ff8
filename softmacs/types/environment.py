"""Runtime environment for Softmacs.

An Environment is one frame of bindings from Symbols to Cells plus a fixed
`outer` link, so environment graphs are acyclic by construction. Child frames
never write into their parents: `define` always targets the innermost frame,
and `set` mutates the cell of the innermost frame that already binds a name.

Every frame carries a serial number drawn from a process-wide counter. The
continuation manager compares serials against a prompt's watermark to tell
frames created inside a delimited region from the ancestors it shares.

A frozen frame is a stored snapshot (see softmacs.store.snapshot): lookups
work as usual but `define` and `set` on it raise FrozenEnvironment. Child
frames of a frozen frame are ordinary mutable frames.
"""

from __future__ import annotations

import itertools
from io import StringIO
from typing import Iterable, Iterator, Mapping, Optional

from softmacs import Term
from softmacs.errors import FrozenEnvironment, SoftmacsTypeError, UnboundSymbol
from softmacs.types.cell import Cell
from softmacs.types.symbol import Symbol

_serials = itertools.count(1)


def next_serial() -> int:
    return next(_serials)


class Environment:
    """Chained frame mapping Symbols to Cells."""

    __slots__ = ("vars", "outer", "serial", "frozen")

    def __init__(
        self,
        outer: Optional[Environment] = None,
        bindings: Mapping[Symbol, Term] | Iterable[tuple[Symbol, Term]] | None = None,
    ):
        frame: dict[Symbol, Cell] = {}
        if bindings is not None:
            items = bindings.items() if isinstance(bindings, Mapping) else bindings
            for name, value in items:
                if not isinstance(name, Symbol):
                    raise SoftmacsTypeError(f"Cannot bind {name!r}: not a symbol", name)
                frame[name] = Cell(value)
        # the frame is complete before anyone can see it
        self.vars: dict[Symbol, Cell] = frame
        self.outer: Environment | None = outer
        self.serial: int = next_serial()
        self.frozen: bool = False

    @classmethod
    def extend(cls, parent: Optional[Environment], bindings=None) -> Environment:
        """Create a child frame of `parent` holding `bindings`."""
        return cls(parent, bindings)

    def define(self, name: Symbol, value: Term) -> None:
        """Bind `name` to `value` in this frame only, replacing any previous binding here."""
        if not isinstance(name, Symbol):
            raise SoftmacsTypeError(f"Cannot define {name!r}: not a symbol", name)
        if self.frozen:
            raise FrozenEnvironment(f"Cannot define {name} in a stored environment", name)
        self.vars[name] = Cell(value)

    def update(self, bindings: Mapping[Symbol, Term]) -> None:
        for name, value in bindings.items():
            self.define(name, value)

    def find(self, symbol: Symbol) -> Optional[Environment]:
        """Find the nearest environment in the chain that binds `symbol`."""
        env: Optional[Environment] = self
        while env is not None:
            if symbol in env.vars:
                return env
            env = env.outer
        return None

    def lookup(self, name: Symbol) -> Term:
        """Value bound to `name`, innermost frame first.

        Raises UnboundSymbol if no frame in the chain binds it.
        """
        env: Optional[Environment] = self
        while env is not None:
            cell = env.vars.get(name)
            if cell is not None:
                return cell.value
            env = env.outer
        raise UnboundSymbol(f"Cannot lookup unbound symbol {name}", name)

    def set(self, name: Symbol, value: Term) -> None:
        """Update the innermost existing binding for `name`.

        Raises UnboundSymbol if the symbol is not bound anywhere in the chain.
        """
        env = self.find(name)
        if env is None:
            raise UnboundSymbol(f"Cannot set unbound symbol {name}", name)
        if env.frozen:
            raise FrozenEnvironment(f"Cannot set {name} in a stored environment", name)
        env.vars[name].set(value)

    def is_bound(self, name: Symbol) -> bool:
        return self.find(name) is not None

    def bindings(self) -> Iterator[tuple[Symbol, Term]]:
        """(symbol, value) pairs of this frame, parents excluded."""
        for name, cell in list(self.vars.items()):
            yield name, cell.value

    def copy_frame(self, outer: Optional[Environment]) -> Environment:
        """Fresh frame with the same bindings in new cells, chained to `outer`."""
        return Environment(outer, self.bindings())

    def depth(self) -> int:
        n, env = 0, self.outer
        while env is not None:
            n, env = n + 1, env.outer
        return n

    def _write_vars(self, buffer: StringIO) -> None:
        """Write this frame's variables into the buffer in a compact form."""
        buffer.write("{")
        first = True
        for k, v in self.bindings():
            if not first:
                buffer.write(", ")
            buffer.write(f"{k}: {type(v).__name__}")
            first = False
        buffer.write("}")

    def __str__(self) -> str:
        """Human-readable single-frame view with an indicator for parent."""
        with StringIO() as buffer:
            self._write_vars(buffer)
            if self.outer is not None:
                buffer.write(" -> ...")  # indicate parent exists
            return buffer.getvalue()

    def __repr__(self) -> str:
        return f"<Environment #{self.serial} depth={self.depth()} bindings={len(self.vars)}>"


def extend(parent: Optional[Environment], bindings=None) -> Environment:
    return Environment.extend(parent, bindings)
