from softmacs.types.symbol import Symbol
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref, make_list, from_python, to_python, terms_equal
from softmacs.types.cell import Cell
from softmacs.types.environment import Environment, extend
from softmacs.types.combiner import (
    Combiner,
    Operative,
    NativeOperative,
    CompoundOperative,
    ContinuationOperative,
    Applicative,
)
from softmacs.types.continuation import Continuation

__all__ = [
    "Symbol",
    "Nil",
    "Ignore",
    "Pair",
    "Ref",
    "make_list",
    "from_python",
    "to_python",
    "terms_equal",
    "Cell",
    "Environment",
    "extend",
    "Combiner",
    "Operative",
    "NativeOperative",
    "CompoundOperative",
    "ContinuationOperative",
    "Applicative",
    "Continuation",
]
