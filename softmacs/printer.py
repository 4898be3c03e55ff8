"""External representation of terms.

    ()  #t  #f  #ignore  foo  42  "text"  (a b . c)
    #<operative vau>  #<applicative car>  #<environment #12>
    #<continuation p multi-shot frames=3>  #<ref 3fa81c09d2b4>
"""

from __future__ import annotations

import json
from io import StringIO

from softmacs import Term
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref
from softmacs.types.symbol import Symbol


def _write_atom(buffer: StringIO, term: Term) -> None:
    t = type(term)
    if t is Symbol:
        buffer.write(term.id)
    elif t is bool:
        buffer.write("#t" if term else "#f")
    elif t is int or t is float:
        buffer.write(repr(term))
    elif t is str:
        buffer.write(json.dumps(term, ensure_ascii=False))
    elif term is Nil:
        buffer.write("()")
    elif term is Ignore:
        buffer.write("#ignore")
    elif t is Ref:
        buffer.write(f"#<ref {term.hash[:12]}>")
    elif t is Environment:
        buffer.write(f"#<environment #{term.serial}>")
    else:
        buffer.write(repr(term))


def _write(buffer: StringIO, term: Term) -> None:
    # (is_text, item) entries; nested lists are expanded onto the stack
    stack: list[tuple[bool, object]] = [(False, term)]
    while stack:
        is_text, item = stack.pop()
        if is_text:
            buffer.write(item)
            continue
        if type(item) is not Pair:
            _write_atom(buffer, item)
            continue
        items = []
        node = item
        while type(node) is Pair:
            items.append(node.car)
            node = node.cdr
        stack.append((True, ")"))
        if node is not Nil:
            stack.append((False, node))
            stack.append((True, " . "))
        for i in range(len(items) - 1, -1, -1):
            stack.append((False, items[i]))
            if i:
                stack.append((True, " "))
        stack.append((True, "("))


def show(term: Term) -> str:
    with StringIO() as buffer:
        _write(buffer, term)
        return buffer.getvalue()
