from __future__ import annotations


class NilType:
    """The empty list. Terminates every proper list and self-evaluates."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self): return "()"
    def __bool__(self): return False

    def __eq__(self, other):
        return isinstance(other, NilType)

    def __hash__(self):
        return hash("softmacs.nil")

    def __reduce__(self):
        return (NilType, ())


class IgnoreType:
    """Parameter-tree marker that matches any operand without binding it."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self): return "#ignore"

    def __eq__(self, other):
        return isinstance(other, IgnoreType)

    def __hash__(self):
        return hash("softmacs.ignore")

    def __reduce__(self):
        return (IgnoreType, ())


Nil = NilType()
Ignore = IgnoreType()
