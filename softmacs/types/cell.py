from __future__ import annotations

import threading
from typing import Any

# Mutation locks are striped by cell identity
_STRIPES = 64
_LOCKS = tuple(threading.Lock() for _ in range(_STRIPES))


class Cell:
    """Mutable indirection holding the value of one binding."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def set(self, value: Any) -> None:
        # object addresses are 16-byte aligned; drop the constant low bits
        with _LOCKS[(id(self) >> 4) % _STRIPES]:
            self.value = value

    def __repr__(self) -> str:
        return f"Cell({self.value!r})"
