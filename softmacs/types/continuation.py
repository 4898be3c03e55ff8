"""First-class delimited continuations.

A Continuation is the slice of the control stack between a capture point and
the nearest prompt with its tag, stored as an immutable tuple of frames (top
of stack first). Frames never change after capture, so a continuation can be
reinstated any number of times; one-shot continuations refuse the second.
"""

from __future__ import annotations

import threading
from typing import Any

from softmacs.errors import ContinuationReused


class Continuation:
    __slots__ = ("frames", "tag", "watermark", "one_shot", "_consumed", "_lock")

    def __init__(self, frames: tuple, tag: Any, watermark: int, one_shot: bool = False):
        self.frames = frames
        self.tag = tag
        # environments with a serial above the watermark belong to the region
        self.watermark = watermark
        self.one_shot = one_shot
        self._consumed = False
        self._lock = threading.Lock() if one_shot else None

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> None:
        """Mark an invocation; raises ContinuationReused for a spent one-shot continuation."""
        if not self.one_shot:
            return
        with self._lock:
            if self._consumed:
                raise ContinuationReused("One-shot continuation invoked twice", self)
            self._consumed = True

    def __len__(self) -> int:
        return len(self.frames)

    def __repr__(self) -> str:
        shots = "one-shot" if self.one_shot else "multi-shot"
        return f"#<continuation {self.tag} {shots} frames={len(self.frames)}>"
