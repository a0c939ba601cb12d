"""
Logical time sources.

The engine only needs a non-decreasing integer.  ``SystemClock`` uses Unix
seconds and never goes backwards even if the wall clock does;
``ManualClock`` is a block-height style counter driven by the caller.
"""

from __future__ import annotations

import time

from trip_verification.domain.ports import Clock


class SystemClock(Clock):
    def __init__(self):
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class ManualClock(Clock):
    def __init__(self, height: int = 0):
        self.height = height

    def now(self) -> int:
        return self.height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("Logical time can not go backwards")
        self.height += blocks
        return self.height
