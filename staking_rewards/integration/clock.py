"""
Time sources for the controller.

The core never reads a clock; the shell passes ``now`` in. Anything callable
with no arguments returning an int time unit works as a clock.
"""

from __future__ import annotations


class ManualClock:
    """Clock advanced explicitly (block heights in tests and simulations)."""

    def __init__(self, now: int = 0) -> None:
        if now < 0:
            raise ValueError(f"time must be non-negative: {now}")
        self._now = now

    def __call__(self) -> int:
        return self._now

    @property
    def now(self) -> int:
        return self._now

    def advance(self, delta: int = 1) -> int:
        if delta < 0:
            raise ValueError(f"time cannot move backwards: delta={delta}")
        self._now += delta
        return self._now

    def set(self, now: int) -> int:
        if now < self._now:
            raise ValueError(f"time cannot move backwards: {self._now} -> {now}")
        self._now = now
        return self._now
