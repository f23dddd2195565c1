"""Per-room chess clock.

A single rule drives all time accounting: the side to move loses the
milliseconds elapsed since the last reconciliation (never dropping below
zero) and the reconciliation timestamp moves to *now* in the same step. The
rule is applied both when a move arrives and on every background tick, so the
elapsed interval is charged exactly once whoever observes it first.
"""
from __future__ import annotations

import time
from typing import Callable, Dict

from .constants import Side

NowFn = Callable[[], int]


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class GameClock:
    def __init__(self, initial_ms: int, now: int):
        self.initial_ms = initial_ms
        self.remaining: Dict[Side, int] = {Side.WHITE: initial_ms, Side.BLACK: initial_ms}
        self.last_tick = now

    def reset(self, now: int) -> None:
        """Give both sides the full allowance and restart the reconciliation window at *now*."""
        self.remaining[Side.WHITE] = self.initial_ms
        self.remaining[Side.BLACK] = self.initial_ms
        self.last_tick = now

    def reconcile(self, side: Side, now: int) -> int:
        """Charge *side* for the time since the last reconciliation. Returns the milliseconds charged."""
        elapsed = max(0, now - self.last_tick)
        charged = min(elapsed, self.remaining[side])
        self.remaining[side] -= charged
        self.last_tick = max(self.last_tick, now)
        return charged

    def expired(self, side: Side) -> bool:
        return self.remaining[side] == 0

    def __getitem__(self, side: Side) -> int:
        return self.remaining[side]

    def as_dict(self) -> Dict[str, int]:
        return {Side.WHITE.value: self.remaining[Side.WHITE], Side.BLACK.value: self.remaining[Side.BLACK]}


__all__ = ["GameClock", "NowFn", "monotonic_ms", "epoch_ms"]
