from __future__ import annotations

from typing import Optional


TICK_START_MS = 800
TICK_STEP_MS = 50
TICK_MIN_MS = 100


def tick_interval_ms(level: int, start: int = TICK_START_MS, step: int = TICK_STEP_MS,
                     minimum: int = TICK_MIN_MS) -> int:
    """Gravity period for ``level`` (1-based), never below ``minimum``."""
    return max(minimum, start - (level - 1) * step)


class GameClock:
    """Periodic trigger driven by timestamps the host supplies.

    The clock only tracks when the next period elapses. It knows nothing about
    the game; the owner polls ``pop_due`` and turns each due period into a
    tick. ``restart`` discards the previous schedule entirely, so a period
    computed for an old level can never fire after a new one is set.
    """

    def __init__(self) -> None:
        self._period_ms: Optional[int] = None
        self._deadline_ms: Optional[float] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._deadline_ms is not None

    @property
    def period_ms(self) -> Optional[int]:
        return self._period_ms

    @property
    def deadline_ms(self) -> Optional[float]:
        return self._deadline_ms

    @property
    def generation(self) -> int:
        return self._generation

    def restart(self, period_ms: int, now_ms: float) -> None:
        if period_ms <= 0:
            raise ValueError(f"period must be positive, got {period_ms}")
        self._generation += 1
        self._period_ms = int(period_ms)
        self._deadline_ms = now_ms + period_ms

    def stop(self) -> None:
        if self._deadline_ms is None:
            return
        self._generation += 1
        self._period_ms = None
        self._deadline_ms = None

    def pop_due(self, now_ms: float) -> bool:
        """Consume one elapsed period, if any."""
        if self._deadline_ms is None or self._period_ms is None:
            return False
        if now_ms < self._deadline_ms:
            return False
        self._deadline_ms += self._period_ms
        return True
