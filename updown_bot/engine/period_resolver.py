"""Period resolver: maps wall-clock time onto 15-minute trading periods."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from updown_bot.models.market import PERIOD_SECONDS, TradingPeriod

SLOT_MINUTES = 15


def period_id(asset: str, start_epoch: int) -> str:
    """Deterministic key for a period, e.g. ``btc-updown-15m-1700000100``."""
    return f"{asset.lower()}-updown-15m-{start_epoch}"


@dataclass(frozen=True)
class TimeRemaining:
    """Zero-floored time left in a period; ``expired`` once it has closed."""

    seconds: int
    expired: bool = False

    EXPIRED: ClassVar[TimeRemaining]

    def __str__(self) -> str:
        if self.expired:
            return "expired"
        minutes, seconds = divmod(self.seconds, 60)
        return f"{minutes}m {seconds}s"


TimeRemaining.EXPIRED = TimeRemaining(seconds=0, expired=True)


class PeriodResolver:
    """Resolves current/next trading periods for one asset."""

    def __init__(self, asset: str) -> None:
        self._asset = asset.lower()

    @property
    def asset(self) -> str:
        return self._asset

    def period_id(self, start_epoch: int) -> str:
        return period_id(self._asset, start_epoch)

    def period_at(self, start_epoch: int) -> TradingPeriod:
        return TradingPeriod(
            id=self.period_id(start_epoch),
            start_epoch=start_epoch,
            end_epoch=start_epoch + PERIOD_SECONDS,
        )

    def current_and_next(self, now: float) -> tuple[TradingPeriod, TradingPeriod]:
        """Return the period containing ``now`` and the one after it."""
        now_s = int(now)
        hour_start = now_s - now_s % 3600
        minute = (now_s % 3600) // 60
        slot = (minute // SLOT_MINUTES) * SLOT_MINUTES
        current_start = hour_start + slot * 60
        return self.period_at(current_start), self.period_at(current_start + PERIOD_SECONDS)

    @staticmethod
    def time_remaining(end_epoch: float, now: float) -> TimeRemaining:
        remaining = end_epoch - now
        if remaining <= 0:
            return TimeRemaining.EXPIRED
        return TimeRemaining(seconds=int(remaining))
