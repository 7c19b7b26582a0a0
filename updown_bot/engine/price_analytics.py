"""Price analytics: sliding window momentum, volatility and trend."""

from __future__ import annotations

import math
import threading
import time
from collections import deque

from updown_bot.models.market import PriceObservation
from updown_bot.models.signal import TrendDirection, TrendReading


RETENTION_SECONDS = 600.0
MIN_MOMENTUM_OBSERVATIONS = 2
MIN_VOLATILITY_OBSERVATIONS = 10
SHORT_TREND_SECONDS = 30
MEDIUM_TREND_SECONDS = 120


class PriceAnalytics:
    """Bounded, time-ordered window of reference prices.

    Thread-safe: window mutation is guarded by a lock; readers take a
    snapshot under the lock and compute outside it.
    """

    def __init__(self, retention_seconds: float = RETENTION_SECONDS) -> None:
        self._retention = retention_seconds
        self._window: deque[PriceObservation] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._window)

    def ingest(self, price: float, timestamp: float) -> None:
        """Append an observation and evict anything older than the retention window.

        Raises:
            ValueError: If the price is not a positive finite number.
        """
        if not math.isfinite(price) or price <= 0:
            msg = f"invalid price: {price!r}"
            raise ValueError(msg)

        cutoff = timestamp - self._retention
        with self._lock:
            self._window.append(PriceObservation(timestamp=timestamp, price=price))
            while self._window and self._window[0].timestamp <= cutoff:
                self._window.popleft()

    def current_price(self) -> float | None:
        with self._lock:
            if not self._window:
                return None
            return self._window[-1].price

    def momentum(self, window_seconds: float, now: float | None = None) -> float | None:
        """Percent change from the last price at or before ``now - window`` to the latest.

        Returns None when fewer than two observations exist or nothing is
        old enough to serve as the reference price.
        """
        observations = self._snapshot()
        if len(observations) < MIN_MOMENTUM_OBSERVATIONS:
            return None

        cutoff = (time.time() if now is None else now) - window_seconds
        past: PriceObservation | None = None
        for obs in reversed(observations):
            if obs.timestamp <= cutoff:
                past = obs
                break
        if past is None:
            return None

        latest = observations[-1].price
        return (latest - past.price) / past.price * 100

    def volatility(self, window_seconds: float, now: float | None = None) -> float | None:
        """Population coefficient of variation (%) over the trailing window."""
        cutoff = (time.time() if now is None else now) - window_seconds
        prices = [obs.price for obs in self._snapshot() if obs.timestamp > cutoff]
        if len(prices) < MIN_VOLATILITY_OBSERVATIONS:
            return None

        mean = sum(prices) / len(prices)
        variance = sum((p - mean) ** 2 for p in prices) / len(prices)
        return math.sqrt(variance) / mean * 100

    def trend(self, now: float | None = None) -> TrendReading:
        """Classify direction from 30s and 120s momentum signs."""
        if now is None:
            now = time.time()
        short = self.momentum(SHORT_TREND_SECONDS, now=now)
        medium = self.momentum(MEDIUM_TREND_SECONDS, now=now)

        direction = TrendDirection.NEUTRAL
        if short is not None and medium is not None:
            if short > 0 and medium > 0:
                direction = TrendDirection.STRONG_UP
            elif short < 0 and medium < 0:
                direction = TrendDirection.STRONG_DOWN
            elif short > 0:
                direction = TrendDirection.WEAK_UP
            elif short < 0:
                direction = TrendDirection.WEAK_DOWN

        return TrendReading(short=short, medium=medium, direction=direction)

    def _snapshot(self) -> list[PriceObservation]:
        with self._lock:
            return list(self._window)
