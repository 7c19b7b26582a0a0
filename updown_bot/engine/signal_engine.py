"""Signal engine: turns price analytics and venue quotes into a trade signal."""

from __future__ import annotations

from typing import TYPE_CHECKING

from updown_bot.core.logging import get_logger
from updown_bot.models.market import Direction
from updown_bot.models.signal import Signal, SignalReason, TrendDirection, TrendReading

if TYPE_CHECKING:
    from updown_bot.engine.price_analytics import PriceAnalytics
    from updown_bot.models.market import VenueQuote

log = get_logger(__name__)

VOLATILITY_WINDOW_SECONDS = 60
MOMENTUM_WEIGHT = 0.3
TREND_WEIGHT = 0.2
BIAS_WEIGHT = 0.1
VOLATILITY_WEIGHT = 0.1
VOLATILITY_FLOOR_PCT = 0.05
PROBABILITY_SCALE = 0.35
MIN_PROBABILITY = 0.5
MAX_PROBABILITY = 0.75
MIN_CONFIDENCE = 0.3


class SignalEngine:
    """Additive confidence scoring of momentum, trend, venue bias and volatility.

    Confidence starts at 0 and gains:

    - 0.3 when |momentum| exceeds the threshold (this also sets direction)
    - 0.2 when the 30s/120s trend is STRONG in the same direction
    - 0.1 when the venue's bias agrees with the direction
    - 0.1 when 60s volatility is above 0.05%

    The estimated probability is ``0.5 + confidence * 0.35`` clamped to
    [0.5, 0.75]; edge is its distance from the venue's implied probability
    in percentage points.
    """

    def __init__(
        self,
        momentum_threshold_pct: float = 0.05,
        momentum_window_seconds: int = 60,
        min_edge_pct: float = 2.0,
    ) -> None:
        self._threshold = momentum_threshold_pct
        self._window = momentum_window_seconds
        self._min_edge = min_edge_pct

    def evaluate(
        self,
        analytics: PriceAnalytics,
        quote: VenueQuote,
        now: float | None = None,
    ) -> Signal:
        """Read the analytics window at ``now`` and score it against ``quote``."""
        momentum = analytics.momentum(self._window, now=now)
        volatility = analytics.volatility(VOLATILITY_WINDOW_SECONDS, now=now)
        trend = analytics.trend(now=now)
        signal = self.score(momentum, volatility, trend, quote)
        signal = signal.model_copy(update={"price": analytics.current_price()})

        log.debug(
            "signal_evaluated",
            period_id=quote.period_id,
            direction=signal.direction.value,
            confidence=signal.confidence,
            edge=round(signal.edge, 4),
            reason=signal.reason.value,
        )
        return signal

    def score(
        self,
        momentum: float | None,
        volatility: float | None,
        trend: TrendReading,
        quote: VenueQuote,
    ) -> Signal:
        """Apply the confidence policy to already-computed analytics."""
        confidence = 0.0
        direction = Direction.NEUTRAL

        if momentum is not None and abs(momentum) > self._threshold:
            direction = Direction.UP if momentum > 0 else Direction.DOWN
            confidence += MOMENTUM_WEIGHT

        if (trend.direction is TrendDirection.STRONG_UP and direction is Direction.UP) or (
            trend.direction is TrendDirection.STRONG_DOWN and direction is Direction.DOWN
        ):
            confidence += TREND_WEIGHT

        if direction is not Direction.NEUTRAL and quote.bias is direction:
            confidence += BIAS_WEIGHT

        if volatility is not None and volatility > VOLATILITY_FLOOR_PCT:
            confidence += VOLATILITY_WEIGHT

        confidence = round(confidence, 4)

        estimated = MIN_PROBABILITY
        if direction is not Direction.NEUTRAL:
            estimated = _clamp(
                MIN_PROBABILITY + confidence * PROBABILITY_SCALE,
                MIN_PROBABILITY,
                MAX_PROBABILITY,
            )

        market = quote.implied_prob(direction)
        edge = (estimated - market) * 100

        reason, detail = self._first_failure(momentum, direction, confidence, edge, quote)

        return Signal(
            direction=direction,
            confidence=confidence,
            estimated_probability=estimated,
            market_probability=market,
            edge=edge,
            reason=reason,
            detail=detail,
            momentum=momentum,
            volatility=volatility,
            trend=trend,
        )

    def _first_failure(
        self,
        momentum: float | None,
        direction: Direction,
        confidence: float,
        edge: float,
        quote: VenueQuote,
    ) -> tuple[SignalReason, str]:
        if not quote.found:
            return SignalReason.MARKET_NOT_FOUND, "market not found"
        if direction is Direction.NEUTRAL:
            if momentum is None:
                return SignalReason.DIRECTION_NEUTRAL, "insufficient price data"
            return (
                SignalReason.DIRECTION_NEUTRAL,
                f"momentum {momentum:.4f}% within threshold {self._threshold}%",
            )
        if confidence < MIN_CONFIDENCE:
            return SignalReason.LOW_CONFIDENCE, f"confidence {confidence * 100:.0f}% too low"
        if edge < self._min_edge:
            return SignalReason.LOW_EDGE, f"edge {edge:.2f}% < min {self._min_edge}%"
        return SignalReason.ELIGIBLE, f"{direction.value} signal, edge {edge:.2f}%"


def _clamp(value: float, low: float, high: float) -> float:
    """Clamp a value between low and high."""
    return max(low, min(high, value))
