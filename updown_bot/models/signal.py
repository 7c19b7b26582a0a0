"""Signal models: trend readings and the per-cycle trade signal."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from updown_bot.models.market import Direction


class TrendDirection(str, Enum):
    STRONG_UP = "STRONG_UP"
    STRONG_DOWN = "STRONG_DOWN"
    WEAK_UP = "WEAK_UP"
    WEAK_DOWN = "WEAK_DOWN"
    NEUTRAL = "NEUTRAL"


class TrendReading(BaseModel):
    """Short (30s) and medium (120s) momentum with their classification."""

    short: float | None = None
    medium: float | None = None
    direction: TrendDirection = TrendDirection.NEUTRAL

    model_config = {"frozen": True}


class SignalReason(str, Enum):
    """First failing eligibility condition, in priority order."""

    MARKET_NOT_FOUND = "market_not_found"
    DIRECTION_NEUTRAL = "direction_neutral"
    LOW_CONFIDENCE = "low_confidence"
    LOW_EDGE = "low_edge"
    ELIGIBLE = "eligible"


class Signal(BaseModel):
    """Directional verdict for one evaluation cycle.

    Always produced, even when it does not fire; ``reason`` names the
    first condition that blocked it.
    """

    direction: Direction = Direction.NEUTRAL
    confidence: float = Field(default=0.0, ge=0.0, le=0.7)
    estimated_probability: float = Field(default=0.5, ge=0.5, le=0.75)
    market_probability: float = 0.5
    edge: float = 0.0
    reason: SignalReason = SignalReason.DIRECTION_NEUTRAL
    detail: str = ""
    price: float | None = None
    momentum: float | None = None
    volatility: float | None = None
    trend: TrendReading = Field(default_factory=TrendReading)

    @property
    def fires(self) -> bool:
        return self.reason is SignalReason.ELIGIBLE

    model_config = {"frozen": True}
