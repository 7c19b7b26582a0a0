"""Market data models: price observations, trading periods, venue quotes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, model_validator

PERIOD_SECONDS = 15 * 60
BIAS_THRESHOLD = 0.52


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"

    @property
    def opposite(self) -> Direction:
        if self is Direction.UP:
            return Direction.DOWN
        if self is Direction.DOWN:
            return Direction.UP
        return Direction.NEUTRAL


class PriceObservation(BaseModel):
    """A single spot trade price seen on the reference feed."""

    timestamp: float
    price: float

    model_config = {"frozen": True}


class TradingPeriod(BaseModel):
    """A 15-minute settlement window aligned to the hour."""

    id: str
    start_epoch: int
    end_epoch: int

    @model_validator(mode="after")
    def end_is_one_period_after_start(self) -> TradingPeriod:
        if self.end_epoch - self.start_epoch != PERIOD_SECONDS:
            msg = "end_epoch must be start_epoch + 900"
            raise ValueError(msg)
        return self

    model_config = {"frozen": True}


class VenueQuote(BaseModel):
    """Implied probabilities and token refs for one up/down market."""

    period_id: str
    up_implied_prob: float = 0.5
    down_implied_prob: float = 0.5
    found: bool = False
    up_token_ref: str = ""
    down_token_ref: str = ""
    active: bool = False
    question: str = ""
    tick_size: str = "0.01"
    neg_risk: bool = False

    @property
    def bias(self) -> Direction:
        if self.up_implied_prob > BIAS_THRESHOLD:
            return Direction.UP
        if self.down_implied_prob > BIAS_THRESHOLD:
            return Direction.DOWN
        return Direction.NEUTRAL

    def implied_prob(self, direction: Direction) -> float:
        """Implied probability of the given side (0.5 for NEUTRAL)."""
        if direction is Direction.UP:
            return self.up_implied_prob
        if direction is Direction.DOWN:
            return self.down_implied_prob
        return 0.5

    def token_ref(self, direction: Direction) -> str:
        if direction is Direction.UP:
            return self.up_token_ref
        if direction is Direction.DOWN:
            return self.down_token_ref
        return ""

    @classmethod
    def not_found(cls, period_id: str) -> VenueQuote:
        return cls(period_id=period_id)

    model_config = {"frozen": True}


class FeedHealth(BaseModel):
    """Liveness of the reference price feed."""

    connected: bool = False
    reconnect_attempts: int = 0
    last_tick_age: float | None = None
    degraded: bool = False

    model_config = {"frozen": True}
