"""Tests for signal models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from updown_bot.models.market import Direction
from updown_bot.models.signal import Signal, SignalReason, TrendDirection, TrendReading


class TestSignal:
    def test_defaults_do_not_fire(self) -> None:
        signal = Signal()
        assert signal.direction is Direction.NEUTRAL
        assert signal.confidence == 0.0
        assert signal.estimated_probability == 0.5
        assert signal.fires is False
        assert signal.trend.direction is TrendDirection.NEUTRAL

    def test_eligible_fires(self) -> None:
        signal = Signal(direction=Direction.UP, confidence=0.3, reason=SignalReason.ELIGIBLE)
        assert signal.fires is True

    @pytest.mark.parametrize("confidence", [-0.1, 0.71])
    def test_confidence_bounds(self, confidence: float) -> None:
        with pytest.raises(ValidationError):
            Signal(confidence=confidence)

    @pytest.mark.parametrize("probability", [0.49, 0.76])
    def test_probability_bounds(self, probability: float) -> None:
        with pytest.raises(ValidationError):
            Signal(estimated_probability=probability)


class TestTrendReading:
    def test_unavailable_momentum(self) -> None:
        reading = TrendReading()
        assert reading.short is None
        assert reading.medium is None
        assert reading.direction is TrendDirection.NEUTRAL
