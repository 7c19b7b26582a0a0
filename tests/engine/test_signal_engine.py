"""Tests for SignalEngine: confidence scoring, probability and edge."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from updown_bot.engine.price_analytics import PriceAnalytics  # noqa: TCH001
from updown_bot.engine.signal_engine import SignalEngine
from updown_bot.models.market import Direction, VenueQuote
from updown_bot.models.signal import Signal, SignalReason, TrendDirection, TrendReading

NOW = 1_700_000_000.0


def _quote(up: float = 0.45, down: float = 0.55, found: bool = True) -> VenueQuote:
    return VenueQuote(
        period_id="btc-updown-15m-1699999200",
        up_implied_prob=up,
        down_implied_prob=down,
        found=found,
        active=found,
    )


def _trend(direction: TrendDirection = TrendDirection.NEUTRAL) -> TrendReading:
    return TrendReading(short=0.01, medium=0.02, direction=direction)


class TestScore:
    def test_all_conditions_up(self) -> None:
        engine = SignalEngine()
        signal = engine.score(0.1, 0.1, _trend(TrendDirection.STRONG_UP), _quote(up=0.53, down=0.47))
        assert signal.direction is Direction.UP
        assert signal.confidence == pytest.approx(0.7)
        assert signal.estimated_probability == pytest.approx(0.745)
        assert signal.market_probability == 0.53
        assert signal.edge == pytest.approx(21.5)
        assert signal.fires is True
        assert signal.reason is SignalReason.ELIGIBLE

    def test_bias_against_direction_adds_nothing(self) -> None:
        engine = SignalEngine()
        signal = engine.score(0.1, 0.1, _trend(TrendDirection.STRONG_UP), _quote(up=0.45, down=0.55))
        assert signal.confidence == pytest.approx(0.6)
        assert signal.estimated_probability == pytest.approx(0.71)
        assert signal.edge == pytest.approx(26.0)

    def test_down_direction(self) -> None:
        engine = SignalEngine()
        signal = engine.score(-0.2, 0.1, _trend(TrendDirection.STRONG_DOWN), _quote(up=0.60, down=0.40))
        assert signal.direction is Direction.DOWN
        assert signal.confidence == pytest.approx(0.6)
        assert signal.market_probability == 0.40
        assert signal.edge == pytest.approx(31.0)
        assert signal.fires is True

    def test_strong_trend_against_direction_adds_nothing(self) -> None:
        engine = SignalEngine()
        signal = engine.score(0.1, None, _trend(TrendDirection.STRONG_DOWN), _quote())
        assert signal.confidence == pytest.approx(0.3)

    def test_edge_against_min_edge(self) -> None:
        # momentum + venue bias: confidence 0.4 -> estimate 0.64 vs market 0.55 -> edge 9
        engine = SignalEngine(min_edge_pct=5.0)
        signal = engine.score(0.1, None, _trend(), _quote(up=0.55, down=0.45))
        assert signal.estimated_probability == pytest.approx(0.64)
        assert signal.edge == pytest.approx(9.0)
        assert signal.fires is True

    def test_low_edge(self) -> None:
        engine = SignalEngine()
        signal = engine.score(0.1, None, _trend(), _quote(up=0.63, down=0.37))
        assert signal.edge == pytest.approx(1.0)
        assert signal.reason is SignalReason.LOW_EDGE
        assert signal.fires is False
        assert "< min 2.0%" in signal.detail

    def test_momentum_within_threshold_is_neutral(self) -> None:
        engine = SignalEngine(momentum_threshold_pct=0.05)
        signal = engine.score(0.05, 0.1, _trend(TrendDirection.STRONG_UP), _quote())
        assert signal.direction is Direction.NEUTRAL
        assert signal.estimated_probability == 0.5
        assert signal.market_probability == 0.5
        assert signal.edge == 0.0
        assert signal.reason is SignalReason.DIRECTION_NEUTRAL
        assert "within threshold" in signal.detail

    def test_missing_momentum_reports_insufficient_data(self) -> None:
        signal = SignalEngine().score(None, None, _trend(), _quote())
        assert signal.confidence == 0.0
        assert signal.reason is SignalReason.DIRECTION_NEUTRAL
        assert signal.detail == "insufficient price data"

    def test_market_not_found_takes_precedence(self) -> None:
        engine = SignalEngine()
        signal = engine.score(0.5, 0.5, _trend(TrendDirection.STRONG_UP), _quote(found=False))
        assert signal.reason is SignalReason.MARKET_NOT_FOUND
        assert signal.fires is False

    def test_momentum_alone_meets_minimum_confidence(self) -> None:
        # momentum alone yields exactly the 0.3 minimum
        signal = SignalEngine(min_edge_pct=0.0).score(0.1, None, _trend(), _quote(up=0.5, down=0.5))
        assert signal.confidence == pytest.approx(0.3)
        assert signal.reason is SignalReason.ELIGIBLE


class TestEvaluate:
    def test_rising_window_fires_up(self, rising_analytics: PriceAnalytics) -> None:
        signal = SignalEngine().evaluate(rising_analytics, _quote(), now=NOW)
        assert signal.direction is Direction.UP
        assert signal.trend.direction is TrendDirection.STRONG_UP
        assert signal.momentum is not None and signal.momentum > 0.05
        assert signal.price == rising_analytics.current_price()
        assert signal.fires is True

    def test_flat_window_is_neutral(self, flat_analytics: PriceAnalytics) -> None:
        signal = SignalEngine().evaluate(flat_analytics, _quote(), now=NOW)
        assert signal.direction is Direction.NEUTRAL
        assert signal.momentum == 0.0
        assert signal.fires is False


class TestSignalModel:
    def test_confidence_upper_bound(self) -> None:
        with pytest.raises(ValidationError):
            Signal(confidence=0.75)

    def test_probability_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Signal(estimated_probability=0.8)


_trend_directions = st.sampled_from(list(TrendDirection))
_optional_pct = st.one_of(
    st.none(),
    st.floats(min_value=-5.0, max_value=5.0, allow_nan=False, allow_infinity=False),
)
_prob = st.floats(min_value=0.01, max_value=0.99, allow_nan=False)


class TestScoreProperties:
    @given(
        momentum=_optional_pct,
        volatility=st.one_of(st.none(), st.floats(min_value=0.0, max_value=5.0, allow_nan=False)),
        trend=_trend_directions,
        up=_prob,
        down=_prob,
    )
    @settings(max_examples=200)
    def test_bounds(
        self,
        momentum: float | None,
        volatility: float | None,
        trend: TrendDirection,
        up: float,
        down: float,
    ) -> None:
        signal = SignalEngine().score(momentum, volatility, _trend(trend), _quote(up=up, down=down))
        assert 0.0 <= signal.confidence <= 0.7
        assert 0.5 <= signal.estimated_probability <= 0.75
        if signal.fires:
            assert signal.direction is not Direction.NEUTRAL
            assert signal.edge >= 2.0

    @given(
        momentum=st.floats(min_value=0.06, max_value=5.0, allow_nan=False),
        up=_prob,
        down=_prob,
    )
    @settings(max_examples=100)
    def test_confidence_monotone_in_satisfied_conditions(
        self, momentum: float, up: float, down: float,
    ) -> None:
        engine = SignalEngine()
        quote = _quote(up=up, down=down)
        base = engine.score(momentum, None, _trend(), quote).confidence
        with_vol = engine.score(momentum, 1.0, _trend(), quote).confidence
        with_trend = engine.score(momentum, 1.0, _trend(TrendDirection.STRONG_UP), quote).confidence
        assert base <= with_vol <= with_trend
        assert with_trend - base == pytest.approx(0.3)
