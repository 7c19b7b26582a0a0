"""Tests for order models."""

from __future__ import annotations

from decimal import Decimal

from updown_bot.models.order import OrderRequest, OrderResult, OrderSide, OrderType


class TestOrderRequest:
    def test_defaults(self) -> None:
        request = OrderRequest(token_ref="tok", price=Decimal("0.46"), size=Decimal("5"))
        assert request.side is OrderSide.BUY
        assert request.order_type is OrderType.GTC
        assert request.tick_size == "0.01"
        assert request.neg_risk is False

    def test_shares(self) -> None:
        request = OrderRequest(token_ref="tok", price=Decimal("0.25"), size=Decimal("5"))
        assert request.shares == Decimal("20")

    def test_zero_price_has_no_shares(self) -> None:
        request = OrderRequest(token_ref="tok", price=Decimal("0"), size=Decimal("5"))
        assert request.shares == Decimal("0")


class TestOrderResult:
    def test_failed(self) -> None:
        result = OrderResult.failed("rejected")
        assert result.success is False
        assert result.order_id is None
        assert result.error == "rejected"
