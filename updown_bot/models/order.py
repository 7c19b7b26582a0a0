"""Order request and execution result models."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    GTC = "GTC"
    FOK = "FOK"


class OrderRequest(BaseModel):
    """A limit order against one outcome token."""

    token_ref: str
    price: Decimal
    size: Decimal
    side: OrderSide = OrderSide.BUY
    order_type: OrderType = OrderType.GTC
    tick_size: str = "0.01"
    neg_risk: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def shares(self) -> Decimal:
        """Outcome shares bought for ``size`` USDC at ``price``."""
        if self.price == 0:
            return Decimal("0")
        return self.size / self.price

    model_config = {"frozen": True}


class OrderResult(BaseModel):
    """Outcome of one submission. Failures are values, not exceptions."""

    success: bool
    order_id: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> OrderResult:
        return cls(success=False, error=error)

    model_config = {"frozen": True}
