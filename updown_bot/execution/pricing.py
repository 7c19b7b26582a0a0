"""Entry price policy for limit buys."""

from __future__ import annotations

from decimal import Decimal

PRICE_OFFSET = Decimal("0.01")
MAX_ENTRY_PRICE = Decimal("0.95")


def entry_price(quote_price: float | Decimal) -> Decimal:
    """Quoted side price plus one cent, capped at 0.95."""
    price = Decimal(str(quote_price)) + PRICE_OFFSET
    return min(price, MAX_ENTRY_PRICE).quantize(Decimal("0.01"))
