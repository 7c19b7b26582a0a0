"""Protocol interfaces for the trading agent's collaborators.

The decision engine and orchestrator code against these contracts; the
concrete adapters live in ``updown_bot.data`` and ``updown_bot.execution``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from updown_bot.engine.period_resolver import PeriodResolver
    from updown_bot.models.market import FeedHealth, TradingPeriod, VenueQuote
    from updown_bot.models.order import OrderResult


@runtime_checkable
class PriceFeedSource(Protocol):
    """Streams spot trade prices into a PriceAnalytics window."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    @property
    def is_connected(self) -> bool: ...

    @property
    def health(self) -> FeedHealth: ...


@runtime_checkable
class MarketInfoService(Protocol):
    """Looks up venue quotes for trading periods.

    A missing market is reported as ``VenueQuote(found=False)``, never raised.
    """

    async def lookup(self, period: TradingPeriod) -> VenueQuote: ...

    async def current_quote(self, resolver: PeriodResolver, now: float) -> VenueQuote: ...


@runtime_checkable
class OrderExecutionService(Protocol):
    """Places buy orders on the venue (live or simulated)."""

    async def submit(
        self,
        token_ref: str,
        price: Decimal,
        size: Decimal,
        *,
        tick_size: str = "0.01",
        neg_risk: bool = False,
    ) -> OrderResult: ...

    async def get_balance(self) -> Decimal | None: ...

    @property
    def mode(self) -> str: ...
