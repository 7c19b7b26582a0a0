"""Simulated executor: logs would-be orders without touching the venue."""

from __future__ import annotations

import itertools
from collections import deque
from decimal import Decimal

from updown_bot.core.logging import get_logger, log_order_event
from updown_bot.models.order import OrderRequest, OrderResult

logger = get_logger(__name__)

MAX_RECORDED_ORDERS = 500


class SimulatedExecutor:
    """Implements the OrderExecutionService protocol with mode='simulation'.

    Every submission succeeds with a synthetic ``sim-N`` order id. Only the
    most recent ``max_recorded_orders`` requests are kept for inspection.
    """

    def __init__(
        self,
        balance: Decimal | None = None,
        max_recorded_orders: int = MAX_RECORDED_ORDERS,
    ) -> None:
        self._balance = balance
        self._counter = itertools.count(1)
        self._orders: deque[OrderRequest] = deque(maxlen=max_recorded_orders)

    @property
    def mode(self) -> str:
        return "simulation"

    @property
    def orders(self) -> list[OrderRequest]:
        return list(self._orders)

    async def submit(
        self,
        token_ref: str,
        price: Decimal,
        size: Decimal,
        *,
        tick_size: str = "0.01",
        neg_risk: bool = False,
    ) -> OrderResult:
        request = OrderRequest(
            token_ref=token_ref,
            price=price,
            size=size,
            tick_size=tick_size,
            neg_risk=neg_risk,
        )
        self._orders.append(request)
        order_id = f"sim-{next(self._counter)}"
        log_order_event(
            "simulated", order_id,
            token_ref=token_ref[:20], price=str(price), size=str(size),
            shares=str(request.shares.quantize(Decimal("0.01"))),
        )
        return OrderResult(success=True, order_id=order_id)

    async def get_balance(self) -> Decimal | None:
        return self._balance
