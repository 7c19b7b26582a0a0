"""Polymarket CLOB live order submitter.

Uses py-clob-client to sign and submit GTC buy orders on Polygon
(chain_id=137). Credentials come from ``updown_bot.config.settings``;
nothing is ever hardcoded.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import TYPE_CHECKING, Any

from updown_bot.core.logging import get_logger, log_order_event
from updown_bot.models.order import OrderRequest, OrderResult, OrderType

if TYPE_CHECKING:
    from updown_bot.config.settings import Credentials

logger = get_logger(__name__)

_POLYGON_CHAIN_ID = 137
_USDC_DECIMALS = Decimal("1000000")


def _mask_secret(value: str) -> str:
    """Mask all but the last 4 characters of a secret."""
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]


def _clob_order_type(order_type: OrderType) -> Any:
    """Map internal OrderType to py-clob-client OrderType.

    Import is deferred so the module loads without the CLOB client's
    dependency chain (simulation mode, tests).
    """
    from py_clob_client.clob_types import OrderType as ClobOrderType

    if order_type == OrderType.FOK:
        return ClobOrderType.FOK
    return ClobOrderType.GTC


def _create_clob_client(
    host: str,
    key: str,
    chain_id: int,
    funder: str | None,
    signature_type: int,
) -> Any:
    """Create a ClobClient instance with deferred import."""
    from py_clob_client.client import ClobClient

    return ClobClient(
        host=host,
        key=key,
        chain_id=chain_id,
        funder=funder,
        signature_type=signature_type,
    )


def _create_order_args(token_id: str, price: float, size: float, side: str) -> Any:
    """Create OrderArgs with deferred import."""
    from py_clob_client.clob_types import OrderArgs

    return OrderArgs(token_id=token_id, price=price, size=size, side=side)


def _create_order_options(tick_size: str, neg_risk: bool) -> Any:
    from py_clob_client.clob_types import PartialCreateOrderOptions

    return PartialCreateOrderOptions(tick_size=tick_size, neg_risk=neg_risk)


def _collateral_params() -> Any:
    from py_clob_client.clob_types import AssetType, BalanceAllowanceParams

    return BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)


class ClobOrderExecutor:
    """Live GTC buy orders on the Polymarket CLOB.

    Implements the OrderExecutionService protocol. Bet sizes are in USDC
    and converted to outcome shares at the limit price before signing.
    """

    def __init__(
        self,
        credentials: Credentials,
        clob_url: str = "https://clob.polymarket.com",
        chain_id: int = _POLYGON_CHAIN_ID,
        *,
        _clob_client: Any | None = None,
    ) -> None:
        logger.info(
            "clob_executor.init",
            clob_url=clob_url,
            chain_id=chain_id,
            private_key=_mask_secret(credentials.private_key),
            funder_address=_mask_secret(credentials.funder_address),
            signature_type=credentials.signature_type,
        )

        if _clob_client is not None:
            self._clob_client = _clob_client
        else:
            self._clob_client = _create_clob_client(
                host=clob_url,
                key=credentials.private_key,
                chain_id=chain_id,
                funder=credentials.funder_address or None,
                signature_type=credentials.signature_type,
            )
            self._clob_client.set_api_creds(
                self._clob_client.create_or_derive_api_creds(),
            )

    @property
    def mode(self) -> str:
        return "live"

    async def submit(
        self,
        token_ref: str,
        price: Decimal,
        size: Decimal,
        *,
        tick_size: str = "0.01",
        neg_risk: bool = False,
    ) -> OrderResult:
        """Sign and post a GTC buy. Exchange and network failures are returned."""
        request = OrderRequest(
            token_ref=token_ref,
            price=price,
            size=size,
            tick_size=tick_size,
            neg_risk=neg_risk,
        )
        shares = request.shares.quantize(Decimal("0.01"), rounding=ROUND_DOWN)
        log_order_event(
            "live_submit", None,
            token_ref=token_ref[:20], price=str(price), size=str(size),
            shares=str(shares), tick_size=tick_size, neg_risk=neg_risk,
        )

        if shares <= 0:
            log_order_event("live_rejected", None, reason="size below one share tick")
            return OrderResult.failed("size below one share tick")

        try:
            order_args = _create_order_args(
                token_id=token_ref,
                price=float(price),
                size=float(shares),
                side=request.side.value,
            )
            signed_order = self._clob_client.create_order(
                order_args, _create_order_options(tick_size, neg_risk),
            )
            response: Any = self._clob_client.post_order(
                signed_order, _clob_order_type(request.order_type),
            )
        except Exception as exc:
            logger.error("live_order_failed", token_ref=token_ref[:20], error=str(exc))
            log_order_event("live_rejected", None, reason=str(exc))
            return OrderResult.failed(str(exc))

        if not isinstance(response, dict):
            logger.error("live_order_unexpected_response", response=str(response)[:200])
            return OrderResult.failed(f"unexpected response type: {type(response).__name__}")

        order_id = response.get("orderID") or response.get("id")
        if not order_id:
            error_msg = str(response.get("errorMsg") or response.get("error") or "unknown response")
            logger.error("live_order_rejected_by_exchange", response=str(response)[:200])
            log_order_event("live_rejected", None, reason=error_msg)
            return OrderResult.failed(error_msg)

        log_order_event("live_submitted", str(order_id), token_ref=token_ref[:20])
        return OrderResult(success=True, order_id=str(order_id))

    async def get_balance(self) -> Decimal | None:
        """USDC collateral balance, or None when it cannot be fetched."""
        try:
            resp = self._clob_client.get_balance_allowance(_collateral_params())
        except Exception as exc:
            logger.error("live_balance_fetch_failed", error=str(exc)[:200])
            return None

        raw = resp.get("balance") if isinstance(resp, dict) else None
        if raw is None:
            return None
        balance = Decimal(str(raw)) / _USDC_DECIMALS
        logger.info("live_balance_fetched", balance=str(balance))
        return balance
