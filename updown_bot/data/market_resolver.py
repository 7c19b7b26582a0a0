"""Polymarket Gamma lookup for 15-minute up/down markets."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx

from updown_bot.core.logging import get_logger
from updown_bot.models.market import VenueQuote

if TYPE_CHECKING:
    from updown_bot.engine.period_resolver import PeriodResolver
    from updown_bot.models.market import TradingPeriod

log = get_logger(__name__)

GAMMA_API_URL = "https://gamma-api.polymarket.com"
DEFAULT_TICK_SIZE = "0.01"


def _decode_list(raw: Any) -> list[Any]:
    """Gamma returns some array fields as JSON-encoded strings."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return []
    return list(raw) if isinstance(raw, list) else []


def _prob(values: list[Any], index: int) -> float:
    try:
        return float(values[index])
    except (IndexError, TypeError, ValueError):
        return 0.5


def parse_market(period_id: str, market: dict[str, Any]) -> VenueQuote:
    """Build a quote from a Gamma market payload.

    Outcome index 0 is UP, index 1 is DOWN. Missing prices default to 0.5.
    """
    tokens = _decode_list(market.get("clobTokenIds"))
    prices = _decode_list(market.get("outcomePrices"))
    return VenueQuote(
        period_id=period_id,
        up_implied_prob=_prob(prices, 0),
        down_implied_prob=_prob(prices, 1),
        found=True,
        up_token_ref=str(tokens[0]) if len(tokens) > 0 else "",
        down_token_ref=str(tokens[1]) if len(tokens) > 1 else "",
        active=bool(market.get("active")) and not bool(market.get("closed")),
        question=market.get("question", ""),
        tick_size=str(market.get("minimumTickSize") or DEFAULT_TICK_SIZE),
        neg_risk=bool(market.get("negRisk", False)),
    )


class GammaMarketClient:
    """Resolve period ids to venue quotes via the Gamma slug endpoint.

    Implements the MarketInfoService protocol from updown_bot.interfaces.
    """

    def __init__(self, gamma_url: str = GAMMA_API_URL, timeout: float = 10.0) -> None:
        self._gamma_url = gamma_url.rstrip("/")
        self._timeout = timeout

    async def lookup(self, period: TradingPeriod) -> VenueQuote:
        """Fetch the market for ``period``; not-found is a normal outcome."""
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                resp = await client.get(f"{self._gamma_url}/markets/slug/{period.id}")
                if resp.status_code == 404:
                    log.debug("market_resolver.not_found", period_id=period.id)
                    return VenueQuote.not_found(period.id)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning("market_resolver.lookup_failed", period_id=period.id, exc_info=True)
            return VenueQuote.not_found(period.id)

        if not isinstance(payload, dict) or not payload:
            return VenueQuote.not_found(period.id)

        quote = parse_market(period.id, payload)
        log.debug(
            "market_resolver.resolved",
            period_id=period.id,
            up=quote.up_implied_prob,
            down=quote.down_implied_prob,
            active=quote.active,
        )
        return quote

    async def current_quote(self, resolver: PeriodResolver, now: float) -> VenueQuote:
        """Quote for the current period, falling back to the next one.

        The fallback is used when the current market is missing or no
        longer active.
        """
        current, upcoming = resolver.current_and_next(now)
        quote = await self.lookup(current)
        if quote.found and quote.active:
            return quote

        fallback = await self.lookup(upcoming)
        if fallback.found and fallback.active:
            log.info("market_resolver.using_next_period", period_id=upcoming.id)
            return fallback
        return VenueQuote.not_found(current.id)
