"""Tests for GammaMarketClient: slug lookup, payload parsing and fallback."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from updown_bot.data.market_resolver import GammaMarketClient, parse_market
from updown_bot.engine.period_resolver import PeriodResolver

NOW = 1_700_000_000.0
CURRENT_ID = "btc-updown-15m-1699999200"
NEXT_ID = "btc-updown-15m-1700000100"


def _gamma_market(
    active: bool = True,
    closed: bool = False,
    encoded: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    tokens = ["111", "222"]
    prices = ["0.62", "0.38"]
    market = {
        "question": "Bitcoin Up or Down - November 14, 5:00PM-5:15PM ET",
        "clobTokenIds": json.dumps(tokens) if encoded else tokens,
        "outcomePrices": json.dumps(prices) if encoded else prices,
        "active": active,
        "closed": closed,
        "minimumTickSize": "0.001",
        "negRisk": False,
    }
    market.update(extra)
    return market


def _response(status: int, slug: str, payload: Any = None) -> httpx.Response:
    return httpx.Response(
        status,
        json=payload if payload is not None else {},
        request=httpx.Request("GET", f"https://gamma-api.polymarket.com/markets/slug/{slug}"),
    )


def _mock_client(responses: dict[str, httpx.Response]) -> AsyncMock:
    async def get(url: str, **kwargs: Any) -> httpx.Response:
        slug = url.rsplit("/", 1)[-1]
        return responses.get(slug, _response(404, slug))

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get = AsyncMock(side_effect=get)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestParseMarket:
    def test_json_encoded_fields(self) -> None:
        quote = parse_market(CURRENT_ID, _gamma_market())
        assert quote.found is True
        assert quote.active is True
        assert quote.up_token_ref == "111"
        assert quote.down_token_ref == "222"
        assert quote.up_implied_prob == 0.62
        assert quote.down_implied_prob == 0.38
        assert quote.tick_size == "0.001"

    def test_list_fields(self) -> None:
        quote = parse_market(CURRENT_ID, _gamma_market(encoded=False))
        assert quote.up_token_ref == "111"
        assert quote.down_implied_prob == 0.38

    def test_missing_prices_default_to_even(self) -> None:
        market = _gamma_market()
        del market["outcomePrices"]
        quote = parse_market(CURRENT_ID, market)
        assert quote.up_implied_prob == 0.5
        assert quote.down_implied_prob == 0.5

    def test_closed_market_is_inactive(self) -> None:
        assert parse_market(CURRENT_ID, _gamma_market(closed=True)).active is False

    def test_defaults_tick_size(self) -> None:
        market = _gamma_market()
        del market["minimumTickSize"]
        assert parse_market(CURRENT_ID, market).tick_size == "0.01"

    def test_neg_risk_flag(self) -> None:
        assert parse_market(CURRENT_ID, _gamma_market(negRisk=True)).neg_risk is True


class TestLookup:
    @pytest.mark.asyncio()
    async def test_found(self) -> None:
        client = GammaMarketClient()
        mock = _mock_client({CURRENT_ID: _response(200, CURRENT_ID, _gamma_market())})
        period = PeriodResolver("btc").current_and_next(NOW)[0]

        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await client.lookup(period)

        assert quote.found is True
        assert quote.period_id == CURRENT_ID
        mock.get.assert_awaited_once_with(
            f"https://gamma-api.polymarket.com/markets/slug/{CURRENT_ID}",
        )

    @pytest.mark.asyncio()
    async def test_not_found(self) -> None:
        client = GammaMarketClient()
        period = PeriodResolver("btc").current_and_next(NOW)[0]

        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=_mock_client({})):
            quote = await client.lookup(period)

        assert quote.found is False
        assert quote.up_implied_prob == 0.5

    @pytest.mark.asyncio()
    async def test_http_error_is_not_found(self) -> None:
        client = GammaMarketClient()
        period = PeriodResolver("btc").current_and_next(NOW)[0]
        mock = _mock_client({CURRENT_ID: _response(500, CURRENT_ID)})

        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await client.lookup(period)

        assert quote.found is False

    @pytest.mark.asyncio()
    async def test_network_error_is_not_found(self) -> None:
        client = GammaMarketClient()
        period = PeriodResolver("btc").current_and_next(NOW)[0]
        mock = _mock_client({})
        mock.get = AsyncMock(side_effect=httpx.ConnectError("boom"))

        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await client.lookup(period)

        assert quote.found is False


class TestCurrentQuote:
    @pytest.mark.asyncio()
    async def test_prefers_current_period(self) -> None:
        mock = _mock_client({
            CURRENT_ID: _response(200, CURRENT_ID, _gamma_market()),
            NEXT_ID: _response(200, NEXT_ID, _gamma_market()),
        })
        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await GammaMarketClient().current_quote(PeriodResolver("btc"), NOW)
        assert quote.period_id == CURRENT_ID

    @pytest.mark.asyncio()
    async def test_falls_back_to_next_when_current_missing(self) -> None:
        mock = _mock_client({NEXT_ID: _response(200, NEXT_ID, _gamma_market())})
        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await GammaMarketClient().current_quote(PeriodResolver("btc"), NOW)
        assert quote.found is True
        assert quote.period_id == NEXT_ID

    @pytest.mark.asyncio()
    async def test_falls_back_to_next_when_current_closed(self) -> None:
        mock = _mock_client({
            CURRENT_ID: _response(200, CURRENT_ID, _gamma_market(closed=True)),
            NEXT_ID: _response(200, NEXT_ID, _gamma_market()),
        })
        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=mock):
            quote = await GammaMarketClient().current_quote(PeriodResolver("btc"), NOW)
        assert quote.period_id == NEXT_ID

    @pytest.mark.asyncio()
    async def test_neither_available(self) -> None:
        with patch("updown_bot.data.market_resolver.httpx.AsyncClient", return_value=_mock_client({})):
            quote = await GammaMarketClient().current_quote(PeriodResolver("btc"), NOW)
        assert quote.found is False
        assert quote.period_id == CURRENT_ID
