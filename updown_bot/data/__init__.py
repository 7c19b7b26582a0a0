"""Data adapters: reference price feed and venue market lookup."""

from __future__ import annotations

from updown_bot.data.binance_ws import BinanceTradeFeed
from updown_bot.data.market_resolver import GammaMarketClient

__all__ = [
    "BinanceTradeFeed",
    "GammaMarketClient",
]
