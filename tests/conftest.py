"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path  # noqa: TCH003

import pytest

from updown_bot.config.loader import ConfigLoader
from updown_bot.engine.price_analytics import PriceAnalytics
from updown_bot.models.market import VenueQuote

# 2023-11-14 22:13:20 UTC; the enclosing period starts at 22:00:00.
NOW = 1_700_000_000.0
PERIOD_START = 1_699_999_200
PERIOD_ID = f"btc-updown-15m-{PERIOD_START}"
NEXT_PERIOD_ID = f"btc-updown-15m-{PERIOD_START + 900}"


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """Create a temp config directory with default.toml."""
    config = tmp_path / "config"
    config.mkdir()

    default_toml = config / "default.toml"
    default_toml.write_text(
        """\
[strategy]
asset = "btc"
momentum_threshold_pct = 0.05
momentum_window_seconds = 60
min_edge_pct = 2.0
main_bet_size = 5
cooldown_seconds = 30
simulation_mode = true

[hedge]
enabled = true
price_threshold = 0.35
bet_size = 2

[risk]
max_bets_per_market = 2
no_trade_last_minutes = 2
max_daily_loss = 50
max_consecutive_losses = 5

[bot]
tick_interval_seconds = 1.0
status_interval_seconds = 3.0
warmup_seconds = 60
error_pause_seconds = 5.0

[binance]
ws_base_url = "wss://stream.binance.com:9443/ws"
max_reconnect_attempts = 10

[polymarket]
clob_url = "https://clob.polymarket.com"
gamma_url = "https://gamma-api.polymarket.com"
chain_id = 137
"""
    )
    return config


@pytest.fixture()
def config_loader(config_dir: Path) -> ConfigLoader:
    """ConfigLoader with test config."""
    loader = ConfigLoader(config_dir=config_dir, env="test")
    loader.load()
    return loader


def make_quote(
    up: float = 0.45,
    down: float = 0.55,
    period_id: str = PERIOD_ID,
    found: bool = True,
    active: bool = True,
) -> VenueQuote:
    return VenueQuote(
        period_id=period_id,
        up_implied_prob=up,
        down_implied_prob=down,
        found=found,
        active=active,
        up_token_ref="up-token-1" if found else "",
        down_token_ref="down-token-1" if found else "",
        question="Bitcoin Up or Down - 15 minutes",
    )


@pytest.fixture()
def quote() -> VenueQuote:
    return make_quote()


@pytest.fixture()
def rising_analytics() -> PriceAnalytics:
    """Five minutes of a steady climb ending at NOW (+0.3% over 60s)."""
    analytics = PriceAnalytics()
    for i in range(301):
        ts = NOW - 300 + i
        analytics.ingest(50_000.0 * (1 + 0.00005 * i), ts)
    return analytics


@pytest.fixture()
def flat_analytics() -> PriceAnalytics:
    analytics = PriceAnalytics()
    for i in range(301):
        analytics.ingest(50_000.0, NOW - 300 + i)
    return analytics
