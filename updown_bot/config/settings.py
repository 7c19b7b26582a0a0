"""Typed strategy settings and credential loading."""

from __future__ import annotations

import os
import re
from decimal import Decimal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from updown_bot.config.loader import ConfigError, ConfigLoader

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


class StrategySettings(BaseModel):
    """Every knob of the decision engine, resolved from config."""

    asset: str = "btc"
    momentum_threshold_pct: float = 0.05
    momentum_window_seconds: int = 60
    min_edge_pct: float = 2.0
    main_bet_size: Decimal = Decimal("5")
    cooldown_seconds: float = 30.0
    simulation_mode: bool = True

    enable_hedging: bool = True
    hedge_price_threshold: float = 0.35
    hedge_bet_size: Decimal = Decimal("2")

    max_bets_per_market: int = Field(default=2, ge=1)
    no_trade_last_minutes: float = 2.0
    max_daily_loss: Decimal = Decimal("50")
    max_consecutive_losses: int = Field(default=5, ge=1)

    model_config = {"frozen": True}

    @classmethod
    def from_loader(cls, config: ConfigLoader) -> StrategySettings:
        """Build settings from a loaded ConfigLoader, falling back to defaults."""
        defaults = cls()
        return cls(
            asset=str(config.get("strategy.asset", defaults.asset)).lower(),
            momentum_threshold_pct=float(
                config.get("strategy.momentum_threshold_pct", defaults.momentum_threshold_pct)
            ),
            momentum_window_seconds=int(
                config.get("strategy.momentum_window_seconds", defaults.momentum_window_seconds)
            ),
            min_edge_pct=float(config.get("strategy.min_edge_pct", defaults.min_edge_pct)),
            main_bet_size=Decimal(
                str(config.get("strategy.main_bet_size", defaults.main_bet_size))
            ),
            cooldown_seconds=float(
                config.get("strategy.cooldown_seconds", defaults.cooldown_seconds)
            ),
            simulation_mode=bool(
                config.get("strategy.simulation_mode", defaults.simulation_mode)
            ),
            enable_hedging=bool(config.get("hedge.enabled", defaults.enable_hedging)),
            hedge_price_threshold=float(
                config.get("hedge.price_threshold", defaults.hedge_price_threshold)
            ),
            hedge_bet_size=Decimal(str(config.get("hedge.bet_size", defaults.hedge_bet_size))),
            max_bets_per_market=int(
                config.get("risk.max_bets_per_market", defaults.max_bets_per_market)
            ),
            no_trade_last_minutes=float(
                config.get("risk.no_trade_last_minutes", defaults.no_trade_last_minutes)
            ),
            max_daily_loss=Decimal(
                str(config.get("risk.max_daily_loss", defaults.max_daily_loss))
            ),
            max_consecutive_losses=int(
                config.get("risk.max_consecutive_losses", defaults.max_consecutive_losses)
            ),
        )


class Credentials(BaseModel):
    """Wallet credentials used to sign orders on the CLOB."""

    private_key: str
    funder_address: str
    signature_type: int

    model_config = {"frozen": True}


def detect_signature_type(private_key: str) -> int:
    """Return 0 for raw hex (MetaMask-style) keys, 1 for email/Magic wallets."""
    key = private_key.strip()
    if key.startswith("0x") or _HEX_KEY.match(key):
        return 0
    return 1


def load_credentials() -> Credentials:
    """Read wallet credentials from the environment (and a local .env file).

    Raises:
        ConfigError: If POLYMARKET_PRIVATE_KEY or POLYMARKET_FUNDER_ADDRESS is unset.
    """
    load_dotenv()
    private_key = os.environ.get("POLYMARKET_PRIVATE_KEY", "").strip()
    funder_address = os.environ.get("POLYMARKET_FUNDER_ADDRESS", "").strip()

    missing = []
    if not private_key:
        missing.append("POLYMARKET_PRIVATE_KEY")
    if not funder_address:
        missing.append("POLYMARKET_FUNDER_ADDRESS")
    if missing:
        msg = f"Missing required credentials: {', '.join(missing)}"
        raise ConfigError(msg)

    return Credentials(
        private_key=private_key,
        funder_address=funder_address,
        signature_type=detect_signature_type(private_key),
    )
