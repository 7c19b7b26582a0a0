"""Bot orchestrator: wires feed, engines and execution into one loop.

Each cycle runs sequentially: refresh the venue quote, score the signal,
ask the position/risk engine for a decision, submit, then record the bet.
"""

from __future__ import annotations

import asyncio
import signal
import time
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from updown_bot.config.loader import ConfigLoader
from updown_bot.config.settings import StrategySettings, load_credentials
from updown_bot.core.logging import get_logger
from updown_bot.engine.period_resolver import PeriodResolver, TimeRemaining
from updown_bot.engine.price_analytics import PriceAnalytics
from updown_bot.engine.signal_engine import SignalEngine
from updown_bot.execution.pricing import entry_price
from updown_bot.models.market import FeedHealth, VenueQuote
from updown_bot.models.position import Decision, Position, RiskState
from updown_bot.models.signal import Signal
from updown_bot.risk.position_risk import PositionRiskEngine, SkipReason

if TYPE_CHECKING:
    from collections.abc import Callable

    from updown_bot.interfaces import MarketInfoService, OrderExecutionService, PriceFeedSource

logger = get_logger(__name__)

COOLDOWN_REASON = "cooldown"
MISSING_TOKEN_REASON = "missing_token_ref"

REQUIRED_CONFIG_KEYS = [
    "strategy.asset",
    "strategy.main_bet_size",
    "strategy.min_edge_pct",
    "risk.max_daily_loss",
    "risk.max_consecutive_losses",
]


@dataclass
class BotStats:
    opportunities: int = 0
    trades: int = 0
    successful_orders: int = 0
    failed_orders: int = 0
    skipped_decisions: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class StatusSnapshot(BaseModel):
    """Point-in-time view of the agent for status reporting."""

    signal: Signal | None = None
    position: Position | None = None
    risk_state: RiskState
    reason: str = ""
    stats: dict[str, int]
    feed_health: FeedHealth
    quote: VenueQuote | None = None
    time_remaining: str = ""

    model_config = {"frozen": True}


class BotOrchestrator:
    """Main loop: price window -> signal -> risk decision -> execution."""

    def __init__(
        self,
        settings: StrategySettings,
        analytics: PriceAnalytics,
        feed: PriceFeedSource,
        market_info: MarketInfoService,
        executor: OrderExecutionService,
        *,
        risk_engine: PositionRiskEngine | None = None,
        tick_interval: float = 1.0,
        status_interval: float = 3.0,
        warmup_seconds: float = 60.0,
        error_pause_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._analytics = analytics
        self._feed = feed
        self._market_info = market_info
        self._executor = executor
        self._clock = clock
        self._tick_interval = tick_interval
        self._status_interval = status_interval
        self._warmup_seconds = warmup_seconds
        self._error_pause = error_pause_seconds

        self._resolver = PeriodResolver(settings.asset)
        self._signal_engine = SignalEngine(
            momentum_threshold_pct=settings.momentum_threshold_pct,
            momentum_window_seconds=settings.momentum_window_seconds,
            min_edge_pct=settings.min_edge_pct,
        )
        self._risk = risk_engine or PositionRiskEngine(
            main_bet_size=settings.main_bet_size,
            max_bets_per_market=settings.max_bets_per_market,
            enable_hedging=settings.enable_hedging,
            hedge_price_threshold=settings.hedge_price_threshold,
            hedge_bet_size=settings.hedge_bet_size,
            no_trade_last_minutes=settings.no_trade_last_minutes,
            max_daily_loss=settings.max_daily_loss,
            max_consecutive_losses=settings.max_consecutive_losses,
        )

        self.stats = BotStats()
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._active_period_id: str | None = None
        self._last_bet_time: float | None = None
        self._last_status_time = 0.0
        self._last_signal: Signal | None = None
        self._last_quote: VenueQuote | None = None
        self._last_reason = ""
        self._time_remaining = TimeRemaining.EXPIRED

    @property
    def risk_engine(self) -> PositionRiskEngine:
        return self._risk

    @property
    def active_period_id(self) -> str | None:
        return self._active_period_id

    async def start(self) -> int:
        """Connect the feed, warm up, and run until a shutdown signal."""
        logger.info(
            "bot_start",
            mode=self._executor.mode,
            asset=self._settings.asset,
            min_edge=self._settings.min_edge_pct,
            bet_size=str(self._settings.main_bet_size),
            hedging=self._settings.enable_hedging,
        )
        self._running = True

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._request_shutdown, sig)

        try:
            await self._feed.connect()
            await self._check_balance()

            logger.info("bot_warmup", seconds=self._warmup_seconds)
            if await self._wait_or_shutdown(self._warmup_seconds):
                return 0

            logger.info("bot_ready", mode=self._executor.mode)
            await self._main_loop()
        except asyncio.CancelledError:
            logger.info("bot_cancelled")
        finally:
            await self._cleanup()

        return 0

    def _request_shutdown(self, sig: signal.Signals) -> None:
        """Handle OS signal for graceful shutdown."""
        logger.info("shutdown_requested", signal=sig.name)
        self._running = False
        self._shutdown_event.set()

    async def _wait_or_shutdown(self, timeout: float) -> bool:
        """Sleep up to ``timeout``; True if shutdown was requested meanwhile."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def _main_loop(self) -> None:
        while self._running:
            pause = self._tick_interval
            try:
                await self.run_cycle()
                self._maybe_log_status()
            except Exception:
                logger.exception("cycle_error")
                pause = self._error_pause

            if await self._wait_or_shutdown(pause):
                break

    async def _check_balance(self) -> None:
        balance = await self._executor.get_balance()
        if balance is None:
            return
        if balance < self._settings.main_bet_size:
            logger.warning(
                "balance_below_bet_size",
                balance=str(balance),
                bet_size=str(self._settings.main_bet_size),
            )

    async def run_cycle(self, now: float | None = None) -> Decision:
        """One evaluation cycle. Returns the risk engine's decision."""
        if now is None:
            now = self._clock()

        self._risk.advance_clock(now)

        current, upcoming = self._resolver.current_and_next(now)
        self._roll_period(current.id, upcoming.id)

        quote = await self._market_info.current_quote(self._resolver, now)
        self._last_quote = quote

        signal_ = self._signal_engine.evaluate(self._analytics, quote, now=now)
        self._last_signal = signal_
        if signal_.fires:
            self.stats.opportunities += 1

        period = upcoming if quote.period_id == upcoming.id else current
        self._time_remaining = self._resolver.time_remaining(period.end_epoch, now)
        decision = self._risk.evaluate(signal_, quote, self._time_remaining.seconds)

        if not decision.is_bet:
            self.stats.skipped_decisions += 1
            self._last_reason = decision.reason
            if decision.reason == SkipReason.NO_ELIGIBLE_ACTION.value and not signal_.fires:
                self._last_reason = signal_.detail
            return decision

        since_last_bet = None if self._last_bet_time is None else now - self._last_bet_time
        if since_last_bet is not None and since_last_bet < self._settings.cooldown_seconds:
            self.stats.skipped_decisions += 1
            self._last_reason = COOLDOWN_REASON
            logger.debug(
                "bet_cooldown",
                remaining_s=round(self._settings.cooldown_seconds - since_last_bet, 1),
            )
            return Decision.skip(COOLDOWN_REASON)

        logger.info(
            "bet_decision",
            period_id=quote.period_id,
            kind=decision.kind.value if decision.kind else None,
            direction=decision.direction.value if decision.direction else None,
            size=str(decision.size),
            reason=decision.reason,
        )
        await self._execute(decision, quote, now)
        return decision

    async def _execute(self, decision: Decision, quote: VenueQuote, now: float) -> None:
        assert decision.kind is not None
        assert decision.direction is not None
        assert decision.size is not None

        token_ref = quote.token_ref(decision.direction)
        if not token_ref:
            self.stats.skipped_decisions += 1
            self._last_reason = MISSING_TOKEN_REASON
            logger.warning(
                "bet_missing_token_ref",
                period_id=quote.period_id,
                direction=decision.direction.value,
            )
            return

        price = entry_price(quote.implied_prob(decision.direction))
        self.stats.trades += 1
        result = await self._executor.submit(
            token_ref,
            price,
            decision.size,
            tick_size=quote.tick_size,
            neg_risk=quote.neg_risk,
        )

        if not result.success:
            self.stats.failed_orders += 1
            self._last_reason = f"order_failed: {result.error}"
            logger.warning(
                "order_failed",
                period_id=quote.period_id,
                kind=decision.kind.value,
                error=result.error,
            )
            return

        self.stats.successful_orders += 1
        self._last_bet_time = now
        self._last_reason = f"{decision.kind.value.lower()}_placed"
        self._risk.record_bet(
            quote.period_id,
            decision.kind,
            decision.direction,
            price,
            decision.size,
            timestamp=now,
        )
        logger.info(
            "order_placed",
            period_id=quote.period_id,
            order_id=result.order_id,
            kind=decision.kind.value,
            direction=decision.direction.value,
            price=str(price),
            size=str(decision.size),
        )
        scenarios = self._risk.scenarios(quote.period_id)
        if scenarios is not None:
            logger.info(
                "payout_scenarios",
                period_id=quote.period_id,
                invested=str(scenarios.total_invested),
                win_profit=str(scenarios.main_wins.profit.quantize(Decimal("0.01"))),
                lose_profit=str(scenarios.main_loses.profit.quantize(Decimal("0.01"))),
            )

    def _roll_period(self, current_id: str, upcoming_id: str) -> None:
        """Follow the wall-clock period; the quote may belong to the next one.

        Positions of both the current and the next period are kept, so a
        bet placed on the next market during a lookup fallback survives.
        """
        if current_id == self._active_period_id:
            return
        previous = self._active_period_id
        self._active_period_id = current_id
        self._risk.cleanup(current_id, upcoming_id)
        logger.info("period_changed", previous=previous, current=current_id)

    def snapshot(self) -> StatusSnapshot:
        position = None
        period_id = self._last_quote.period_id if self._last_quote else self._active_period_id
        if period_id is not None:
            position = self._risk.position(period_id)
        return StatusSnapshot(
            signal=self._last_signal,
            position=position,
            risk_state=self._risk.risk_state,
            reason=self._last_reason,
            stats=self.stats.as_dict(),
            feed_health=self._feed.health,
            quote=self._last_quote,
            time_remaining=str(self._time_remaining),
        )

    def _maybe_log_status(self) -> None:
        now = self._clock()
        if now - self._last_status_time < self._status_interval:
            return
        self._last_status_time = now
        snap = self.snapshot()
        sig = snap.signal
        quote = snap.quote
        logger.info(
            "status",
            period_id=self._active_period_id,
            price=sig.price if sig else None,
            momentum=round(sig.momentum, 4) if sig and sig.momentum is not None else None,
            direction=sig.direction.value if sig else None,
            confidence=sig.confidence if sig else None,
            edge=round(sig.edge, 2) if sig else None,
            up=quote.up_implied_prob if quote else None,
            down=quote.down_implied_prob if quote else None,
            time_remaining=snap.time_remaining,
            position=snap.position.state.value if snap.position else None,
            daily_loss=str(snap.risk_state.daily_loss_usd),
            consecutive_losses=snap.risk_state.consecutive_losses,
            reason=snap.reason,
            feed_connected=snap.feed_health.connected,
            feed_degraded=snap.feed_health.degraded,
            **snap.stats,
        )

    async def _cleanup(self) -> None:
        """Graceful cleanup on shutdown."""
        self._running = False
        await self._feed.disconnect()
        logger.info("bot_shutdown", mode=self._executor.mode, **self.stats.as_dict())


def build_orchestrator(
    config: ConfigLoader,
    settings: StrategySettings,
) -> BotOrchestrator:
    """Construct the live or simulated agent from loaded configuration.

    Raises:
        ConfigError: If live mode is requested without credentials.
    """
    from updown_bot.data.binance_ws import BinanceTradeFeed
    from updown_bot.data.market_resolver import GammaMarketClient
    from updown_bot.execution.clob_executor import ClobOrderExecutor
    from updown_bot.execution.simulated import SimulatedExecutor

    executor: Any
    if settings.simulation_mode:
        executor = SimulatedExecutor()
    else:
        executor = ClobOrderExecutor(
            load_credentials(),
            clob_url=str(config.require("polymarket.clob_url")),
            chain_id=int(config.get("polymarket.chain_id", 137)),
        )

    analytics = PriceAnalytics()
    feed = BinanceTradeFeed(
        analytics,
        asset=settings.asset,
        ws_base_url=str(config.get("binance.ws_base_url", "wss://stream.binance.com:9443/ws")),
        max_reconnect_attempts=int(config.get("binance.max_reconnect_attempts", 10)),
    )
    market_info = GammaMarketClient(
        gamma_url=str(config.get("polymarket.gamma_url", "https://gamma-api.polymarket.com")),
    )
    return BotOrchestrator(
        settings,
        analytics,
        feed,
        market_info,
        executor,
        tick_interval=float(config.get("bot.tick_interval_seconds", 1.0)),
        status_interval=float(config.get("bot.status_interval_seconds", 3.0)),
        warmup_seconds=float(config.get("bot.warmup_seconds", 60)),
        error_pause_seconds=float(config.get("bot.error_pause_seconds", 5.0)),
    )


def run_bot(
    mode: str | None = None,
    config_dir: str = "config",
    env: str | None = None,
    asset: str | None = None,
) -> int:
    """Run the trading bot.

    Args:
        mode: "paper" or "live"; None keeps ``strategy.simulation_mode``.
        config_dir: Path to config directory.
        env: Environment name.
        asset: Overrides ``strategy.asset``.

    Returns:
        Exit code (0 = success).
    """
    config = ConfigLoader(config_dir=config_dir, env=env)
    config.load()
    config.validate_keys(REQUIRED_CONFIG_KEYS)
    config.validate_ranges()

    settings = StrategySettings.from_loader(config)
    overrides: dict[str, Any] = {}
    if asset is not None:
        overrides["asset"] = asset.lower()
    if mode is not None:
        overrides["simulation_mode"] = mode != "live"
    if overrides:
        settings = settings.model_copy(update=overrides)

    orchestrator = build_orchestrator(config, settings)
    return asyncio.run(orchestrator.start())
