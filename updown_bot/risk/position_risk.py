"""Position and risk engine: per-period main/hedge betting policy.

Each trading period moves through NO_POSITION → MAIN_PLACED → HEDGED.
Nothing leaves HEDGED; a period's position is simply evicted when the
active period changes. Settlement is not tracked here.
"""

from __future__ import annotations

import time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from updown_bot.core.logging import get_logger
from updown_bot.models.position import (
    Bet,
    BetKind,
    Decision,
    PayoutScenarios,
    Position,
    RiskState,
    ScenarioBranch,
)
from updown_bot.risk.risk_state import apply_outcome, initial_risk_state, roll_day_boundary

if TYPE_CHECKING:
    from updown_bot.models.market import Direction, VenueQuote
    from updown_bot.models.signal import Signal

log = get_logger(__name__)


class PositionError(ValueError):
    """Raised when a bet would break the main-before-hedge invariant."""


class SkipReason(str, Enum):
    DAILY_LOSS_LIMIT = "daily_loss_limit"
    CONSECUTIVE_LOSS_LIMIT = "consecutive_loss_limit"
    MARKET_BET_CAP = "market_bet_cap"
    TAIL_GUARD = "tail_guard"
    NO_ELIGIBLE_ACTION = "no_eligible_action"


class PositionStore:
    """Keyed arena of positions: lazy creation, explicit eviction."""

    def __init__(self) -> None:
        self._positions: dict[str, Position] = {}

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, period_id: object) -> bool:
        return period_id in self._positions

    def get(self, period_id: str) -> Position | None:
        return self._positions.get(period_id)

    def get_or_create(self, period_id: str) -> Position:
        position = self._positions.get(period_id)
        if position is None:
            position = Position(period_id=period_id)
            self._positions[period_id] = position
            log.debug("position_created", period_id=period_id)
        return position

    def put(self, position: Position) -> None:
        self._positions[position.period_id] = position

    def evict_except(self, period_id: str, *retain: str) -> list[str]:
        """Drop every position not in ``period_id`` or ``retain``; return evicted ids."""
        keep = {period_id, *retain}
        evicted = [pid for pid in self._positions if pid not in keep]
        for pid in evicted:
            del self._positions[pid]
        return evicted

    def ids(self) -> list[str]:
        return list(self._positions)


class PositionRiskEngine:
    """Owns per-period positions and the process-wide risk counters."""

    def __init__(
        self,
        main_bet_size: Decimal = Decimal("5"),
        max_bets_per_market: int = 2,
        enable_hedging: bool = True,
        hedge_price_threshold: float = 0.35,
        hedge_bet_size: Decimal = Decimal("2"),
        no_trade_last_minutes: float = 2.0,
        max_daily_loss: Decimal = Decimal("50"),
        max_consecutive_losses: int = 5,
        risk_state: RiskState | None = None,
    ) -> None:
        self._main_bet_size = main_bet_size
        self._max_bets = max_bets_per_market
        self._enable_hedging = enable_hedging
        self._hedge_threshold = hedge_price_threshold
        self._hedge_bet_size = hedge_bet_size
        self._no_trade_seconds = no_trade_last_minutes * 60
        self._max_daily_loss = max_daily_loss
        self._max_consecutive_losses = max_consecutive_losses
        self._risk_state = risk_state or initial_risk_state(time.time())
        self._store = PositionStore()

    @property
    def risk_state(self) -> RiskState:
        return self._risk_state

    @property
    def positions(self) -> PositionStore:
        return self._store

    def position(self, period_id: str) -> Position | None:
        return self._store.get(period_id)

    def advance_clock(self, now: float) -> RiskState:
        """Apply the daily reset boundary for ``now``."""
        rolled = roll_day_boundary(self._risk_state, now)
        if rolled is not self._risk_state:
            log.info(
                "risk_day_rollover",
                previous_daily_loss=str(self._risk_state.daily_loss_usd),
                next_boundary=rolled.day_boundary_epoch,
            )
        self._risk_state = rolled
        return rolled

    def record_outcome(self, pnl_usd: Decimal) -> RiskState:
        """Feed a settled result into the loss counters."""
        self._risk_state = apply_outcome(self._risk_state, pnl_usd)
        log.info(
            "risk_outcome_recorded",
            pnl=str(pnl_usd),
            daily_loss=str(self._risk_state.daily_loss_usd),
            consecutive_losses=self._risk_state.consecutive_losses,
        )
        return self._risk_state

    def evaluate(
        self,
        signal: Signal,
        quote: VenueQuote,
        time_remaining_seconds: float,
    ) -> Decision:
        """Decide whether to place a main bet, a hedge, or nothing.

        Checks run in strict precedence: loss breakers, per-market cap,
        tail guard, main entry, hedge entry. An expired period has zero
        seconds remaining.
        """
        position = self._store.get_or_create(quote.period_id)
        risk = self._risk_state

        if risk.daily_loss_usd >= self._max_daily_loss:
            return self._skip(
                SkipReason.DAILY_LOSS_LIMIT,
                quote.period_id,
                daily_loss=str(risk.daily_loss_usd),
                limit=str(self._max_daily_loss),
            )

        if risk.consecutive_losses >= self._max_consecutive_losses:
            return self._skip(
                SkipReason.CONSECUTIVE_LOSS_LIMIT,
                quote.period_id,
                consecutive_losses=risk.consecutive_losses,
                limit=self._max_consecutive_losses,
            )

        if position.bet_count >= self._max_bets:
            return self._skip(
                SkipReason.MARKET_BET_CAP,
                quote.period_id,
                bet_count=position.bet_count,
                limit=self._max_bets,
            )

        if max(time_remaining_seconds, 0) < self._no_trade_seconds:
            return self._skip(
                SkipReason.TAIL_GUARD,
                quote.period_id,
                remaining_s=time_remaining_seconds,
            )

        if position.main_bet is None:
            if signal.fires:
                decision = Decision.bet(
                    BetKind.MAIN, signal.direction, self._main_bet_size, "main_signal",
                )
                log.debug(
                    "bet_decision",
                    period_id=quote.period_id,
                    kind=BetKind.MAIN.value,
                    direction=signal.direction.value,
                    size=str(self._main_bet_size),
                    edge=round(signal.edge, 4),
                )
                return decision
        elif self._enable_hedging and position.hedge_bet is None:
            hedge_direction = position.main_bet.direction.opposite
            hedge_price = quote.implied_prob(hedge_direction)
            if hedge_price <= self._hedge_threshold:
                log.debug(
                    "bet_decision",
                    period_id=quote.period_id,
                    kind=BetKind.HEDGE.value,
                    direction=hedge_direction.value,
                    size=str(self._hedge_bet_size),
                    hedge_price=hedge_price,
                )
                return Decision.bet(
                    BetKind.HEDGE, hedge_direction, self._hedge_bet_size, "hedge_price",
                )

        return self._skip(SkipReason.NO_ELIGIBLE_ACTION, quote.period_id, level="debug")

    def record_bet(
        self,
        period_id: str,
        kind: BetKind,
        direction: Direction,
        price: Decimal,
        size: Decimal,
        timestamp: float | None = None,
    ) -> Position:
        """Fill a bet slot for ``period_id``, creating the position if needed.

        Re-recording an occupied slot overwrites it.

        Raises:
            PositionError: If a hedge is recorded before any main bet.
        """
        position = self._store.get_or_create(period_id)
        bet = Bet(
            direction=direction,
            price=price,
            size=size,
            timestamp=time.time() if timestamp is None else timestamp,
        )

        if kind is BetKind.MAIN:
            if position.main_bet is not None:
                log.warning("bet_slot_overwritten", period_id=period_id, kind=kind.value)
            position = position.model_copy(update={"main_bet": bet})
        else:
            if position.main_bet is None:
                msg = f"hedge recorded without a main bet for {period_id}"
                raise PositionError(msg)
            if position.hedge_bet is not None:
                log.warning("bet_slot_overwritten", period_id=period_id, kind=kind.value)
            position = position.model_copy(update={"hedge_bet": bet})

        self._store.put(position)
        log.info(
            "bet_recorded",
            period_id=period_id,
            kind=kind.value,
            direction=direction.value,
            price=str(price),
            size=str(size),
            bet_count=position.bet_count,
            state=position.state.value,
        )
        return position

    def scenarios(self, period_id: str) -> PayoutScenarios | None:
        """Payouts for a $1-per-share market if the main bet wins or loses.

        Returns None when the period has no main bet.
        """
        position = self._store.get(period_id)
        if position is None or position.main_bet is None:
            return None

        main = position.main_bet
        hedge = position.hedge_bet
        invested = position.total_invested
        win_payout = main.shares
        lose_payout = hedge.shares if hedge is not None else Decimal("0")

        return PayoutScenarios(
            period_id=period_id,
            total_invested=invested,
            main_wins=_branch(win_payout, invested),
            main_loses=_branch(lose_payout, invested),
        )

    def cleanup(self, active_period_id: str, *retain: str) -> list[str]:
        """Discard every position not belonging to the active period.

        Ids in ``retain`` survive too, so a position opened on the next
        period while the current market was unavailable is kept.
        """
        evicted = self._store.evict_except(active_period_id, *retain)
        if evicted:
            log.info("positions_evicted", active=active_period_id, evicted=evicted)
        return evicted

    def _skip(self, reason: SkipReason, period_id: str, level: str = "info", **context: object) -> Decision:
        getattr(log, level)("bet_skipped", period_id=period_id, reason=reason.value, **context)
        return Decision.skip(reason.value)


def _branch(payout: Decimal, invested: Decimal) -> ScenarioBranch:
    profit = payout - invested
    return ScenarioBranch(
        payout=payout,
        profit=profit,
        roi_pct=profit / invested * 100,
    )
