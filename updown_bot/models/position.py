"""Position, bet and risk-state models for the per-period state machine."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, model_validator

from updown_bot.models.market import Direction


class BetKind(str, Enum):
    MAIN = "MAIN"
    HEDGE = "HEDGE"


class PositionState(str, Enum):
    NO_POSITION = "NO_POSITION"
    MAIN_PLACED = "MAIN_PLACED"
    HEDGED = "HEDGED"


class Bet(BaseModel):
    """A filled bet slot. Price is per share on a $1-payout market."""

    direction: Direction
    price: Decimal
    size: Decimal
    timestamp: float

    @model_validator(mode="after")
    def price_in_unit_interval(self) -> Bet:
        if not (Decimal("0") < self.price < Decimal("1")):
            msg = "bet price must be in (0, 1)"
            raise ValueError(msg)
        if self.size <= 0:
            msg = "bet size must be positive"
            raise ValueError(msg)
        return self

    @property
    def shares(self) -> Decimal:
        return self.size / self.price

    model_config = {"frozen": True}


class Position(BaseModel):
    """Main/hedge bets held for one trading period."""

    period_id: str
    main_bet: Bet | None = None
    hedge_bet: Bet | None = None

    @property
    def bet_count(self) -> int:
        return sum(1 for bet in (self.main_bet, self.hedge_bet) if bet is not None)

    @property
    def state(self) -> PositionState:
        if self.main_bet is None:
            return PositionState.NO_POSITION
        if self.hedge_bet is None:
            return PositionState.MAIN_PLACED
        return PositionState.HEDGED

    @property
    def total_invested(self) -> Decimal:
        return sum(
            (bet.size for bet in (self.main_bet, self.hedge_bet) if bet is not None),
            Decimal("0"),
        )

    model_config = {"frozen": True}


class RiskState(BaseModel):
    """Process-wide loss counters with the next daily reset boundary."""

    daily_loss_usd: Decimal = Decimal("0")
    consecutive_losses: int = 0
    day_boundary_epoch: float

    model_config = {"frozen": True}


class DecisionAction(str, Enum):
    BET = "BET"
    SKIP = "SKIP"


class Decision(BaseModel):
    """Bet-or-skip verdict from the position/risk engine."""

    action: DecisionAction
    reason: str
    kind: BetKind | None = None
    direction: Direction | None = None
    size: Decimal | None = None

    @property
    def is_bet(self) -> bool:
        return self.action is DecisionAction.BET

    @classmethod
    def skip(cls, reason: str) -> Decision:
        return cls(action=DecisionAction.SKIP, reason=reason)

    @classmethod
    def bet(cls, kind: BetKind, direction: Direction, size: Decimal, reason: str) -> Decision:
        return cls(
            action=DecisionAction.BET,
            kind=kind,
            direction=direction,
            size=size,
            reason=reason,
        )

    model_config = {"frozen": True}


class ScenarioBranch(BaseModel):
    """Payout, profit and ROI of one settlement outcome."""

    payout: Decimal
    profit: Decimal
    roi_pct: Decimal

    model_config = {"frozen": True}


class PayoutScenarios(BaseModel):
    """What a period's position pays if the main bet wins or loses."""

    period_id: str
    total_invested: Decimal
    main_wins: ScenarioBranch
    main_loses: ScenarioBranch

    model_config = {"frozen": True}
