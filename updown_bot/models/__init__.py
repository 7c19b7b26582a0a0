from updown_bot.models.market import (
    Direction,
    FeedHealth,
    PriceObservation,
    TradingPeriod,
    VenueQuote,
)
from updown_bot.models.order import OrderRequest, OrderResult, OrderSide, OrderType
from updown_bot.models.position import (
    Bet,
    BetKind,
    Decision,
    DecisionAction,
    PayoutScenarios,
    Position,
    PositionState,
    RiskState,
    ScenarioBranch,
)
from updown_bot.models.signal import Signal, SignalReason, TrendDirection, TrendReading

__all__ = [
    "Bet",
    "BetKind",
    "Decision",
    "DecisionAction",
    "Direction",
    "FeedHealth",
    "OrderRequest",
    "OrderResult",
    "OrderSide",
    "OrderType",
    "PayoutScenarios",
    "Position",
    "PositionState",
    "PriceObservation",
    "RiskState",
    "ScenarioBranch",
    "Signal",
    "SignalReason",
    "TradingPeriod",
    "TrendDirection",
    "TrendReading",
    "VenueQuote",
]
