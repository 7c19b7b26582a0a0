"""Position and risk management.

Per-period main/hedge state machine, loss breakers and the daily
reset boundary.
"""

from __future__ import annotations

from updown_bot.risk.position_risk import (
    PositionError,
    PositionRiskEngine,
    PositionStore,
    SkipReason,
)
from updown_bot.risk.risk_state import (
    apply_outcome,
    initial_risk_state,
    next_day_boundary,
    roll_day_boundary,
)

__all__ = [
    "PositionError",
    "PositionRiskEngine",
    "PositionStore",
    "SkipReason",
    "apply_outcome",
    "initial_risk_state",
    "next_day_boundary",
    "roll_day_boundary",
]
