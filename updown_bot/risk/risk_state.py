"""Pure transitions of the process-wide risk counters."""

from __future__ import annotations

from decimal import Decimal

from updown_bot.models.position import RiskState

DAY_SECONDS = 86_400


def next_day_boundary(now: float) -> float:
    """First UTC midnight strictly after ``now``."""
    return float((int(now) // DAY_SECONDS + 1) * DAY_SECONDS)


def initial_risk_state(now: float) -> RiskState:
    return RiskState(day_boundary_epoch=next_day_boundary(now))


def roll_day_boundary(state: RiskState, now: float) -> RiskState:
    """Reset the daily loss once ``now`` reaches the boundary.

    The boundary advances in whole days until it lies in the future.
    The consecutive-loss streak carries across days.
    """
    if now < state.day_boundary_epoch:
        return state

    boundary = state.day_boundary_epoch
    while boundary <= now:
        boundary += DAY_SECONDS
    return state.model_copy(
        update={"daily_loss_usd": Decimal("0"), "day_boundary_epoch": boundary}
    )


def apply_outcome(state: RiskState, pnl_usd: Decimal) -> RiskState:
    """Fold one settled bet result into the counters.

    A loss grows the daily loss and the streak; a win or break-even
    clears the streak.
    """
    if pnl_usd < 0:
        return state.model_copy(
            update={
                "daily_loss_usd": state.daily_loss_usd + abs(pnl_usd),
                "consecutive_losses": state.consecutive_losses + 1,
            }
        )
    return state.model_copy(update={"consecutive_losses": 0})
