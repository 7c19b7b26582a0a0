"""Execution layer: live CLOB orders, simulated orders, entry pricing."""

from __future__ import annotations

from updown_bot.execution.clob_executor import ClobOrderExecutor
from updown_bot.execution.pricing import entry_price
from updown_bot.execution.simulated import SimulatedExecutor

__all__ = [
    "ClobOrderExecutor",
    "SimulatedExecutor",
    "entry_price",
]
