"""Momentum trading agent for 15-minute crypto up/down prediction markets."""

__version__ = "0.1.0"
