"""updown-bot CLI entry point."""

from __future__ import annotations

import argparse
import os
import sys

from updown_bot.config.loader import SUPPORTED_ASSETS, ConfigError
from updown_bot.core.logging import get_logger

logger = get_logger(__name__)

EXIT_CANCELLED = 1
EXIT_CONFIG_ERROR = 2


def _confirm_live_trading(env: str | None, asset: str | None) -> bool:
    """Require explicit confirmation for live trading. SECURITY: mandatory."""
    print("=" * 60)
    print("  WARNING: You are about to start LIVE trading.")
    print("  Real money will be at risk.")
    print("=" * 60)
    print(f"  Environment: {env or 'production'}")
    print(f"  Asset: {asset or 'from config'}")
    print("=" * 60)
    response = input('Type "yes" to confirm live trading: ')
    return response.strip().lower() == "yes"


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="updown-bot",
        description="Momentum trading agent for Polymarket 15-minute crypto up/down markets",
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--paper", action="store_true", help="Simulate orders without touching the venue")
    mode.add_argument("--live", action="store_true", help="Place real orders on the CLOB")

    parser.add_argument(
        "--asset",
        type=str.lower,
        choices=SUPPORTED_ASSETS,
        default=None,
        help="Asset to trade (default: strategy.asset from config)",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Config directory path (default: config)",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Environment name (default: from UPDOWN_ENV)",
    )
    parser.add_argument(
        "--auto-confirm",
        action="store_true",
        default=False,
        help=(
            "Skip interactive live trading confirmation "
            "(requires UPDOWN_LIVE_AUTO_CONFIRM=true env var)."
        ),
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.live and args.env is None:
        args.env = "production"

    if args.live:
        auto_confirmed = (
            args.auto_confirm
            and os.environ.get("UPDOWN_LIVE_AUTO_CONFIRM", "").lower() == "true"
        )
        if not auto_confirmed and not _confirm_live_trading(args.env, args.asset):
            print("Live trading cancelled.")
            return EXIT_CANCELLED

    mode = "live" if args.live else "paper"
    print(f"Starting {mode} trading (env: {args.env or 'default'})")

    from updown_bot.bot import run_bot

    try:
        return run_bot(mode=mode, config_dir=args.config_dir, env=args.env, asset=args.asset)
    except ConfigError as exc:
        logger.error("config_error", error=str(exc))
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
