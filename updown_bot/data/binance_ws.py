"""Binance WebSocket trade feed for the reference spot price."""

from __future__ import annotations

import asyncio
import contextlib
import json
import time
from typing import TYPE_CHECKING, Any

import websockets

from updown_bot.core.logging import get_logger
from updown_bot.models.market import FeedHealth

if TYPE_CHECKING:
    from collections.abc import Callable

    from updown_bot.engine.price_analytics import PriceAnalytics

log = get_logger(__name__)

BINANCE_WS_BASE = "wss://stream.binance.com:9443/ws"


class BinanceTradeFeed:
    """Streams ``{asset}usdt@trade`` prices into a PriceAnalytics window.

    Implements the PriceFeedSource protocol from updown_bot.interfaces.
    Reconnects forever with exponential backoff; once consecutive failures
    exceed ``max_reconnect_attempts`` the feed reports itself degraded.
    """

    def __init__(
        self,
        analytics: PriceAnalytics,
        asset: str = "btc",
        ws_base_url: str = BINANCE_WS_BASE,
        max_reconnect_attempts: int = 10,
        heartbeat_timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._analytics = analytics
        self._symbol = f"{asset.lower()}usdt"
        self._ws_url = f"{ws_base_url.rstrip('/')}/{self._symbol}@trade"
        self._max_reconnect_attempts = max_reconnect_attempts
        self._app_heartbeat_timeout = heartbeat_timeout
        self._clock = clock
        self._ws: Any = None
        self._connected = False
        self._running = False
        self._recv_task: asyncio.Task[None] | None = None
        self._backoff = 1.0
        self._max_backoff = 30.0
        self._reconnect_attempts = 0
        self._last_tick_time: float | None = None

    @property
    def url(self) -> str:
        return self._ws_url

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def health(self) -> FeedHealth:
        age = None
        if self._last_tick_time is not None:
            age = max(0.0, self._clock() - self._last_tick_time)
        return FeedHealth(
            connected=self._connected,
            reconnect_attempts=self._reconnect_attempts,
            last_tick_age=age,
            degraded=self._reconnect_attempts > self._max_reconnect_attempts,
        )

    async def connect(self) -> None:
        """Start the background receive loop."""
        self._running = True
        self._recv_task = asyncio.create_task(self._connection_loop())
        log.info("binance_trades.starting", url=self._ws_url)

    async def disconnect(self) -> None:
        self._running = False
        if self._recv_task is not None:
            self._recv_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._recv_task
            self._recv_task = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        self._connected = False
        log.info("binance_trades.disconnected")

    async def _connection_loop(self) -> None:
        while self._running:
            try:
                async with websockets.connect(self._ws_url, ping_interval=20, ping_timeout=10) as ws:
                    self._ws = ws
                    self._connected = True
                    self._backoff = 1.0
                    self._reconnect_attempts = 0
                    log.info("binance_trades.connected", url=self._ws_url)

                    while self._running:
                        try:
                            raw_msg = await asyncio.wait_for(
                                ws.recv(), timeout=self._app_heartbeat_timeout,
                            )
                        except TimeoutError:
                            log.warning(
                                "binance_trades.heartbeat_timeout",
                                timeout_s=self._app_heartbeat_timeout,
                            )
                            break
                        self._handle_message(raw_msg)

                self._connected = False
            except asyncio.CancelledError:
                break
            except Exception:
                self._connected = False
                if not self._running:
                    break
                self._record_failure()
                await asyncio.sleep(self._backoff)
                self._backoff = min(self._backoff * 2, self._max_backoff)

        self._connected = False

    def _record_failure(self) -> None:
        self._reconnect_attempts += 1
        if self._reconnect_attempts == self._max_reconnect_attempts + 1:
            log.error(
                "binance_trades.feed_lost",
                url=self._ws_url,
                attempts=self._reconnect_attempts,
            )
        log.warning(
            "binance_trades.reconnecting",
            backoff_s=self._backoff,
            attempts=self._reconnect_attempts,
            exc_info=True,
        )

    def _handle_message(self, raw_msg: str | bytes) -> None:
        """Parse one trade message and ingest its price at receive time."""
        try:
            data: dict[str, Any] = json.loads(raw_msg)
        except (json.JSONDecodeError, TypeError):
            log.warning("binance_trades.invalid_json", raw=str(raw_msg)[:200])
            return

        if not isinstance(data, dict) or "p" not in data:
            return

        received_at = self._clock()
        try:
            self._analytics.ingest(float(data["p"]), received_at)
        except (TypeError, ValueError):
            log.warning("binance_trades.invalid_price", price=str(data["p"])[:50])
            return
        self._last_tick_time = received_at
