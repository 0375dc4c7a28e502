"""WebSocket client for new-pool signals via Solana logsSubscribe.

Subscribes to logs mentioning the watched account (Raydium AMM v4 by default)
and hands the signature of every successful pool-initialization transaction
to the on_new_pool callback. The monitor resolves the full transaction itself.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from enum import Enum

import websockets
from loguru import logger
from pydantic import BaseModel

SUBSCRIBE_REQUEST_ID = 1
UNSUBSCRIBE_REQUEST_ID = 2
CALLBACK_TIMEOUT_SEC = 300.0


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"


class PoolCreationEvent(BaseModel):
    """Log notification for a transaction that initialized a pool."""

    signature: str
    slot: int = 0


class PoolLogsClient:
    """Single-connection logsSubscribe listener with exponential reconnect backoff."""

    def __init__(
        self,
        ws_url: str,
        watched_account: str,
        log_marker: str = "initialize2",
        *,
        min_backoff: float = 5.0,
        max_backoff: float = 60.0,
    ) -> None:
        self._ws_url = ws_url
        self._watched_account = watched_account
        self._log_marker = log_marker
        self._min_backoff = min_backoff
        self._max_backoff = max_backoff
        self._backoff = min_backoff

        self._ws: websockets.ClientConnection | None = None
        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._subscription_id: int | None = None

        self._message_count = 0
        self._reconnects = 0
        self._last_event_at: float | None = None

        self.on_new_pool: Callable[[PoolCreationEvent], Awaitable[None]] | None = None
        self._pending_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def message_count(self) -> int:
        return self._message_count

    @property
    def reconnects(self) -> int:
        return self._reconnects

    def seconds_since_last_event(self) -> float | None:
        if self._last_event_at is None:
            return None
        return time.monotonic() - self._last_event_at

    async def connect(self) -> None:
        """Run until stop(): connect, subscribe, listen, back off on any drop."""
        self._running = True
        while self._running:
            self._state = ConnectionState.CONNECTING
            try:
                async with websockets.connect(
                    self._ws_url,
                    ping_interval=30,
                    ping_timeout=10,
                    close_timeout=5,
                ) as ws:
                    self._ws = ws
                    self._state = ConnectionState.SUBSCRIBING
                    await self._send_subscribe()
                    await self._listen()
            except (websockets.ConnectionClosed, OSError, TimeoutError) as e:
                logger.warning(f"[POOLS] Connection lost: {e}")
            finally:
                self._ws = None
                self._subscription_id = None
                self._state = ConnectionState.DISCONNECTED

            if not self._running:
                break
            self._reconnects += 1
            logger.info(f"[POOLS] Reconnect #{self._reconnects} in {self._backoff:.0f}s")
            await asyncio.sleep(self._backoff)
            self._backoff = min(self._backoff * 2, self._max_backoff)

    async def _send_subscribe(self) -> None:
        assert self._ws is not None
        await self._ws.send(json.dumps({
            "jsonrpc": "2.0",
            "id": SUBSCRIBE_REQUEST_ID,
            "method": "logsSubscribe",
            "params": [
                {"mentions": [self._watched_account]},
                {"commitment": "confirmed"},
            ],
        }))

    async def _listen(self) -> None:
        assert self._ws is not None
        async for message in self._ws:
            self._message_count += 1
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                logger.debug(f"[POOLS] Non-JSON frame skipped: {str(message)[:80]}")
                continue
            if data.get("id") == SUBSCRIBE_REQUEST_ID:
                self._on_subscribe_ack(data)
                continue
            self.handle_notification(data)

    def _on_subscribe_ack(self, data: dict) -> None:
        if "error" in data:
            # The node rejected the filter; the connection is useless as is
            raise ConnectionError(f"logsSubscribe rejected: {data['error']}")
        self._subscription_id = data.get("result")
        self._state = ConnectionState.ACTIVE
        self._backoff = self._min_backoff
        logger.info(
            f"[POOLS] Subscribed to {self._watched_account[:12]}... "
            f"(id={self._subscription_id}, marker='{self._log_marker}')"
        )

    def handle_notification(self, data: dict) -> PoolCreationEvent | None:
        """Dispatch a logsNotification if it is a successful pool init.

        Notifications arrive as
        {"method": "logsNotification", "params": {"result": {"context": {"slot": n},
        "value": {"signature": ..., "err": ..., "logs": [...]}}}}
        """
        if data.get("method") != "logsNotification":
            return None
        result = data.get("params", {}).get("result", {})
        value = result.get("value", {})

        signature = value.get("signature")
        if not signature or value.get("err") is not None:
            return None
        if not any(self._log_marker in line for line in value.get("logs") or []):
            return None

        event = PoolCreationEvent(
            signature=signature,
            slot=result.get("context", {}).get("slot", 0),
        )
        self._last_event_at = time.monotonic()
        logger.debug(f"[POOLS] Pool init {signature[:16]} at slot {event.slot}")

        if self.on_new_pool is not None:
            task = asyncio.create_task(self._run_callback(event))
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)
        return event

    async def _run_callback(self, event: PoolCreationEvent) -> None:
        assert self.on_new_pool is not None
        try:
            await asyncio.wait_for(self.on_new_pool(event), timeout=CALLBACK_TIMEOUT_SEC)
        except asyncio.TimeoutError:
            logger.error(f"[POOLS] Handling {event.signature[:16]} exceeded {CALLBACK_TIMEOUT_SEC:.0f}s")
        except Exception as e:
            logger.exception(f"[POOLS] Handler failed for {event.signature[:16]}: {e}")

    async def stop(self) -> None:
        """Unsubscribe, close the socket and wait for in-flight handlers."""
        self._running = False
        ws = self._ws
        if ws is not None:
            if self._subscription_id is not None:
                try:
                    await ws.send(json.dumps({
                        "jsonrpc": "2.0",
                        "id": UNSUBSCRIBE_REQUEST_ID,
                        "method": "logsUnsubscribe",
                        "params": [self._subscription_id],
                    }))
                except websockets.ConnectionClosed:
                    pass
            await ws.close()
        if self._pending_tasks:
            await asyncio.gather(*self._pending_tasks, return_exceptions=True)
        self._state = ConnectionState.DISCONNECTED
