"""
Chrome DevTools Protocol (CDP) client.

Speaks CDP over a single page WebSocket.
Features:
- Command/response matching via message IDs
- Event subscriptions used for load and network-idle tracking
- Protocol errors surfaced as CDPError
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional
from collections.abc import Awaitable

import websockets
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], Awaitable[None]]


class CDPError(Exception):
    """CDP command error."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"CDP Error {code}: {message}")


class CDPClient:
    """
    Async CDP client bound to one target's WebSocket.

    The client is owned by a single page and is never shared between
    browsers, so there is no reconnection logic.
    """

    def __init__(self):
        self.ws = None
        self._callbacks: dict[int, asyncio.Future] = {}
        self._event_handlers: dict[str, list[EventHandler]] = {}
        self._id_counter = 0
        self._listen_task: Optional[asyncio.Task] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        """Check if the socket is open."""
        return self._connected and self.ws is not None and self.ws.state is State.OPEN

    async def connect(self, ws_url: str) -> None:
        """Connect to a target via its webSocketDebuggerUrl."""
        if self.connected:
            logger.warning("Already connected, closing existing connection")
            await self.close()

        logger.debug(f"Connecting to CDP at {ws_url}")
        self.ws = await websockets.connect(
            ws_url,
            max_size=None,
            ping_interval=30,
            ping_timeout=10,
        )
        self._connected = True
        self._listen_task = asyncio.create_task(self._listen_loop())

    async def _listen_loop(self) -> None:
        """Read messages until the socket closes."""
        try:
            async for message in self.ws:
                self._handle_message(message)
        except ConnectionClosed as e:
            logger.debug(f"CDP connection closed: {e}")
        except Exception as e:
            logger.error(f"CDP listen loop error: {e}")
        finally:
            self._connected = False
            self._fail_pending(ConnectionError("CDP connection lost"))

    def _handle_message(self, message) -> None:
        """Dispatch one incoming CDP message to a pending command or event handlers."""
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse CDP message: {e}")
            return

        if "id" in data:
            future = self._callbacks.pop(data["id"], None)
            if future is not None and not future.done():
                if "error" in data:
                    error = data["error"]
                    future.set_exception(
                        CDPError(error.get("code", -1), error.get("message", "Unknown error"))
                    )
                else:
                    future.set_result(data.get("result", {}))

        if "method" in data:
            method = data["method"]
            params = data.get("params", {})
            for handler in list(self._event_handlers.get(method, [])):
                asyncio.create_task(handler(params))

    def _fail_pending(self, exc: Exception) -> None:
        for future in self._callbacks.values():
            if not future.done():
                future.set_exception(exc)
        self._callbacks.clear()

    async def send(
        self,
        method: str,
        params: Optional[dict] = None,
        timeout: float = 30.0,
    ) -> dict[str, Any]:
        """
        Send a CDP command and wait for the result.

        Args:
            method: CDP method name (e.g., "Page.navigate")
            params: Optional parameters dict
            timeout: Timeout in seconds

        Returns:
            The result dict from the CDP response

        Raises:
            CDPError: If the browser rejects the command
            RuntimeError: If not connected
            asyncio.TimeoutError: If timeout exceeded
        """
        if not self.connected:
            raise RuntimeError("CDP client not connected")

        self._id_counter += 1
        msg_id = self._id_counter

        message = {
            "id": msg_id,
            "method": method,
            "params": params or {},
        }

        future = asyncio.get_running_loop().create_future()
        self._callbacks[msg_id] = future

        try:
            await self.ws.send(json.dumps(message))
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            self._callbacks.pop(msg_id, None)
            raise asyncio.TimeoutError(f"CDP command {method} timed out after {timeout}s")

    def on(self, event: str, handler: EventHandler) -> None:
        """Register an async handler for a CDP event."""
        self._event_handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Optional[EventHandler] = None) -> None:
        """Remove one handler, or every handler when none is given."""
        if event not in self._event_handlers:
            return
        if handler is None:
            del self._event_handlers[event]
        else:
            self._event_handlers[event] = [
                h for h in self._event_handlers[event] if h != handler
            ]

    async def wait_for_event(
        self,
        event: str,
        predicate: Optional[Callable[[dict], bool]] = None,
        timeout: float = 30.0,
    ) -> dict:
        """
        Wait for a specific event to occur.

        Args:
            event: CDP event name to wait for
            predicate: Optional function to filter events
            timeout: Timeout in seconds

        Returns:
            The event params when the event fires
        """
        future = asyncio.get_running_loop().create_future()

        async def handler(params: dict) -> None:
            if predicate is None or predicate(params):
                if not future.done():
                    future.set_result(params)

        self.on(event, handler)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        finally:
            self.off(event, handler)

    async def close(self) -> None:
        """Close the CDP connection."""
        self._connected = False

        if self._listen_task:
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass
            self._listen_task = None

        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing CDP socket: {e}")
            self.ws = None

        for future in self._callbacks.values():
            if not future.done():
                future.cancel()
        self._callbacks.clear()
        self._event_handlers.clear()
