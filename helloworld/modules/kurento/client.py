"""
Kurento Media Server client handle.

Speaks JSON-RPC 2.0 over a single WebSocket connection to the media server.
The connection is opened lazily on the first request, so creating a client
never blocks application startup.
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ...config.provider import EnvConfigProvider

logger = logging.getLogger(__name__)

PING_INTERVAL_MS = 240000


class KurentoError(Exception):
    """Error response returned by the media server."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(f"Kurento error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class KurentoConnectionError(KurentoError):
    """The media server could not be reached or the connection dropped."""

    def __init__(self, message: str):
        super().__init__(-1, message)


class KurentoClient:
    """Client handle for one Kurento Media Server."""

    def __init__(self, url: str, connect_timeout: float = 10.0, request_timeout: float = 30.0):
        """
        Initialize the client without connecting.

        Args:
            url: Media server WebSocket URL, e.g. ws://localhost:8888/kurento
            connect_timeout: Seconds to wait for the WebSocket connection
            request_timeout: Seconds to wait for each JSON-RPC response
        """
        self.url = url
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self.session_id: Optional[str] = None
        self._connection = None
        self._reader: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    @classmethod
    def create(cls, url: Optional[str] = None) -> "KurentoClient":
        """Create a client for the configured media server (KMS_URL)."""
        if url is None:
            url = EnvConfigProvider().get_kurento_config().url
        logger.info(f"Kurento client created for {url}")
        return cls(url)

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._reader is not None and not self._reader.done()

    async def connect(self) -> None:
        """Open the connection if it is not already open."""
        async with self._lock:
            if self.is_connected:
                return
            # A dropped connection leaves its socket and finished reader behind.
            await self._release_connection()
            try:
                self._connection = await asyncio.wait_for(
                    websockets.connect(self.url), timeout=self.connect_timeout
                )
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                self._connection = None
                raise KurentoConnectionError(f"Cannot connect to {self.url}: {e}") from e

            self._reader = asyncio.create_task(self._read_loop(self._connection))
            logger.info(f"Connected to Kurento Media Server at {self.url}")

    async def _release_connection(self) -> None:
        """Close the current socket and collect the result of a finished reader."""
        reader, self._reader = self._reader, None
        if reader is not None and reader.done() and not reader.cancelled():
            error = reader.exception()
            if error is not None:
                logger.warning(f"Kurento reader stopped with an error: {error}")

        connection, self._connection = self._connection, None
        if connection is not None:
            try:
                await connection.close()
            except (OSError, WebSocketException) as e:
                logger.debug(f"Closing Kurento connection failed: {e}")

    async def _read_loop(self, connection) -> None:
        try:
            async for raw in connection:
                self._dispatch(raw)
        except ConnectionClosed as e:
            logger.warning(f"Kurento connection closed: {e}")
        finally:
            self._fail_pending(KurentoConnectionError(f"Connection to {self.url} closed"))

    def _dispatch(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding malformed message from Kurento: {raw!r}")
            return
        if not isinstance(message, dict):
            logger.warning(f"Discarding non-object message from Kurento: {raw!r}")
            return

        request_id = message.get("id")
        if request_id is not None and not isinstance(request_id, (int, str)):
            logger.warning(f"Discarding message with invalid id from Kurento: {raw!r}")
            return
        future = self._pending.pop(request_id, None)
        if future is None:
            # Server-initiated notifications (onEvent) carry no pending id.
            logger.debug(f"Kurento notification: {message.get('method')}")
            return
        if future.done():
            return

        if "error" in message:
            error = message["error"]
            if not isinstance(error, dict):
                error = {"message": str(error)} if error else {}
            future.set_exception(
                KurentoError(error.get("code", 0), error.get("message", "Unknown error"), error.get("data"))
            )
        else:
            future.set_result(message.get("result"))

    def _fail_pending(self, exc: Exception) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(exc)

    async def send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send a JSON-RPC request and wait for its result.

        Args:
            method: JSON-RPC method name
            params: Method parameters; the current session id is added when known

        Returns:
            The ``result`` member of the response

        Raises:
            KurentoError: The server answered with an error
            KurentoConnectionError: The server is unreachable or did not answer in time
        """
        await self.connect()

        params = dict(params or {})
        if self.session_id and "sessionId" not in params:
            params["sessionId"] = self.session_id

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        request = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        try:
            await self._connection.send(json.dumps(request))
            result = await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise KurentoConnectionError(f"Request {method} timed out after {self.request_timeout}s") from None
        except ConnectionClosed as e:
            raise KurentoConnectionError(f"Connection to {self.url} closed") from e
        finally:
            self._pending.pop(request_id, None)

        if isinstance(result, dict) and result.get("sessionId"):
            self.session_id = result["sessionId"]
        return result

    async def ping(self) -> bool:
        """Check that the media server answers a keepalive ping."""
        result = await self.send_request("ping", {"interval": PING_INTERVAL_MS})
        return isinstance(result, dict) and result.get("value") == "pong"

    async def close(self) -> None:
        """Close the connection and fail any request still waiting."""
        async with self._lock:
            if self._reader is not None and not self._reader.done():
                self._reader.cancel()
                try:
                    await self._reader
                except asyncio.CancelledError:
                    pass
            if self._connection is not None:
                await self._release_connection()
                logger.info(f"Disconnected from Kurento Media Server at {self.url}")
            self._reader = None
            self._fail_pending(KurentoConnectionError("Client closed"))
            self.session_id = None
