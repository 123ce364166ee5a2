"""
Hello World signaling handler.

Upgraded /helloworld connections land here. Each text frame is a JSON
object whose ``id`` picks the operation to run; replies go back on the same
session.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict

from ..handshake import HEADERS_ATTRIBUTE
from ..kurento import KurentoClient
from ..websocket import WebSocketSession

logger = logging.getLogger(__name__)

MessageOperation = Callable[[WebSocketSession, Dict[str, Any]], Awaitable[None]]


class HelloWorldHandler:
    """
    Signaling handler for the /helloworld endpoint.

    Messages are JSON objects with an ``id`` naming the operation. Media
    negotiation is left to the operations registered on top of this handler;
    out of the box it only answers ``ping`` and reports invalid messages.
    """

    def __init__(self, kurento_client: KurentoClient):
        self.kurento_client = kurento_client
        self.sessions: Dict[str, WebSocketSession] = {}
        self._operations: Dict[str, MessageOperation] = {}
        self.register_operation("ping", self._on_ping)

    def register_operation(self, message_id: str, operation: MessageOperation) -> None:
        """Route messages whose ``id`` equals message_id to operation."""
        self._operations[message_id] = operation

    async def after_connection_established(self, session: WebSocketSession) -> None:
        self.sessions[session.id] = session
        cookie_set = HEADERS_ATTRIBUTE in session.attributes
        logger.info(f"WebSocket connection established, session: {session.id}, "
                    f"session cookie assigned: {cookie_set}")

    async def handle_text_message(self, session: WebSocketSession, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Malformed JSON from session: {session.id}")
            await self._send_error(session, "Invalid JSON message")
            return

        if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
            await self._send_error(session, "Message must be a JSON object with a string 'id' field")
            return

        message_id = payload["id"]
        logger.info(f"Message {message_id} from session {session.id}")

        operation = self._operations.get(message_id)
        if operation is None:
            await self._send_error(session, f"Invalid message with id {message_id}")
            return

        try:
            await operation(session, payload)
        except Exception as e:
            logger.error(f"Operation {message_id} failed: {e}")
            await self._send_error(session, str(e))

    async def after_connection_closed(self, session: WebSocketSession, close_code: int) -> None:
        self.sessions.pop(session.id, None)
        logger.info(f"WebSocket connection closed, session {session.id}, close code: {close_code}")

    async def _on_ping(self, session: WebSocketSession, payload: Dict[str, Any]) -> None:
        await session.send_json({"id": "pong"})

    async def _send_error(self, session: WebSocketSession, message: str) -> None:
        if not session.is_open:
            return
        await session.send_json({"id": "error", "message": message})
