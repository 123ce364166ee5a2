"""
WebSocket handler registration.

Each registered path becomes one Starlette WebSocket route. A connection
attempt runs the registration's interceptors, accepts the upgrade with the
headers they produced and then drives the handler until the socket closes.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from starlette.applications import Starlette
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ...config.provider import WebSocketContainerConfig
from ..handshake import HandshakeInterceptor, HttpHandshakeRequest, HttpHandshakeResponse

logger = logging.getLogger(__name__)

# RFC 6455 close codes
CLOSE_NORMAL = 1000
CLOSE_UNSUPPORTED_DATA = 1003
CLOSE_POLICY_VIOLATION = 1008
CLOSE_MESSAGE_TOO_BIG = 1009
CLOSE_SERVER_ERROR = 1011


class WebSocketSession:
    """An upgraded connection together with its handshake attributes."""

    def __init__(self, websocket: WebSocket, attributes: Dict[str, Any]):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.attributes = attributes

    @property
    def path(self) -> str:
        return self.websocket.url.path

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, text: str) -> None:
        await self.websocket.send_text(text)

    async def send_json(self, data: Dict[str, Any]) -> None:
        await self.websocket.send_json(data)

    async def close(self, code: int = CLOSE_NORMAL) -> None:
        if self.websocket.application_state != WebSocketState.DISCONNECTED:
            await self.websocket.close(code=code)


class WebSocketHandler(Protocol):
    """Protocol for objects that receive upgraded connections."""

    async def after_connection_established(self, session: WebSocketSession) -> None:
        ...

    async def handle_text_message(self, session: WebSocketSession, message: str) -> None:
        ...

    async def after_connection_closed(self, session: WebSocketSession, close_code: int) -> None:
        ...


class WebSocketHandlerRegistration:
    """A handler bound to one or more paths, plus its interceptors."""

    def __init__(self, handler: WebSocketHandler, paths: List[str]):
        self.handler = handler
        self.paths = paths
        self.interceptors: List[HandshakeInterceptor] = []

    def add_interceptors(self, *interceptors: HandshakeInterceptor) -> "WebSocketHandlerRegistration":
        """Append interceptors; they run in the order they were added."""
        self.interceptors.extend(interceptors)
        return self


class WebSocketHandlerRegistry:
    """Collects handler registrations and installs them as routes."""

    def __init__(self, container_config: Optional[WebSocketContainerConfig] = None):
        self.container_config = container_config or WebSocketContainerConfig()
        self.registrations: List[WebSocketHandlerRegistration] = []

    def add_handler(self, handler: WebSocketHandler, *paths: str) -> WebSocketHandlerRegistration:
        """
        Register a handler at the given paths.

        Returns:
            The registration, so interceptors can be chained onto it
        """
        if not paths:
            raise ValueError("At least one path is required")
        for path in paths:
            if not path.startswith("/"):
                raise ValueError(f"WebSocket path must start with '/': {path!r}")

        registration = WebSocketHandlerRegistration(handler, list(paths))
        self.registrations.append(registration)
        return registration

    def install(self, app: Starlette) -> None:
        """Add one WebSocket route per registered path to the application."""
        for registration in self.registrations:
            endpoint = _HandshakeEndpoint(registration, self.container_config)
            for path in registration.paths:
                app.router.add_websocket_route(path, endpoint.handle)
                logger.info(
                    f"WebSocket handler {type(registration.handler).__name__} registered at {path} "
                    f"with {len(registration.interceptors)} interceptor(s)"
                )


class _HandshakeEndpoint:
    """ASGI WebSocket endpoint for a single registration."""

    def __init__(self, registration: WebSocketHandlerRegistration, container_config: WebSocketContainerConfig):
        self.registration = registration
        self.max_text_message_size = container_config.max_text_message_buffer_size

    async def handle(self, websocket: WebSocket) -> None:
        attributes: Dict[str, Any] = {}
        if not await self._handshake(websocket, attributes):
            return
        await self._run_session(WebSocketSession(websocket, attributes))

    def _after_handshake(
        self,
        applied: List[HandshakeInterceptor],
        request: HttpHandshakeRequest,
        response: HttpHandshakeResponse,
        exc: Optional[BaseException],
    ) -> None:
        handler = self.registration.handler
        for interceptor in reversed(applied):
            try:
                interceptor.after_handshake(request, response, handler, exc)
            except Exception as e:
                logger.error(f"after_handshake failed in {type(interceptor).__name__}: {e}")

    async def _handshake(self, websocket: WebSocket, attributes: Dict[str, Any]) -> bool:
        request = HttpHandshakeRequest(websocket)
        response = HttpHandshakeResponse()
        handler = self.registration.handler
        applied: List[HandshakeInterceptor] = []

        for interceptor in self.registration.interceptors:
            try:
                proceed = interceptor.before_handshake(request, response, handler, attributes)
            except Exception as e:
                logger.error(f"before_handshake failed in {type(interceptor).__name__}, path - {request.path}: {e}")
                self._after_handshake(applied, request, response, e)
                await websocket.close(code=CLOSE_SERVER_ERROR)
                return False
            if not proceed:
                logger.info(f"Handshake rejected by {type(interceptor).__name__}, path - {request.path}")
                self._after_handshake(applied, request, response, None)
                await websocket.close(code=CLOSE_POLICY_VIOLATION)
                return False
            applied.append(interceptor)

        try:
            await websocket.accept(headers=response.headers.raw)
        except Exception as e:
            self._after_handshake(applied, request, response, e)
            raise

        self._after_handshake(applied, request, response, None)
        return True

    async def _run_session(self, session: WebSocketSession) -> None:
        handler = self.registration.handler
        close_code = CLOSE_NORMAL

        try:
            await handler.after_connection_established(session)

            while True:
                message = await session.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    close_code = message.get("code", CLOSE_NORMAL)
                    break

                text = message.get("text")
                if text is None:
                    logger.warning(f"Binary message not supported, session {session.id}")
                    close_code = CLOSE_UNSUPPORTED_DATA
                    await session.close(close_code)
                    break

                if len(text.encode("utf-8")) > self.max_text_message_size:
                    logger.warning(
                        f"Text message exceeds {self.max_text_message_size} bytes, session {session.id}"
                    )
                    close_code = CLOSE_MESSAGE_TOO_BIG
                    await session.close(close_code)
                    break

                await handler.handle_text_message(session, text)
        except WebSocketDisconnect as e:
            # Peer went away while the handler was sending.
            logger.info(f"Session {session.id} disconnected with code {e.code}")
            close_code = e.code
        except Exception as e:
            logger.error(f"Transport error in session {session.id}: {e}")
            close_code = CLOSE_SERVER_ERROR
            if session.is_open:
                await session.close(close_code)
        finally:
            await handler.after_connection_closed(session, close_code)
