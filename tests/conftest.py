"""
Shared pytest fixtures for Hello World tests.

This module provides common fixtures including:
- Handshake request builders over raw ASGI scopes
- A static configuration provider
- FakeKurentoConnection: in-memory stand-in for the media server socket
"""

import asyncio
import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from starlette.requests import HTTPConnection

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from helloworld.config.provider import (
    KurentoConfig,
    ServerConfig,
    SessionCookieConfig,
    WebSocketContainerConfig,
)
from helloworld.modules.handshake import HttpHandshakeRequest, HttpHandshakeResponse


# =============================================================================
# Handshake Builders
# =============================================================================

def build_scope(path: str = "/helloworld", headers: Optional[List[Tuple[str, str]]] = None) -> Dict[str, Any]:
    """Build a minimal ASGI websocket scope."""
    raw_headers = [(b"host", b"testserver")]
    for name, value in headers or []:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return {
        "type": "websocket",
        "scheme": "ws",
        "server": ("testserver", 80),
        "root_path": "",
        "path": path,
        "query_string": b"",
        "headers": raw_headers,
    }


@pytest.fixture
def make_request() -> Callable[..., HttpHandshakeRequest]:
    """
    Factory for upgrade requests.

    Usage:
        def test_something(make_request):
            request = make_request(headers=[("Cookie", "awsappcookie=1")])
    """
    def _make(path: str = "/helloworld", headers: Optional[List[Tuple[str, str]]] = None) -> HttpHandshakeRequest:
        return HttpHandshakeRequest(HTTPConnection(build_scope(path, headers)))

    return _make


@pytest.fixture
def handshake_response() -> HttpHandshakeResponse:
    return HttpHandshakeResponse()


# =============================================================================
# Configuration
# =============================================================================

class StaticConfigProvider:
    """ConfigProvider returning fixed values."""

    def __init__(
        self,
        kms_url: str = "ws://kms.test:8888/kurento",
        cookie_name: str = "awsappcookie",
        strict: bool = True,
        max_text_message_buffer_size: int = 32768,
    ):
        self.kms_url = kms_url
        self.cookie_name = cookie_name
        self.strict = strict
        self.max_text_message_buffer_size = max_text_message_buffer_size

    def get_server_config(self) -> ServerConfig:
        return ServerConfig(host="127.0.0.1", port=8443, log_level="INFO", debug=False)

    def get_kurento_config(self) -> KurentoConfig:
        return KurentoConfig(url=self.kms_url)

    def get_session_cookie_config(self) -> SessionCookieConfig:
        return SessionCookieConfig(name=self.cookie_name, strict=self.strict)

    def get_container_config(self) -> WebSocketContainerConfig:
        return WebSocketContainerConfig(max_text_message_buffer_size=self.max_text_message_buffer_size)


@pytest.fixture
def static_config() -> StaticConfigProvider:
    return StaticConfigProvider()


# =============================================================================
# Kurento Transport Mocking
# =============================================================================

def pong_responder(request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Answer every request like a healthy media server."""
    if request["method"] == "ping":
        result = {"value": "pong", "sessionId": "kms-session-1"}
    else:
        result = {"value": f"{request['method']}-ok"}
    return {"jsonrpc": "2.0", "id": request["id"], "result": result}


class FakeKurentoConnection:
    """
    In-memory replacement for a websockets client connection.

    Every sent request is recorded and passed to ``responder``; a non-None
    return value is delivered back as the server's reply.
    """

    def __init__(self, responder: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]] = pong_responder):
        self.responder = responder
        self.sent: List[Dict[str, Any]] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, raw: str) -> None:
        request = json.loads(raw)
        self.sent.append(request)
        reply = self.responder(request)
        if reply is not None:
            await self._incoming.put(json.dumps(reply))

    async def push(self, message: Any) -> None:
        """Deliver a server-initiated message."""
        await self._incoming.put(json.dumps(message))

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._incoming.get()
        if item is None:
            raise StopAsyncIteration
        return item

    async def drop(self) -> None:
        """End the message stream as if the server went away."""
        await self._incoming.put(None)

    async def close(self) -> None:
        self.closed = True
        await self._incoming.put(None)


@pytest.fixture
def fake_connection_factory():
    """Build FakeKurentoConnection instances inside the running test loop."""
    return FakeKurentoConnection


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring a running media server"
    )
