"""
Handshake Module - Black Box Interface

Purpose: Hooks around each WebSocket upgrade
Interface: HandshakeInterceptor protocol, SessionCookieInterceptor, request/response views
Hidden: Cookie header parsing, clock source

Interceptors only see transport-neutral request/response types; anything that
is not the ASGI variant is left alone.
"""

from .interceptor import (
    COOKIE_HEADER,
    HEADERS_ATTRIBUTE,
    SET_COOKIE_HEADER,
    HandshakeInterceptor,
    SessionCookieInterceptor,
    current_time_millis,
    has_cookie,
)
from .transport import (
    HttpHandshakeRequest,
    HttpHandshakeResponse,
    ServerHandshakeRequest,
    ServerHandshakeResponse,
)

__all__ = [
    "COOKIE_HEADER",
    "HEADERS_ATTRIBUTE",
    "SET_COOKIE_HEADER",
    "HandshakeInterceptor",
    "HttpHandshakeRequest",
    "HttpHandshakeResponse",
    "ServerHandshakeRequest",
    "ServerHandshakeResponse",
    "SessionCookieInterceptor",
    "current_time_millis",
    "has_cookie",
]
