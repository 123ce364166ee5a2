"""
WebSocket Module - Black Box Interface

Purpose: Register WebSocket handlers and their handshake interceptors on an ASGI app
Interface: WebSocketHandlerRegistry, WebSocketHandler protocol, WebSocketSession
Hidden: Interceptor chaining, upgrade acceptance, message size limits
"""

from .registry import (
    CLOSE_MESSAGE_TOO_BIG,
    CLOSE_NORMAL,
    CLOSE_POLICY_VIOLATION,
    CLOSE_SERVER_ERROR,
    CLOSE_UNSUPPORTED_DATA,
    WebSocketHandler,
    WebSocketHandlerRegistration,
    WebSocketHandlerRegistry,
    WebSocketSession,
)

__all__ = [
    "CLOSE_MESSAGE_TOO_BIG",
    "CLOSE_NORMAL",
    "CLOSE_POLICY_VIOLATION",
    "CLOSE_SERVER_ERROR",
    "CLOSE_UNSUPPORTED_DATA",
    "WebSocketHandler",
    "WebSocketHandlerRegistration",
    "WebSocketHandlerRegistry",
    "WebSocketSession",
]
