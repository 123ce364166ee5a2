"""Handshake interceptors run around every WebSocket upgrade."""

import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from ...config.provider import DEFAULT_SESSION_COOKIE_NAME
from .transport import (
    HttpHandshakeRequest,
    HttpHandshakeResponse,
    ServerHandshakeRequest,
    ServerHandshakeResponse,
)

logger = logging.getLogger(__name__)

COOKIE_HEADER = "cookie"
SET_COOKIE_HEADER = "set-cookie"
HEADERS_ATTRIBUTE = "headers"


class HandshakeInterceptor(Protocol):
    """Protocol for objects hooked into the WebSocket upgrade."""

    def before_handshake(
        self,
        request: ServerHandshakeRequest,
        response: ServerHandshakeResponse,
        handler: Any,
        attributes: Dict[str, Any],
    ) -> bool:
        """
        Called before the upgrade is accepted.

        Args:
            request: Upgrade request
            response: Upgrade response, headers still mutable
            handler: Handler that will receive the connection
            attributes: Per-handshake attributes later handed to the handler

        Returns:
            True to proceed with the upgrade, False to reject it
        """
        ...

    def after_handshake(
        self,
        request: ServerHandshakeRequest,
        response: ServerHandshakeResponse,
        handler: Any,
        exc: Optional[BaseException],
    ) -> None:
        """Called once the upgrade attempt has completed, successfully or not."""
        ...


def current_time_millis() -> int:
    """Wall-clock milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def has_cookie(header_values: Iterable[str], name: str, strict: bool = True) -> bool:
    """
    Check whether any Cookie header value carries the named cookie.

    In strict mode each value is split into ``name=value`` pairs and a pair
    name must equal ``name``. Otherwise the raw value only has to contain
    ``name`` as a substring.
    """
    for value in header_values:
        if not strict:
            if name in value:
                return True
            continue
        for pair in value.split(";"):
            pair_name, _, _ = pair.partition("=")
            if pair_name.strip() == name:
                return True
    return False


class SessionCookieInterceptor:
    """
    Stamp a session-affinity cookie on upgrade responses that lack one.

    A load balancer keyed on the cookie can then pin the client to this
    backend. The upgrade is never rejected.
    """

    def __init__(
        self,
        cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        strict: bool = True,
        clock: Callable[[], int] = current_time_millis,
    ):
        """
        Initialize the interceptor.

        Args:
            cookie_name: Name of the session cookie to look for and set
            strict: Match cookie names exactly instead of by substring
            clock: Source of the cookie value, in epoch milliseconds
        """
        self.cookie_name = cookie_name
        self.strict = strict
        self.clock = clock

    def before_handshake(
        self,
        request: ServerHandshakeRequest,
        response: ServerHandshakeResponse,
        handler: Any,
        attributes: Dict[str, Any],
    ) -> bool:
        if not isinstance(request, HttpHandshakeRequest):
            return True

        path = request.path
        if has_cookie(request.headers.getlist(COOKIE_HEADER), self.cookie_name, self.strict):
            logger.info(f"Request already contains cookie header, path - {path}")
            return True

        if isinstance(response, HttpHandshakeResponse):
            response.headers.append(SET_COOKIE_HEADER, f"{self.cookie_name}={self.clock()}")
            attributes[HEADERS_ATTRIBUTE] = response.headers
            logger.info(f"Cookie header is added to response, path - {path}")

        return True

    def after_handshake(
        self,
        request: ServerHandshakeRequest,
        response: ServerHandshakeResponse,
        handler: Any,
        exc: Optional[BaseException],
    ) -> None:
        pass
