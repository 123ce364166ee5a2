"""Request and response views of a WebSocket upgrade in progress."""

from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import HTTPConnection


class ServerHandshakeRequest:
    """Base type for the request side of a handshake."""


class ServerHandshakeResponse:
    """Base type for the response side of a handshake."""


class HttpHandshakeRequest(ServerHandshakeRequest):
    """Read-only view of an ASGI upgrade request."""

    def __init__(self, connection: HTTPConnection):
        self._connection = connection

    @property
    def connection(self) -> HTTPConnection:
        return self._connection

    @property
    def headers(self) -> Headers:
        return self._connection.headers

    @property
    def path(self) -> str:
        return self._connection.url.path


class HttpHandshakeResponse(ServerHandshakeResponse):
    """
    Headers to send with the upgrade response.

    The route passes ``headers.raw`` to ``WebSocket.accept`` once every
    interceptor has run, so mutations made here reach the client.
    """

    def __init__(self):
        self.headers = MutableHeaders(raw=[])
