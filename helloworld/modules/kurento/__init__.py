"""
Kurento Module - Black Box Interface

Purpose: Media server client handle
Interface: KurentoClient.create(), send_request(), ping(), close()
Hidden: JSON-RPC framing, request correlation, connection management
"""

from .client import KurentoClient, KurentoConnectionError, KurentoError

__all__ = ["KurentoClient", "KurentoConnectionError", "KurentoError"]
