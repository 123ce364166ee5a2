"""
Hello World - Kurento signaling endpoint

A WebSocket signaling endpoint wired to a Kurento Media Server client.

Modules:
- handshake: Interceptors around the WebSocket upgrade (session-affinity cookie)
- websocket: Handler registration and route installation
- kurento: Media server client handle
- handler: /helloworld signaling handler
"""

__version__ = "1.0.0"
