"""
Handler Module - Black Box Interface

Purpose: Receive upgraded signaling connections for /helloworld
Interface: HelloWorldHandler
Hidden: Message parsing and dispatch
"""

from .handler import HelloWorldHandler, MessageOperation

__all__ = ["HelloWorldHandler", "MessageOperation"]
