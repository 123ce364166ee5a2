"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: ConfigProvider protocol, EnvConfigProvider, config dataclasses
Hidden: Environment parsing and validation
"""

from .provider import (
    DEFAULT_KMS_URL,
    DEFAULT_SESSION_COOKIE_NAME,
    MAX_TEXT_MESSAGE_BUFFER_SIZE,
    ConfigProvider,
    EnvConfigProvider,
    KurentoConfig,
    ServerConfig,
    SessionCookieConfig,
    WebSocketContainerConfig,
)

__all__ = [
    "DEFAULT_KMS_URL",
    "DEFAULT_SESSION_COOKIE_NAME",
    "MAX_TEXT_MESSAGE_BUFFER_SIZE",
    "ConfigProvider",
    "EnvConfigProvider",
    "KurentoConfig",
    "ServerConfig",
    "SessionCookieConfig",
    "WebSocketContainerConfig",
]
