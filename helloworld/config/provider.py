"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Protocol


DEFAULT_KMS_URL = "ws://localhost:8888/kurento"
DEFAULT_SESSION_COOKIE_NAME = "awsappcookie"
MAX_TEXT_MESSAGE_BUFFER_SIZE = 32768


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str
    port: int
    log_level: str
    debug: bool


@dataclass
class KurentoConfig:
    """Media server connection configuration."""
    url: str


@dataclass
class SessionCookieConfig:
    """Session-affinity cookie configuration."""
    name: str = DEFAULT_SESSION_COOKIE_NAME
    strict: bool = True


@dataclass
class WebSocketContainerConfig:
    """WebSocket container settings applied to every registered route."""
    max_text_message_buffer_size: int = MAX_TEXT_MESSAGE_BUFFER_SIZE


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_server_config(self) -> ServerConfig:
        """Get HTTP server configuration."""
        ...

    def get_kurento_config(self) -> KurentoConfig:
        """Get media server configuration."""
        ...

    def get_session_cookie_config(self) -> SessionCookieConfig:
        """Get session cookie configuration."""
        ...

    def get_container_config(self) -> WebSocketContainerConfig:
        """Get WebSocket container configuration."""
        ...


def _env_flag(name: str, default: str) -> bool:
    value = os.getenv(name, default).strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_server_config(self) -> ServerConfig:
        """Get HTTP server configuration from environment variables."""
        port_env = os.getenv("APP_PORT", "8443")
        try:
            port = int(port_env)
        except ValueError:
            raise ValueError(f"APP_PORT must be an integer, got {port_env!r}") from None

        return ServerConfig(
            host=os.getenv("APP_HOST", "0.0.0.0"),
            port=port,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            debug=_env_flag("APP_DEBUG", "false"),
        )

    def get_kurento_config(self) -> KurentoConfig:
        """Get media server configuration from environment variables."""
        url = os.getenv("KMS_URL", DEFAULT_KMS_URL)
        if not url.startswith(("ws://", "wss://")):
            raise ValueError(f"KMS_URL must be a ws:// or wss:// URL, got {url!r}")
        return KurentoConfig(url=url)

    def get_session_cookie_config(self) -> SessionCookieConfig:
        """Get session cookie configuration from environment variables."""
        name = os.getenv("SESSION_COOKIE_NAME", DEFAULT_SESSION_COOKIE_NAME).strip()
        if not name or any(c in name for c in "=; ,\t"):
            raise ValueError(f"SESSION_COOKIE_NAME is not a valid cookie name: {name!r}")

        return SessionCookieConfig(
            name=name,
            strict=_env_flag("SESSION_COOKIE_STRICT", "true"),
        )

    def get_container_config(self) -> WebSocketContainerConfig:
        """Container limits are fixed; they are not read from the environment."""
        return WebSocketContainerConfig()
