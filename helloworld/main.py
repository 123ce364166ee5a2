#!/usr/bin/env python3
"""
Hello World - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the handler, Kurento client and WebSocket container settings
3. Registers the /helloworld WebSocket route with its handshake interceptor
4. Runs the server

All behavior lives in the modules; nothing here is discovered by scanning.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from helloworld import __version__
from helloworld.config.provider import ConfigProvider, EnvConfigProvider
from helloworld.logging_config import configure_logging, get_logging_config
from helloworld.modules.handler import HelloWorldHandler
from helloworld.modules.handshake import SessionCookieInterceptor
from helloworld.modules.kurento import KurentoClient
from helloworld.modules.websocket import WebSocketHandlerRegistry

logger = logging.getLogger(__name__)

HELLOWORLD_PATH = "/helloworld"


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    kurento_client: Optional[KurentoClient] = None,
) -> FastAPI:
    """
    Build the application and its collaborators.

    Args:
        config_provider: Source of configuration (default: environment variables)
        kurento_client: Media server client (default: KurentoClient.create() for the configured URL)

    Returns:
        FastAPI application with the signaling route installed
    """
    config_provider = config_provider or EnvConfigProvider()
    cookie_config = config_provider.get_session_cookie_config()
    container_config = config_provider.get_container_config()

    if kurento_client is None:
        kurento_client = KurentoClient.create(config_provider.get_kurento_config().url)
    handler = HelloWorldHandler(kurento_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Release the media server connection on shutdown."""
        logger.info("Starting Hello World signaling service...")
        yield
        logger.info("Shutting down Hello World signaling service...")
        await kurento_client.close()
        logger.info("Hello World signaling service shutdown complete")

    app = FastAPI(
        title="Kurento Hello World",
        description="WebSocket signaling endpoint for a Kurento Media Server",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.kurento_client = kurento_client
    app.state.handler = handler

    registry = WebSocketHandlerRegistry(container_config)
    registry.add_handler(handler, HELLOWORLD_PATH).add_interceptors(
        SessionCookieInterceptor(cookie_name=cookie_config.name, strict=cookie_config.strict)
    )
    registry.install(app)

    @app.get("/health")
    async def health_check():
        """Liveness check; does not contact the media server."""
        return {
            "status": "healthy",
            "version": __version__,
            "kurento": {
                "url": kurento_client.url,
                "connected": kurento_client.is_connected,
            },
        }

    return app


def main() -> None:
    """Run the signaling service with uvicorn."""
    config_provider = EnvConfigProvider()
    server_config = config_provider.get_server_config()
    container_config = config_provider.get_container_config()

    configure_logging(server_config.log_level)
    logger.info(f"Listening on {server_config.host}:{server_config.port}")

    uvicorn.run(
        "helloworld.main:create_app",
        factory=True,
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
        reload=server_config.debug,
        log_config=get_logging_config(server_config.log_level),
        ws_max_size=container_config.max_text_message_buffer_size,
    )


if __name__ == "__main__":
    main()
