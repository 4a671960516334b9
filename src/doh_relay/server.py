"""Process start-up: settings, relay construction and the ASGI server."""
from typing import Optional

import uvicorn

from .app import create_app
from .config import Settings, logger, setup_logging
from .edge import EdgeRelay
from .relay import BaseRelay
from .worker import WorkerRelay


def build_relay(settings: Settings) -> BaseRelay:
    """Instantiate the relay for the configured role."""
    if settings.role == "edge":
        return EdgeRelay(settings)
    return WorkerRelay(settings)


async def main(settings: Optional[Settings] = None):
    """Main server entry point."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    relay = build_relay(settings)
    app = create_app(relay)

    logger.info(f"Starting {settings.role} relay on {settings.listen_host}:{settings.listen_port}")
    if settings.role == "edge":
        logger.info(f"Forwarding to worker relay at {settings.worker_base}")
    if not settings.logging_enabled:
        logger.info("Per-request diagnostics disabled (set ENABLE_LOGGING=true to enable)")

    config = uvicorn.Config(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        access_log=settings.logging_enabled,
    )
    await uvicorn.Server(config).serve()
