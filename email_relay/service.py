"""Process entry point: Kafka worker first, then the HTTP server.

The worker must connect and subscribe before any HTTP traffic is served. If it
cannot, the process exits non-zero instead of running half-initialized.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from .adapters.consumer_handler import SEND_EMAIL_TOPIC
from .adapters.kafka_runtime import EmailRelayWorker
from .api import create_app
from .application.dispatch import MailDispatcher
from .config import ConfigError, RelayConfig
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def run_service(config: RelayConfig | None = None) -> int:
    """Run the relay until interrupted. Returns the process exit code."""
    if config is None:
        try:
            config = RelayConfig.from_env()
        except ConfigError as exc:
            configure_logging()
            logger.error("[SERVICE ERROR] invalid configuration: %s", exc)
            return 1

    configure_logging(config.log_level)
    dispatcher = MailDispatcher.from_config(config)
    worker = EmailRelayWorker(config, send_mail=dispatcher.send_mail)

    try:
        worker.start()
    except Exception as exc:
        logger.error("[SERVICE ERROR] Error starting email service: %s", exc)
        return 1

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            worker.stop(timeout=config.kafka_poll_timeout_seconds + 5)

    app = create_app(config, dispatcher, lifespan=lifespan)

    logger.info("[SERVICE START] Email Service running on port %s", config.port)
    logger.info("[SERVICE START] Email provider: %s", dispatcher.provider_name)
    logger.info("[SERVICE START] Health check: http://localhost:%s/health", config.port)
    logger.info("[SERVICE START] Listening to Kafka topic: %s", SEND_EMAIL_TOPIC)

    try:
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    finally:
        worker.stop(timeout=config.kafka_poll_timeout_seconds + 5)
    return 0


def main() -> int:
    return run_service()


if __name__ == "__main__":
    sys.exit(main())
