"""
Application lifespan manager.

This module provides the lifespan context manager that handles
startup and shutdown events for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import settings
from core.logging_config import LogConfig, stop_queue_listener
from . import tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    log_config = LogConfig(**settings.logging.log_config)
    await tasks.initialize_logging(log_config)

    logger = logging.getLogger("main")

    # Startup
    await tasks.log_cors_configuration(settings)
    await tasks.initialize_database()
    await tasks.bootstrap_system_admin(settings)

    yield

    # Shutdown
    logger.info("Shutting down Help Desk Visits API...")

    await tasks.shutdown_database()

    stop_queue_listener()
