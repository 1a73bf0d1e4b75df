"""
Lifespan startup and shutdown task functions.

Each function handles one step of the startup or shutdown sequence.
"""

import logging

logger = logging.getLogger("main")


async def initialize_logging(log_config):
    """Setup logging configuration."""
    from core.logging_config import setup_logging

    setup_logging(log_config)
    logger.info("Starting Help Desk Visits API...")


async def log_cors_configuration(settings):
    """Log CORS configuration for debugging."""
    logger.info(f"CORS Allowed Origins: {settings.cors.origins}")


async def initialize_database():
    """Create missing tables."""
    from core.database import init_db

    await init_db()
    logger.info("Database initialized")


async def bootstrap_system_admin(settings):
    """Create the configured system admin when none exists yet."""
    from api.services.admin_user_service import AdminUserService
    from core.database import AsyncSessionLocal

    bootstrap = settings.bootstrap
    if not bootstrap.admin_password:
        logger.info("No bootstrap admin password configured, skipping admin bootstrap")
        return

    async with AsyncSessionLocal() as db:
        try:
            created = await AdminUserService.ensure_bootstrap_admin(
                db, bootstrap.admin_username, bootstrap.admin_password
            )
        except Exception as e:
            logger.error(f"Bootstrap admin setup failed: {e}")
            return

    if created:
        logger.info(f"Bootstrap system admin '{bootstrap.admin_username}' created")


async def shutdown_database():
    """Close database connections."""
    from core.database import close_db

    await close_db()
    logger.info("Database connections closed")
