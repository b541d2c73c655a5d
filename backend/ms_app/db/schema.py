"""
Schema initialization

Ensures the users table exists. Runs once at startup and only when a
connection was obtained.
"""

import asyncio
import logging

from ..models import Base
from .session import Database

logger = logging.getLogger(__name__)


async def ensure_schema(database: Database, timeout: float) -> bool:
    """
    Create missing tables (``CREATE TABLE IF NOT EXISTS`` semantics)

    Returns:
        True if the schema is in place, False if there is no connection or
        the statement failed. Failure is not fatal.
    """
    if not database.connected:
        logger.info("Skipping schema initialization: database not initialized")
        return False

    try:
        async with asyncio.timeout(timeout):
            async with database.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    except TimeoutError:
        logger.warning(f"Could not create table: timed out after {timeout}s")
        return False
    except Exception as e:
        logger.warning(f"Could not create table: {e}")
        return False

    logger.info("Database table checked/created successfully")
    return True
