"""
Startup sequencing

Drives the connection resolver over a bounded number of rounds with linear
backoff. Exhausting every round leaves the service in degraded mode instead
of stopping the process.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from ..core.config import Settings
from .resolver import ConnectionExhaustedError, ResolvedConnection, Sleep, resolve_connection
from .schema import ensure_schema
from .session import Database

logger = logging.getLogger(__name__)

Resolver = Callable[..., Awaitable[ResolvedConnection]]


def backoff_delay(attempt: int, max_attempts: int, step: float = 5.0) -> float:
    """
    Seconds to wait after failed round ``attempt`` (1-based)

    Grows linearly (``attempt * step``); there is no wait after the final round.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    if attempt >= max_attempts:
        return 0.0
    return attempt * step


async def connect_with_retries(
    descriptors: Sequence[Optional[str]],
    settings: Settings,
    *,
    resolve: Resolver = resolve_connection,
    sleep: Sleep = asyncio.sleep
) -> Database:
    """
    Connect to the database or fall back to degraded mode

    Returns:
        A connected Database, or one without an engine if every round failed
    """
    max_rounds = settings.MAX_STARTUP_ROUNDS

    logger.info("Waiting for dependencies to be ready...")
    await sleep(settings.STARTUP_DELAY_SECONDS)

    for round_number in range(1, max_rounds + 1):
        logger.info(f"Database connection attempt {round_number}/{max_rounds}")
        try:
            resolved = await resolve(descriptors, settings, sleep=sleep)
        except ConnectionExhaustedError as e:
            logger.warning(f"Database initialization failed (attempt {round_number}): {e}")
            delay = backoff_delay(round_number, max_rounds, settings.ROUND_BACKOFF_SECONDS)
            if delay > 0:
                logger.info(f"Waiting {delay:g}s before next attempt...")
                await sleep(delay)
            continue

        return Database(
            engine=resolved.engine,
            url=resolved.url,
            route=resolved.route,
            retry_count=round_number
        )

    logger.error(f"All database connection attempts failed after {max_rounds} retries")
    logger.warning("Starting in degraded mode (without database)")
    return Database(retry_count=max_rounds)


async def start_database(settings: Settings, *, sleep: Sleep = asyncio.sleep) -> Database:
    """Connect with retries, then make sure the schema exists"""
    database = await connect_with_retries(settings.connection_descriptors, settings, sleep=sleep)
    if database.connected:
        await ensure_schema(database, settings.SCHEMA_TIMEOUT_SECONDS)
    return database
