"""
Connection resolver

Tries candidate connection descriptors in priority order and returns the
first one that both opens and answers a liveness probe.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine

from ..core.config import Settings
from ..utils.logging_filter import mask_password
from .session import create_engine_for, normalize_url, ping_engine

logger = logging.getLogger(__name__)

EngineFactory = Callable[[URL, Settings], AsyncEngine]
Sleep = Callable[[float], Awaitable[None]]


class RouteKind:
    """How the winning descriptor reaches the database"""
    LOAD_BALANCER = "load balancer"
    PRIMARY = "primary"
    REPLICA = "replica"
    DIRECT = "direct"


@dataclass
class ResolvedConnection:
    """An opened and probed engine together with the descriptor that produced it"""
    engine: AsyncEngine
    url: str
    route: str


class ConnectionExhaustedError(Exception):
    """Raised when no descriptor produced a working connection"""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        if last_error is None:
            message = "no database connection descriptors configured"
        else:
            message = (
                f"failed to connect to database after {attempts} attempt(s). "
                f"Last error: {mask_password(str(last_error))}"
            )
        super().__init__(message)


def classify_route(url: URL) -> str:
    """Guess the route from the host name of a descriptor"""
    host = (url.host or "").lower()
    if "haproxy" in host:
        return RouteKind.LOAD_BALANCER
    if "master" in host or "primary" in host:
        return RouteKind.PRIMARY
    if "slave" in host or "replica" in host:
        return RouteKind.REPLICA
    return RouteKind.DIRECT


async def resolve_connection(
    descriptors: Sequence[Optional[str]],
    settings: Settings,
    *,
    engine_factory: EngineFactory = create_engine_for,
    sleep: Sleep = asyncio.sleep
) -> ResolvedConnection:
    """
    Return the first descriptor that opens and answers ``SELECT 1``

    Empty descriptors are skipped. After a failed open or probe the resolver
    waits ``ATTEMPT_DELAY_SECONDS`` before moving to the next descriptor.

    Args:
        descriptors: Connection URLs in priority order
        settings: Pool limits, timeouts and delays
        engine_factory: Builds an engine from a normalized URL
        sleep: Awaitable delay, replaceable in tests

    Returns:
        The opened connection

    Raises:
        ConnectionExhaustedError: If every descriptor failed or none was set
    """
    last_error: Optional[BaseException] = None
    attempts = 0

    for index, descriptor in enumerate(descriptors, start=1):
        if not descriptor or not descriptor.strip():
            continue

        attempts += 1
        masked = mask_password(descriptor)
        logger.info(f"Attempt {index}: trying to connect to {masked}")

        try:
            url = normalize_url(descriptor)
            engine = engine_factory(url, settings)
        except Exception as e:
            last_error = e
            logger.warning(f"Connection attempt {index} failed to open: {mask_password(str(e))}")
            await sleep(settings.ATTEMPT_DELAY_SECONDS)
            continue

        try:
            await ping_engine(engine, settings.CONNECT_TIMEOUT_SECONDS)
        except Exception as e:
            last_error = e
            reason = "timed out" if isinstance(e, TimeoutError) else mask_password(str(e))
            logger.warning(f"Ping attempt {index} failed: {reason}")
            await engine.dispose()
            await sleep(settings.ATTEMPT_DELAY_SECONDS)
            continue

        route = classify_route(url)
        logger.info(f"Successfully connected to database using: {masked} (route: {route})")
        return ResolvedConnection(engine=engine, url=descriptor, route=route)

    raise ConnectionExhaustedError(attempts, last_error)
