"""
Database handle for ms_app
Async SQLAlchemy engine construction and the shared Database object
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import Settings
from ..utils.logging_filter import mask_password

logger = logging.getLogger(__name__)

ASYNC_POSTGRES_DRIVER = "postgresql+asyncpg"


def normalize_url(descriptor: str) -> URL:
    """
    Parse a connection descriptor into a SQLAlchemy URL for an async driver

    libpq-style ``postgres://`` / ``postgresql://`` URLs are mapped to
    asyncpg and their ``sslmode`` parameter is renamed to asyncpg's ``ssl``.

    Raises:
        sqlalchemy.exc.ArgumentError: If the descriptor cannot be parsed
    """
    url = make_url(descriptor.strip())

    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=ASYNC_POSTGRES_DRIVER)

    if url.drivername == ASYNC_POSTGRES_DRIVER and "sslmode" in url.query:
        sslmode = url.query["sslmode"]
        url = url.difference_update_query(["sslmode"]).update_query_dict({"ssl": sslmode})

    return url


def is_postgres(url: URL) -> bool:
    return url.get_backend_name() == "postgresql"


def create_engine_for(url: URL, settings: Settings) -> AsyncEngine:
    """
    Create an async engine with the configured pool limits

    Creating the engine does not connect; errors raised here mean the URL
    names an unknown dialect or a driver that is not installed.
    """
    if is_postgres(url):
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            pool_size=settings.POOL_SIZE,          # max open == max idle
            max_overflow=0,
            pool_timeout=settings.QUERY_TIMEOUT_SECONDS,
            pool_recycle=settings.POOL_RECYCLE_SECONDS,
            pool_pre_ping=True,
            connect_args={
                "timeout": settings.CONNECT_TIMEOUT_SECONDS,
                "server_settings": {"application_name": "ms_app"}
            }
        )

    # SQLite (local development and tests)
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        connect_args={"timeout": settings.QUERY_TIMEOUT_SECONDS}
    )


class Database:
    """
    Shared database handle

    Created once at startup and only read afterwards. ``engine`` is None in
    degraded mode.
    """

    def __init__(
        self,
        engine: Optional[AsyncEngine] = None,
        url: Optional[str] = None,
        route: Optional[str] = None,
        retry_count: int = 0
    ):
        self.engine = engine
        self.url = mask_password(url) if url else None
        self.route = route
        self.retry_count = retry_count
        self._sessionmaker = (
            async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
            if engine is not None else None
        )

    @property
    def connected(self) -> bool:
        return self.engine is not None

    @property
    def is_postgres(self) -> bool:
        return self.engine is not None and is_postgres(self.engine.url)

    def session(self) -> AsyncSession:
        """Open a new ORM session on the shared pool"""
        if self._sessionmaker is None:
            raise RuntimeError("database not initialized")
        return self._sessionmaker()

    async def ping(self, timeout: float) -> None:
        """Run a liveness query, raising on failure or timeout"""
        if self.engine is None:
            raise RuntimeError("database not initialized")
        await ping_engine(self.engine, timeout)

    async def server_address(self, timeout: float) -> Optional[str]:
        """
        Best-effort address of the server that answered

        Only PostgreSQL exposes ``inet_server_addr()``; any failure returns None.
        """
        if not self.is_postgres:
            return None
        try:
            async with asyncio.timeout(timeout):
                async with self.engine.connect() as conn:
                    result = await conn.execute(text("SELECT inet_server_addr()"))
                    address = result.scalar()
            return str(address) if address is not None else None
        except Exception as e:
            logger.debug(f"Could not resolve database server address: {e}")
            return None

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database connections cleaned up")


async def ping_engine(engine: AsyncEngine, timeout: float) -> None:
    """Check out a connection and run ``SELECT 1`` within ``timeout`` seconds"""
    async with asyncio.timeout(timeout):
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
