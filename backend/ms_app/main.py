# ms_app/main.py
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv

load_dotenv()

from .core.config import Settings, settings as default_settings
from .core.exceptions import ServiceException, service_exception_handler, http_exception_handler
from .api.middleware import LoggingMiddleware, InstanceHeaderMiddleware
from .api import health, pages, users
from .db.session import Database
from .db.startup import start_database
from .utils.logging_filter import setup_secure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the database before serving, dispose of the pool afterwards"""
    settings: Settings = app.state.settings

    logger.info("Starting ms_app...")

    if app.state.database is None:
        app.state.database = await start_database(settings)

    database: Database = app.state.database
    if database.connected:
        logger.info(f"Database ready via {database.url} ({database.route})")
    else:
        logger.warning("Serving in degraded mode: database endpoints will return 503")

    logger.info(f"Health check available at: http://{settings.HOST}:{settings.PORT}/health")
    logger.info(f"Users API available at: http://{settings.HOST}:{settings.PORT}/users")

    yield

    logger.info("Application shutting down...")
    try:
        await database.dispose()
    except Exception as e:
        logger.warning(f"Cleanup error: {str(e)}")
    logger.info("Application shutdown completed")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration; the environment-derived settings by default
        database: Pre-built database handle. When given, startup does not
            connect on its own (used by tests and embedding callers).
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        description="Replicated PostgreSQL demo service",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(InstanceHeaderMiddleware, service_name=settings.APP_NAME, version=settings.APP_VERSION)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(ServiceException, service_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(health.router, tags=["health"])
    app.include_router(users.router, tags=["users"])
    app.include_router(pages.router, tags=["pages"])

    return app


app = create_app()


def run() -> None:
    """Serve the application; failing to bind the port is fatal"""
    import uvicorn

    setup_secure_logging(default_settings.LOG_LEVEL)
    logger.info(f"Server starting on port {default_settings.PORT}")
    uvicorn.run(
        app,
        host=default_settings.HOST,
        port=default_settings.PORT,
        proxy_headers=True,
        forwarded_allow_ips=default_settings.FORWARDED_ALLOW_IPS,
        log_config=None,
        log_level=default_settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
