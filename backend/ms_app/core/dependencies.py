"""
Dependency injection for ms_app
Hands the shared Database and services to request handlers
"""

from fastapi import Depends, Request

from .config import Settings
from .exceptions import DatabaseUnavailableException
from ..db.session import Database
from ..services.user_service import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """The Database attached at startup; an unconnected one before that"""
    database = getattr(request.app.state, "database", None)
    return database if database is not None else Database()


def get_user_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings)
) -> UserService:
    """UserService for the request; 503 when running without a database"""
    if not database.connected:
        raise DatabaseUnavailableException("Database not connected")
    return UserService(database, timeout=settings.QUERY_TIMEOUT_SECONDS)
