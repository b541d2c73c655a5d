"""
User Service Module

Reads and writes user records through the shared database handle.
Every operation is bounded by the query timeout and translates store
errors into ms_app exceptions.
"""

import asyncio
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, DisconnectionError, IntegrityError, OperationalError, SQLAlchemyError

from ..core.exceptions import (
    DatabaseException,
    DatabaseUnavailableException,
    DuplicateRecordException
)
from ..db.session import Database
from ..models import User
from ..schemas.user import UserCreated, UserResponse

logger = logging.getLogger(__name__)


def _is_unavailable(error: BaseException) -> bool:
    """True for errors meaning the store could not be reached in time"""
    if isinstance(error, (TimeoutError, OSError, OperationalError, DisconnectionError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def _is_unique_violation(error: IntegrityError) -> bool:
    # asyncpg: "duplicate key value violates unique constraint"
    # sqlite: "UNIQUE constraint failed"
    message = str(error.orig).lower()
    return "unique" in message or "duplicate key" in message


class UserService:
    """
    Service class for user records

    Stateless apart from the shared Database; safe to use from concurrent
    requests.
    """

    def __init__(self, database: Database, timeout: float = 10.0):
        """
        Initialize UserService with the shared database handle.

        Args:
            database: Connected database handle
            timeout: Seconds allowed per operation
        """
        self.database = database
        self.timeout = timeout

    async def list_users(self) -> List[UserResponse]:
        """
        Return every user ordered by id.

        Returns:
            Users, possibly an empty list

        Raises:
            DatabaseUnavailableException: Store unreachable or too slow
            DatabaseException: Any other query failure
        """
        try:
            async with asyncio.timeout(self.timeout):
                async with self.database.session() as session:
                    result = await session.execute(select(User).order_by(User.id))
                    users = result.scalars().all()
        except Exception as e:
            raise self._translate(e, "list_users") from e

        return [UserResponse.model_validate(user) for user in users]

    async def create_user(self, name: str, email: str) -> UserCreated:
        """
        Insert one user and return it with the generated id.

        Raises:
            DuplicateRecordException: Email already exists
            DatabaseUnavailableException: Store unreachable or too slow
            DatabaseException: Any other insert failure
        """
        user = User(name=name, email=email)
        try:
            async with asyncio.timeout(self.timeout):
                async with self.database.session() as session:
                    session.add(user)
                    await session.commit()
        except IntegrityError as e:
            if _is_unique_violation(e):
                logger.info(f"Rejected duplicate email {email!r}")
                raise DuplicateRecordException("Email already exists", field="email") from e
            raise self._translate(e, "create_user") from e
        except Exception as e:
            raise self._translate(e, "create_user") from e

        logger.info(f"Created user {user.id}: {user.email}")
        return UserCreated(id=user.id, name=user.name, email=user.email)

    def _translate(self, error: BaseException, operation: str) -> Exception:
        if _is_unavailable(error):
            message = "Database operation timed out" if isinstance(error, TimeoutError) else "Database unavailable"
            logger.error(f"{operation} failed: {message}: {error}")
            return DatabaseUnavailableException(message, operation=operation)
        if isinstance(error, SQLAlchemyError):
            logger.error(f"{operation} failed: {error}")
            return DatabaseException(f"Database query failed: {error}", operation=operation, table=User.__tablename__)
        logger.exception(f"{operation} failed unexpectedly")
        return DatabaseException(f"Database query failed: {error}", operation=operation, table=User.__tablename__)
