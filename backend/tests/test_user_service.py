"""
Unit Tests: User Service
========================

Tests for the UserService class covering:
1. Listing and creating against a real (in-memory) store
2. Translation of store errors into service exceptions
3. Operation timeouts
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from ms_app.core.exceptions import (
    DatabaseException,
    DatabaseUnavailableException,
    DuplicateRecordException
)
from ms_app.services.user_service import UserService


def database_with_session(session):
    """Database double whose session() yields the given session"""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    database = Mock()
    database.session = Mock(return_value=context)
    return database


class TestUserService:
    """Test suite for UserService"""

    @pytest.fixture
    def user_service(self, database):
        return UserService(database, timeout=2)

    @pytest.mark.asyncio
    async def test_list_empty(self, user_service):
        assert await user_service.list_users() == []

    @pytest.mark.asyncio
    async def test_create_and_list(self, user_service):
        created = await user_service.create_user("Alice", "alice@example.com")

        assert created.id >= 1
        assert created.message == "User created successfully"

        users = await user_service.list_users()
        assert [(u.id, u.name, u.email) for u in users] == [(created.id, "Alice", "alice@example.com")]

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_service):
        await user_service.create_user("Alice", "alice@example.com")

        with pytest.raises(DuplicateRecordException) as exc_info:
            await user_service.create_user("Other Alice", "alice@example.com")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate_name_allowed(self, user_service):
        first = await user_service.create_user("Alice", "alice1@example.com")
        second = await user_service.create_user("Alice", "alice2@example.com")

        assert second.id > first.id

    @pytest.mark.asyncio
    async def test_unreachable_store_is_unavailable(self):
        session = Mock()
        session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection refused")))
        service = UserService(database_with_session(session), timeout=2)

        with pytest.raises(DatabaseUnavailableException) as exc_info:
            await service.list_users()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_query_error_is_internal(self):
        session = Mock()
        session.execute = AsyncMock(side_effect=ProgrammingError("SELECT", {}, Exception("relation \"users\" does not exist")))
        service = UserService(database_with_session(session), timeout=2)

        with pytest.raises(DatabaseException) as exc_info:
            await service.list_users()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        async def slow_execute(*args, **kwargs):
            await asyncio.sleep(1)

        session = Mock()
        session.execute = slow_execute
        service = UserService(database_with_session(session), timeout=0.05)

        with pytest.raises(DatabaseUnavailableException) as exc_info:
            await service.list_users()

        assert "timed out" in exc_info.value.details.message

    @pytest.mark.asyncio
    async def test_postgres_unique_violation(self):
        session = Mock()
        session.add = Mock()
        session.commit = AsyncMock(side_effect=IntegrityError(
            "INSERT", {}, Exception('duplicate key value violates unique constraint "users_email_key"')
        ))
        service = UserService(database_with_session(session), timeout=2)

        with pytest.raises(DuplicateRecordException):
            await service.create_user("A", "a@b.com")

    @pytest.mark.asyncio
    async def test_other_integrity_error_is_internal(self):
        session = Mock()
        session.add = Mock()
        session.commit = AsyncMock(side_effect=IntegrityError(
            "INSERT", {}, Exception('null value in column "name" violates not-null constraint')
        ))
        service = UserService(database_with_session(session), timeout=2)

        with pytest.raises(DatabaseException) as exc_info:
            await service.create_user("A", "a@b.com")

        assert exc_info.value.status_code == 500
