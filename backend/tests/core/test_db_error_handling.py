"""
Tests for the handle_db_error context manager.
"""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_error_handling import DatabaseOperationError, handle_db_error
from app.core.exceptions import ConflictError, PlacementError


def create_mock_db():
    """Create an AsyncMock that passes isinstance(mock, AsyncSession) check."""
    return AsyncMock(spec=AsyncSession)


class TestDatabaseOperationError:
    """Tests for the DatabaseOperationError exception class."""

    def test_default_message(self):
        original = SQLAlchemyError("connection lost")

        error = DatabaseOperationError("allow placement retake", original)

        assert error.message == "Failed to allow placement retake."
        assert error.original_error is original
        assert error.status_code == 500

    def test_custom_message(self):
        error = DatabaseOperationError(
            "complete placement test",
            SQLAlchemyError("boom"),
            message="Custom error message",
        )

        assert str(error) == "Custom error message"

    def test_is_placement_error(self):
        assert issubclass(DatabaseOperationError, PlacementError)


class TestHandleDbError:
    """Tests for the handle_db_error context manager."""

    async def test_success_case_no_rollback(self):
        db = create_mock_db()
        result = []

        async with handle_db_error(db, "test operation"):
            result.append("executed")

        assert result == ["executed"]
        db.rollback.assert_not_called()

    async def test_sqlalchemy_error_wrapped(self):
        db = create_mock_db()
        original = IntegrityError("INSERT", {}, Exception("constraint"))

        with pytest.raises(DatabaseOperationError) as exc_info:
            async with handle_db_error(db, "complete placement test"):
                raise original

        db.rollback.assert_awaited_once()
        assert exc_info.value.original_error is original
        assert exc_info.value.__cause__ is original

    async def test_placement_error_propagates_unchanged(self):
        db = create_mock_db()
        error = ConflictError("already in progress", session_id=3)

        with pytest.raises(ConflictError) as exc_info:
            async with handle_db_error(db, "start placement test"):
                raise error

        db.rollback.assert_awaited_once()
        assert exc_info.value is error

    async def test_other_exceptions_not_caught(self):
        db = create_mock_db()

        with pytest.raises(KeyError):
            async with handle_db_error(db, "test operation"):
                raise KeyError("missing")

        db.rollback.assert_not_called()
