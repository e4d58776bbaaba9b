"""
Database error handling utilities.

Centralizes the pattern of:
1. Rolling back the database session on error
2. Logging the error with context
3. Raising a DatabaseOperationError the API maps to a 500

Usage:
    from app.core.db_error_handling import handle_db_error

    async with handle_db_error(db, "allow placement retake"):
        ...
        await db.commit()

Placement errors raised inside the block (validation, conflicts) still
roll the session back, but propagate unchanged.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PlacementError

logger = logging.getLogger(__name__)


class DatabaseOperationError(PlacementError):
    """Raised when a database operation fails.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        super().__init__(message or f"Failed to {operation_name}.")


@asynccontextmanager
async def handle_db_error(
    db: AsyncSession,
    operation_name: str,
) -> AsyncGenerator[None, None]:
    """Roll back and translate database failures for ``operation_name``.

    Raises:
        PlacementError: Re-raised unchanged after rollback
        DatabaseOperationError: Wrapping any SQLAlchemyError
    """
    try:
        yield
    except PlacementError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Database error during {operation_name}: {e}", exc_info=True)
        raise DatabaseOperationError(operation_name, e) from e
