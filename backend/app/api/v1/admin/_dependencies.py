"""
Shared dependencies for admin endpoints.
"""
import logging
import secrets

from fastapi import Header

from app.core.config import settings
from app.core.error_responses import (
    ErrorMessages,
    raise_not_configured,
    raise_unauthorized,
)

logger = logging.getLogger(__name__)


async def verify_admin_token(x_admin_token: str = Header(...)) -> bool:
    """
    Verify the admin token from the X-Admin-Token header.

    Uses constant-time comparison to prevent timing attacks.

    Raises:
        HTTPException: 500 if ADMIN_TOKEN is not configured, 401 if invalid
    """
    if not settings.ADMIN_TOKEN:
        raise_not_configured(ErrorMessages.ADMIN_TOKEN_NOT_CONFIGURED)

    if not secrets.compare_digest(
        x_admin_token.encode("utf-8"), settings.ADMIN_TOKEN.encode("utf-8")
    ):
        logger.warning("Rejected admin request with invalid X-Admin-Token")
        raise_unauthorized(
            ErrorMessages.ADMIN_TOKEN_INVALID, include_www_authenticate=False
        )

    return True
