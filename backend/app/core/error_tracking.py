"""
Sentry error tracking.

Sentry is enabled only when SENTRY_DSN is set. ``capture_error`` is safe to
call either way: without an initialized client it logs at debug level
and returns None.
"""
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.core.config import settings

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry() -> bool:
    """
    Initialize the Sentry SDK with FastAPI/Starlette integrations.

    Returns:
        True if Sentry was initialized, False if skipped (no DSN) or failed.
        Failures are logged, never raised.
    """
    global _initialized

    if not settings.SENTRY_DSN:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=f"{settings.APP_NAME}@{settings.APP_VERSION}",
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            send_default_pii=False,
            integrations=[
                # Breadcrumbs only; errors are sent explicitly by capture_error
                LoggingIntegration(level=logging.INFO, event_level=None),
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
            ],
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    _initialized = True
    logger.info(f"Sentry initialized (environment: {settings.ENV})")
    return True


def capture_error(
    exception: BaseException,
    context: Optional[Dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> Optional[str]:
    """
    Report an exception to Sentry with optional context.

    Returns:
        The Sentry event id, or None when Sentry is not initialized
    """
    if not _initialized:
        logger.debug(
            f"Sentry not initialized; not reporting {type(exception).__name__}"
        )
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("placement", context)
        if user_id is not None:
            scope.set_user({"id": str(user_id)})
        return sentry_sdk.capture_exception(exception)
