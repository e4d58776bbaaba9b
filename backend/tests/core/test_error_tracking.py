"""
Tests for Sentry initialization and error capture.
"""
from unittest.mock import MagicMock, patch

import pytest

from app.core import error_tracking


@pytest.fixture(autouse=True)
def reset_initialized():
    error_tracking._initialized = False
    yield
    error_tracking._initialized = False


class TestInitSentry:
    """Tests for the init_sentry() function."""

    def test_returns_false_when_dsn_is_empty(self):
        with patch.object(error_tracking.settings, "SENTRY_DSN", ""), patch(
            "app.core.error_tracking.sentry_sdk.init"
        ) as mock_init:
            assert error_tracking.init_sentry() is False

        mock_init.assert_not_called()

    def test_initializes_with_settings(self):
        with patch.object(
            error_tracking.settings, "SENTRY_DSN", "https://public@sentry.io/123456"
        ), patch("app.core.error_tracking.sentry_sdk.init") as mock_init:
            assert error_tracking.init_sentry() is True

        call_kwargs = mock_init.call_args[1]
        assert call_kwargs["dsn"] == "https://public@sentry.io/123456"
        assert call_kwargs["send_default_pii"] is False
        integration_names = {
            type(integration).__name__ for integration in call_kwargs["integrations"]
        }
        assert {"FastApiIntegration", "StarletteIntegration"} <= integration_names

    def test_init_failure_is_logged_not_raised(self):
        with patch.object(
            error_tracking.settings, "SENTRY_DSN", "https://public@sentry.io/123456"
        ), patch(
            "app.core.error_tracking.sentry_sdk.init",
            side_effect=Exception("bad dsn"),
        ):
            assert error_tracking.init_sentry() is False

        assert error_tracking._initialized is False


class TestCaptureError:
    """Tests for capture_error()."""

    def test_noop_when_not_initialized(self):
        with patch(
            "app.core.error_tracking.sentry_sdk.capture_exception"
        ) as mock_capture:
            assert error_tracking.capture_error(RuntimeError("boom")) is None

        mock_capture.assert_not_called()

    def test_skipped_capture_is_logged(self):
        with patch("app.core.error_tracking.logger") as mock_logger:
            error_tracking.capture_error(KeyError("missing"))

        mock_logger.debug.assert_called_once()
        assert "KeyError" in mock_logger.debug.call_args[0][0]

    def test_captures_with_context_and_user(self):
        error_tracking._initialized = True
        scope = MagicMock()
        scope_cm = MagicMock()
        scope_cm.__enter__.return_value = scope
        error = RuntimeError("boom")

        with patch(
            "app.core.error_tracking.sentry_sdk.new_scope", return_value=scope_cm
        ), patch(
            "app.core.error_tracking.sentry_sdk.capture_exception",
            return_value="event-1",
        ) as mock_capture:
            event_id = error_tracking.capture_error(
                error, context={"path": "/v1/placement-test/start"}, user_id=5
            )

        assert event_id == "event-1"
        mock_capture.assert_called_once_with(error)
        scope.set_context.assert_called_once_with(
            "placement", {"path": "/v1/placement-test/start"}
        )
        scope.set_user.assert_called_once_with({"id": "5"})
