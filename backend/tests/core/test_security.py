"""
Tests for JWT helpers and the bearer-token dependency.
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.auth import _decode_and_validate_token
from app.core.config import settings
from app.core.security import create_access_token, decode_token, verify_token_type


class TestTokens:
    """Tests for create_access_token and decode_token."""

    def test_round_trip(self):
        token = create_access_token({"user_id": 7})

        payload = decode_token(token)

        assert payload["user_id"] == 7
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token(self):
        token = create_access_token({"user_id": 7}, expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None

    def test_garbage_token(self):
        assert decode_token("not-a-jwt") is None

    def test_missing_type_treated_as_access(self):
        assert verify_token_type({"user_id": 1}, "access") is True
        assert verify_token_type({"type": "refresh"}, "access") is False


class TestDecodeAndValidateToken:
    """Tests for _decode_and_validate_token."""

    def test_valid_token(self):
        assert _decode_and_validate_token(create_access_token({"user_id": 3})) == 3

    def test_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            _decode_and_validate_token("bogus")

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"user_id": 3, "type": "refresh"},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(HTTPException) as exc_info:
            _decode_and_validate_token(token)

        assert exc_info.value.status_code == 401

    def test_missing_user_id(self):
        with pytest.raises(HTTPException) as exc_info:
            _decode_and_validate_token(create_access_token({"sub": "someone"}))

        assert exc_info.value.status_code == 401

    def test_non_integer_user_id(self):
        with pytest.raises(HTTPException):
            _decode_and_validate_token(create_access_token({"user_id": "3"}))
