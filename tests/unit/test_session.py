"""Tests pour auth/session.py — lecture du jeton de session."""

from __future__ import annotations

import datetime

import jwt
import pytest

from pantheres_finance.auth.rbac import Role
from pantheres_finance.auth.session import decode_session_token, extract_token
from pantheres_finance.models import AccesRefuseError, NonAuthentifieError

SECRET = "test-secret"


def _token(role: object = "tresorier", *, secret: str = SECRET, expires_in: int = 3600, **extra: object) -> str:
    claims: dict[str, object] = {
        "sub": "user-1",
        "email": "tresorier@pantheres.com",
        "exp": datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(seconds=expires_in),
        "user_metadata": {"role": role},
    }
    claims.update(extra)
    return jwt.encode(claims, secret, algorithm="HS256")


class TestExtractToken:
    def test_bearer_header(self) -> None:
        assert extract_token("Bearer abc", None) == "abc"

    def test_header_wins_over_cookie(self) -> None:
        assert extract_token("bearer abc", "cookie") == "abc"

    def test_cookie_fallback(self) -> None:
        assert extract_token("Basic xyz", " cookie ") == "cookie"

    def test_nothing(self) -> None:
        assert extract_token(None, None) is None
        assert extract_token("Bearer ", "") is None


class TestDecodeSessionToken:
    def test_valid(self) -> None:
        user = decode_session_token(_token("Bureau"), SECRET)
        assert user.user_id == "user-1"
        assert user.email == "tresorier@pantheres.com"
        assert user.role == Role.BUREAU

    def test_missing_token(self) -> None:
        with pytest.raises(NonAuthentifieError):
            decode_session_token(None, SECRET)

    def test_secret_not_configured(self) -> None:
        with pytest.raises(NonAuthentifieError):
            decode_session_token(_token(), "")

    def test_expired(self) -> None:
        with pytest.raises(NonAuthentifieError, match="expirée"):
            decode_session_token(_token(expires_in=-10), SECRET)

    def test_wrong_signature(self) -> None:
        with pytest.raises(NonAuthentifieError, match="invalide"):
            decode_session_token(_token(secret="autre-secret"), SECRET)

    def test_missing_email(self) -> None:
        with pytest.raises(NonAuthentifieError, match="email"):
            decode_session_token(_token(email=""), SECRET)

    @pytest.mark.parametrize("role", ["admin", None, 3])
    def test_unknown_role_denied(self, role: object) -> None:
        with pytest.raises(AccesRefuseError):
            decode_session_token(_token(role), SECRET)

    def test_missing_metadata_denied(self) -> None:
        with pytest.raises(AccesRefuseError):
            decode_session_token(_token(user_metadata=None), SECRET)
