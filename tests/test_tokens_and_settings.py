import json
from datetime import datetime, timedelta, timezone

import jwt
from jwt.utils import base64url_encode
import pytest

from todo_api.errors import InvalidToken
from todo_api.settings import DEFAULT_JWT_EXPIRY_SECONDS, get_settings, parse_duration
from todo_api.tokens import TokenIdentity, TokenService


class TestTokenService:
    def test_issue_and_verify(self, token_service):
        token = token_service.issue(7, "a@x.com")
        assert isinstance(token, str) and token
        assert token_service.verify(token) == TokenIdentity(user_id=7, email="a@x.com")

    def test_token_carries_expiry(self, token_service):
        token = token_service.issue(7, "a@x.com")
        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload["exp"] - payload["iat"] == 3600

    def test_expired_token_rejected(self):
        service = TokenService("test-secret", 3600)
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "7", "email": "a@x.com", "iat": past, "exp": past + timedelta(hours=1)},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            service.verify(token)

    def test_wrong_secret_rejected(self, token_service):
        token = TokenService("another-secret", 3600).issue(7, "a@x.com")
        with pytest.raises(InvalidToken):
            token_service.verify(token)

    def test_tampered_token_rejected(self, token_service):
        token = token_service.issue(7, "a@x.com")
        header, _, signature = token.split(".")
        forged = base64url_encode(json.dumps({"sub": "8", "email": "a@x.com", "exp": 4102444800}).encode()).decode()
        tampered = ".".join([header, forged, signature])
        with pytest.raises(InvalidToken):
            token_service.verify(tampered)

    def test_garbage_rejected(self, token_service):
        with pytest.raises(InvalidToken):
            token_service.verify("not-a-token")

    def test_missing_identity_claims_rejected(self, token_service):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        no_sub = jwt.encode({"email": "a@x.com", "exp": exp}, "test-secret", algorithm="HS256")
        bad_sub = jwt.encode({"sub": "abc", "email": "a@x.com", "exp": exp}, "test-secret", algorithm="HS256")
        no_email = jwt.encode({"sub": "7", "exp": exp}, "test-secret", algorithm="HS256")
        for token in (no_sub, bad_sub, no_email):
            with pytest.raises(InvalidToken):
                token_service.verify(token)


class TestSettings:
    @pytest.mark.parametrize(
        "value,expected",
        [("24h", 86400), ("30m", 1800), ("45s", 45), ("7d", 604800), ("3600", 3600)],
    )
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    def test_parse_duration_falls_back(self):
        assert parse_duration("soon") == DEFAULT_JWT_EXPIRY_SECONDS
        assert parse_duration("0h") == DEFAULT_JWT_EXPIRY_SECONDS

    def test_defaults(self, monkeypatch):
        for name in ("DB_PATH", "JWT_SECRET", "JWT_EXPIRY", "PORT", "HOST", "CORS_ALLOW_ORIGINS", "LOG_LEVEL"):
            monkeypatch.setenv(name, "")
        s = get_settings()
        assert s.db_path == "./data/todos.db"
        assert s.jwt_expiry_seconds == 24 * 3600
        assert s.port == 3000
        assert s.cors_allow_origins == ["*"]

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("JWT_EXPIRY", "15m")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
        s = get_settings()
        assert s.db_path == "/tmp/other.db"
        assert s.jwt_secret == "s3cret"
        assert s.jwt_expiry_seconds == 900
        assert s.port == 8080
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
