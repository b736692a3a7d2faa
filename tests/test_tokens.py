"""Token service, password hashing, and settings tests."""

import base64
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pydantic
import pytest

from pondobro.auth.jwt import TokenError, TokenService, user_id_from_claims
from pondobro.auth.password import hash_password, verify_password
from pondobro.config import Settings

SECRET = "test-secret-that-is-long-enough-for-hs256"


def _service(**overrides) -> TokenService:
    return TokenService(Settings(jwt_secret=SECRET, **overrides))


USER = SimpleNamespace(id=12, email="ana@example.com", role="User")


# ═══════════════════════════════════════════════════════════
# Access tokens
# ═══════════════════════════════════════════════════════════


def test_access_token_claims():
    svc = _service()
    claims = svc.decode_access_token(svc.create_access_token(USER))
    assert claims["sub"] == "12"
    assert claims["email"] == "ana@example.com"
    assert claims["role"] == "User"
    assert claims["iss"] == "pondobro"
    assert claims["aud"] == "pondobro-frontend"
    assert user_id_from_claims(claims) == 12


def test_access_token_lifetime_is_configurable():
    svc = _service(access_token_expire_minutes=15)
    claims = svc.decode_access_token(svc.create_access_token(USER))
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_expired_access_token_is_rejected():
    svc = _service(access_token_expire_minutes=-1)
    token = svc.create_access_token(USER)
    with pytest.raises(TokenError, match="expired"):
        svc.decode_access_token(token)


def test_wrong_secret_is_rejected():
    token = _service().create_access_token(USER)
    other = TokenService(Settings(jwt_secret="a-completely-different-secret-value!"))
    with pytest.raises(TokenError):
        other.decode_access_token(token)


def test_wrong_audience_is_rejected():
    token = _service(jwt_audience="someone-else").create_access_token(USER)
    with pytest.raises(TokenError):
        _service().decode_access_token(token)


def test_garbage_token_is_rejected():
    with pytest.raises(TokenError):
        _service().decode_access_token("not.a.jwt")


def test_user_id_from_claims_edge_cases():
    assert user_id_from_claims({"sub": "5", "nameid": "9"}) == 5
    assert user_id_from_claims({"nameid": "9"}) == 9
    assert user_id_from_claims({"sub": "x"}) is None
    assert user_id_from_claims({}) is None


# ═══════════════════════════════════════════════════════════
# Refresh tokens
# ═══════════════════════════════════════════════════════════


def test_refresh_token_is_32_random_bytes():
    token = _service().create_refresh_token()
    raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    assert len(raw) == 32


def test_refresh_tokens_are_unique():
    svc = _service()
    assert len({svc.create_refresh_token() for _ in range(200)}) == 200


def test_refresh_expiry_uses_configured_days():
    svc = _service(refresh_token_expire_days=3)
    expected = datetime.now(timezone.utc) + timedelta(days=3)
    assert abs(svc.refresh_expiry() - expected) < timedelta(seconds=5)


# ═══════════════════════════════════════════════════════════
# Passwords
# ═══════════════════════════════════════════════════════════


def test_password_round_trip():
    hashed = hash_password("s3cret-pass", rounds=4)
    assert hashed.startswith("$2")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_malformed_hash_never_verifies():
    assert not verify_password("anything", "not-a-bcrypt-hash")


# ═══════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════


def test_empty_secret_is_fatal():
    with pytest.raises(pydantic.ValidationError):
        Settings(jwt_secret="")


def test_default_secret_rejected_outside_development():
    with pytest.raises(pydantic.ValidationError):
        Settings(environment="production")


def test_defaults():
    s = Settings(jwt_secret=SECRET)
    assert s.access_token_expire_minutes == 60
    assert s.refresh_token_expire_days == 7
    assert s.refresh_cookie_name == "refresh_token"
