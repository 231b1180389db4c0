from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from codeauth.core.config import Settings
from codeauth.core.errors import ConfigError, TokenError
from codeauth.core.security import TokenService, hash_password, require_token_service, verify_password


def test_hash_password_uses_requested_cost():
    hashed = hash_password("pw1", rounds=4)
    assert hashed.startswith("$2b$04$")
    assert "pw1" not in hashed


def test_default_cost_factor_is_ten():
    assert hash_password("pw1").startswith("$2b$10$")


def test_verify_password():
    hashed = hash_password("pw1", rounds=4)
    assert verify_password("pw1", hashed)
    assert not verify_password("pw2", hashed)
    assert not verify_password("pw1", "not-a-bcrypt-hash")


def test_token_round_trip_claims():
    service = TokenService("secret")
    token = service.issue(7, "A", "a@x.com")
    claims = service.decode(token)
    assert claims["userId"] == 7
    assert claims["name"] == "A"
    assert claims["email"] == "a@x.com"
    assert claims["exp"] - claims["iat"] == 3600


def test_expired_token_is_rejected():
    service = TokenService("secret", expires=timedelta(minutes=-1))
    token = service.issue(7, "A", "a@x.com")
    with pytest.raises(TokenError):
        service.decode(token)


def test_token_signed_with_other_secret_is_rejected():
    token = TokenService("other").issue(7, "A", "a@x.com")
    with pytest.raises(TokenError):
        TokenService("secret").decode(token)


def test_token_without_user_id_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode({"name": "A", "exp": now + timedelta(hours=1)}, "secret", algorithm="HS256")
    with pytest.raises(TokenError):
        TokenService("secret").decode(token)


def test_service_requires_secret():
    with pytest.raises(ConfigError):
        TokenService("")
    with pytest.raises(ConfigError):
        require_token_service(None)


def test_from_settings():
    assert TokenService.from_settings(Settings(_env_file=None, JWT_SECRET=None)) is None

    service = TokenService.from_settings(Settings(_env_file=None, JWT_SECRET="s", ACCESS_TOKEN_EXPIRE_MINUTES=5))
    assert service.expires == timedelta(minutes=5)
    assert service.algorithm == "HS256"


def test_password_longer_than_72_bytes():
    long_pw = "é" * 50  # 100 bytes in utf-8
    hashed = hash_password(long_pw, rounds=4)
    assert verify_password(long_pw, hashed)
    assert verify_password(long_pw + "tail", hashed)
    assert not verify_password("é" * 35, hashed)


@pytest.mark.parametrize("claims", [
    {"userId": 7, "email": "a@x.com"},
    {"userId": 7, "name": "A"},
    {"userId": "7", "name": "A", "email": "a@x.com"},
])
def test_token_missing_or_malformed_claims_is_rejected(claims):
    now = datetime.now(timezone.utc)
    token = jwt.encode(dict(claims, exp=now + timedelta(hours=1)), "secret", algorithm="HS256")
    with pytest.raises(TokenError):
        TokenService("secret").decode(token)
