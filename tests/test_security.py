from __future__ import annotations

import importlib
from datetime import timedelta

import jwt
import pytest

import api.config
from api.config import parse_days, parse_duration
from services.errors import AccessTokenExpired, InvalidAccessToken, InvalidSignature
from utils.security import (
    AccessTokenIssuer,
    generate_refresh_token,
    hash_password,
    hash_token,
    verify_password,
)

SECRET = "unit-test-secret-0123456789abcdef0123"


def _issuer(**kwargs) -> AccessTokenIssuer:
    kwargs.setdefault("lifetime", timedelta(minutes=15))
    return AccessTokenIssuer(SECRET, **kwargs)


def test_password_hash_round_trip() -> None:
    digest = hash_password("pw123456")
    assert digest != "pw123456"
    assert digest.startswith("$argon2")
    assert verify_password("pw123456", digest) is True
    assert verify_password("pw1234567", digest) is False


def test_verify_password_rejects_malformed_hash() -> None:
    assert verify_password("pw123456", "not-a-hash") is False


def test_refresh_tokens_are_256_bit_hex() -> None:
    token = generate_refresh_token()
    assert len(token) == 64
    int(token, 16)
    assert generate_refresh_token() != token
    assert hash_token(token) != token
    assert hash_token(token) == hash_token(token)


def test_issue_and_verify_access_token() -> None:
    issuer = _issuer()
    token = issuer.issue({"id": "USR_1"})
    claims = issuer.verify(token)
    assert claims["id"] == "USR_1"
    assert claims["sub"] == "USR_1"
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_tokens_issued_back_to_back_differ() -> None:
    issuer = _issuer()
    assert issuer.issue({"id": "USR_1"}) != issuer.issue({"id": "USR_1"})


def test_expired_access_token() -> None:
    issuer = _issuer(lifetime=timedelta(seconds=-5))
    token = issuer.issue({"id": "USR_1"})
    with pytest.raises(AccessTokenExpired):
        issuer.verify(token)


def test_access_token_signed_with_other_secret() -> None:
    token = AccessTokenIssuer("another-secret-0123456789abcdef0123", timedelta(minutes=5)).issue({"id": "USR_1"})
    with pytest.raises(InvalidSignature):
        _issuer().verify(token)


def test_tampered_access_token() -> None:
    token = _issuer().issue({"id": "USR_1"})
    with pytest.raises(InvalidAccessToken):
        _issuer().verify(token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1])


def test_non_access_token_rejected() -> None:
    forged = jwt.encode(
        {"id": "USR_1", "sub": "USR_1", "iss": "dairy-auth", "iat": 1, "exp": 9999999999, "type": "refresh"},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidSignature):
        _issuer().verify(forged)


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError):
        AccessTokenIssuer("", timedelta(minutes=5))


def test_issuer_repr_hides_secret() -> None:
    assert SECRET not in repr(_issuer())


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("900", timedelta(seconds=900)),
        ("15m", timedelta(minutes=15)),
        ("1h", timedelta(hours=1)),
        ("7d", timedelta(days=7)),
    ],
)
def test_parse_duration(raw: str, expected: timedelta) -> None:
    assert parse_duration(raw) == expected


def test_parse_duration_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_duration("fifteen minutes")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7", 7),
        ("7d", 7),
        ("7 DAY", 7),
        (" 30 days", 30),
        ("", 7),
        (None, 7),
        ("0", 7),
        ("forever", 7),
    ],
)
def test_parse_days_reads_leading_integer(raw, expected: int) -> None:
    assert parse_days(raw) == expected


def test_invalid_signature_message() -> None:
    token = AccessTokenIssuer("another-secret-0123456789abcdef0123", timedelta(minutes=5)).issue({"id": "USR_1"})
    with pytest.raises(InvalidSignature) as exc_info:
        _issuer().verify(token)
    assert exc_info.value.message == "Invalid token"
    assert exc_info.value.status == 401


def test_refresh_lifetime_env_with_unit_suffix(monkeypatch) -> None:
    monkeypatch.setenv("REFRESH_EXPIRES_IN", "14 DAY")
    try:
        reloaded = importlib.reload(api.config)
        assert reloaded.BaseConfig.REFRESH_TOKEN_TTL_DAYS == 14
    finally:
        monkeypatch.delenv("REFRESH_EXPIRES_IN")
        importlib.reload(api.config)
