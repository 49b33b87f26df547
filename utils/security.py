"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access token signing/verification via PyJWT
- Opaque refresh token generation and one-way hashing
"""
from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from services.errors import AccessTokenExpired, InvalidSignature

ph = PasswordHasher()

# 32 bytes -> 256 bits of randomness, 64 hex chars
REFRESH_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AccessTokenIssuer:
    """
    Signs and verifies short-lived access tokens.

    Pure function of secret + claims + clock: nothing is persisted, so an
    issued token stays valid until its exp claim passes.
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta,
        algorithm: str = "HS256",
        issuer: str = "dairy-auth",
    ):
        if not secret:
            raise ValueError("Access token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = lifetime
        self.issuer = issuer

    def __repr__(self):
        # never render the secret
        return f"<AccessTokenIssuer alg={self._algorithm} lifetime={self.lifetime}>"

    def issue(self, claims: Dict[str, Any]) -> str:
        """Sign `claims` (must carry the user id under "id")."""
        subject = str(claims["id"])
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload.update(
            {
                "id": subject,
                "sub": subject,
                "iss": self.issuer,
                "iat": int(now.timestamp()),
                "exp": int((now + self.lifetime).timestamp()),
                "type": "access",
                "jti": generate_jti(),
            }
        )
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token.
        Raises AccessTokenExpired or InvalidSignature.
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AccessTokenExpired()
        except jwt.InvalidTokenError:
            raise InvalidSignature()

        if decoded.get("type") != "access" or not decoded.get("id"):
            raise InvalidSignature("Wrong token type")
        return decoded
