"""
Refresh token store.

Tokens are opaque 256-bit random strings. Only their SHA-256 digest is kept,
so a read-only copy of the table yields no usable session credentials.

Every token is single use: `consume` deletes the row it matched, and only
the caller whose DELETE actually removed the row wins. Two requests racing
with the same token therefore produce exactly one new session.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Tuple

from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from services.errors import RefreshTokenExpired, RefreshTokenNotFound, StorageError
from utils.security import generate_refresh_token, hash_token, utcnow

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    def __init__(self, storage: DBStorage, clock: Callable[[], datetime] = utcnow):
        self._storage = storage
        self._clock = clock

    def issue(self, user_id: str, ttl_days: int) -> Tuple[str, datetime]:
        """Create a token for `user_id`; returns (raw token, expires_at)."""
        token = generate_refresh_token()
        now = self._clock()
        expires_at = now + timedelta(days=ttl_days)
        row = RefreshToken(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        try:
            self._storage.new(row)
            self._storage.save()
        except SQLAlchemyError as exc:
            raise StorageError() from exc
        return token, expires_at

    def consume(self, token: str) -> str:
        """
        Look up and delete `token` in one step; returns the owning user id.

        Raises RefreshTokenNotFound if the token is unknown (or another
        request consumed it first) and RefreshTokenExpired if it is past
        expiry. Expired rows are deleted too.
        Do not retry on StorageError: a retry is indistinguishable from a
        second rotation attempt.
        """
        session = self._storage.get_session()
        try:
            row = (
                session.query(RefreshToken.id, RefreshToken.user_id, RefreshToken.expires_at)
                .filter(RefreshToken.token_hash == hash_token(token))
                .first()
            )
            if row is None:
                session.rollback()
                raise RefreshTokenNotFound()

            deleted = (
                session.query(RefreshToken)
                .filter(RefreshToken.id == row.id)
                .delete(synchronize_session=False)
            )
            self._storage.save()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

        if deleted != 1:
            raise RefreshTokenNotFound()
        if row.expires_at <= self._clock():
            logger.info("Discarded expired refresh token of user %s", row.user_id)
            raise RefreshTokenExpired()
        return row.user_id

    def revoke(self, token: str) -> bool:
        """Delete `token` if present. Returns whether a row was removed."""
        session = self._storage.get_session()
        try:
            deleted = (
                session.query(RefreshToken)
                .filter(RefreshToken.token_hash == hash_token(token))
                .delete(synchronize_session=False)
            )
            self._storage.save()
        except SQLAlchemyError as exc:
            raise StorageError() from exc
        return deleted > 0

    def purge_expired(self) -> int:
        """Remove every token past its expiry; returns the number deleted."""
        session = self._storage.get_session()
        try:
            count = (
                session.query(RefreshToken)
                .filter(RefreshToken.expires_at <= self._clock())
                .delete(synchronize_session=False)
            )
            self._storage.save()
        except SQLAlchemyError as exc:
            raise StorageError() from exc
        logger.info("Purged %d expired refresh tokens", count)
        return count
