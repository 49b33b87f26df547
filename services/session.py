"""
Session coordinator: composes the credential store, password verifier,
access token issuer and refresh token store into register / login /
refresh / logout / me.

Session lifecycle per client:
    Anonymous -> Authenticated(active refresh token)
              -> Authenticated(rotated refresh token)* -> Revoked
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.user import User
from services.credential_store import CredentialStore, new_user_id
from services.errors import (
    InvalidCredentials,
    RefreshTokenNotFound,
    Unauthenticated,
    UserNotFound,
)
from services.refresh_token_store import RefreshTokenStore
from utils.security import AccessTokenIssuer, verify_password

logger = logging.getLogger(__name__)


@dataclass
class IssuedSession:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime
    user_id: str
    user: Optional[User] = None


class SessionCoordinator:
    def __init__(
        self,
        credentials: CredentialStore,
        refresh_tokens: RefreshTokenStore,
        issuer: AccessTokenIssuer,
        refresh_ttl_days: int = 7,
    ):
        self.credentials = credentials
        self.refresh_tokens = refresh_tokens
        self.issuer = issuer
        self.refresh_ttl_days = refresh_ttl_days

    def _establish(self, user_id: str, user: Optional[User] = None) -> IssuedSession:
        access_token = self.issuer.issue({"id": user_id})
        refresh_token, expires_at = self.refresh_tokens.issue(user_id, self.refresh_ttl_days)
        return IssuedSession(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
            user_id=user_id,
            user=user,
        )

    def register(self, name: str, email: str, password: str) -> IssuedSession:
        # raises EmailAlreadyExists (DuplicateIdentity)
        user = self.credentials.create(new_user_id(), name, email, password)
        logger.info("Registered user %s", user.id)
        return self._establish(user.id, user)

    def login(self, email: str, password: str) -> IssuedSession:
        user = self.credentials.find_by_email(email)
        # Same error for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentials()
        logger.info("User %s logged in", user.id)
        return self._establish(user.id, user)

    def refresh(self, refresh_token: Optional[str]) -> IssuedSession:
        if not refresh_token:
            raise Unauthenticated()
        try:
            user_id = self.refresh_tokens.consume(refresh_token)
        except RefreshTokenNotFound:
            # Unknown or already rotated: possible replay of a stolen token
            logger.warning("Refresh with unknown or already rotated token rejected")
            raise
        logger.info("Rotated refresh token for user %s", user_id)
        return self._establish(user_id)

    def logout(self, refresh_token: Optional[str]) -> None:
        if refresh_token and self.refresh_tokens.revoke(refresh_token):
            logger.info("Refresh token revoked")

    def me(self, user_id: str) -> User:
        user = self.credentials.get(user_id)
        if user is None:
            raise UserNotFound()
        return user
