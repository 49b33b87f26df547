"""
Credential store: persistent user identities.

Emails are normalised (stripped, lower-cased) on the way in and on lookup,
so uniqueness is case-insensitive whatever the database collation is.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User
from services.errors import DuplicateIdentity, StorageError
from utils.security import hash_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_user_id() -> str:
    return f"USR_{uuid.uuid4().hex}"


class CredentialStore:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def create(self, user_id: str, name: str, email: str, password: str) -> User:
        """Hash `password` and persist a new user.

        Raises DuplicateIdentity if the id or email is taken, StorageError on
        any other persistence fault.
        """
        email = normalize_email(email)
        session = self._storage.get_session()
        try:
            taken = (
                session.query(User.id)
                .filter((User.email == email) | (User.id == user_id))
                .first()
            )
            if taken:
                raise DuplicateIdentity()

            user = User(id=user_id, name=name, email=email, password_hash=hash_password(password))
            self._storage.new(user)
            self._storage.save()
        except IntegrityError as exc:
            # lost a race against a concurrent registration
            raise DuplicateIdentity() from exc
        except SQLAlchemyError as exc:
            self._storage.rollback()
            logger.exception("Failed to create user %s", user_id)
            raise StorageError() from exc

        logger.info("Created user %s", user.id)
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        session = self._storage.get_session()
        try:
            return session.query(User).filter(User.email == normalize_email(email)).first()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def get(self, user_id: str) -> Optional[User]:
        try:
            return self._storage.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StorageError() from exc
