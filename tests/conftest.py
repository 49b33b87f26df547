from __future__ import annotations

import pytest

from api import create_app
from models.db_storage import DBStorage
from services.credential_store import CredentialStore
from services.refresh_token_store import RefreshTokenStore

COOKIE = "refreshToken"


@pytest.fixture
def storage(tmp_path):
    store = DBStorage(f"sqlite:///{tmp_path / 'auth.db'}")
    store.reload()
    yield store
    store.dispose()


@pytest.fixture
def credentials(storage):
    return CredentialStore(storage)


@pytest.fixture
def refresh_tokens(storage):
    return RefreshTokenStore(storage)


@pytest.fixture
def user(credentials):
    return credentials.create("USR_test", "Asha Farmer", "asha@dairy.test", "pw123456")


@pytest.fixture
def app(storage):
    return create_app("testing", storage=storage)


@pytest.fixture
def client(app):
    # Cookies are passed by hand so tests can replay old values
    return app.test_client(use_cookies=False)


def refresh_cookie(response) -> str | None:
    """Return the refreshToken value set by `response` ("" when cleared)."""
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{COOKIE}="):
            return header.split(";", 1)[0].split("=", 1)[1]
    return None


def refresh_cookie_header(response) -> str | None:
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{COOKIE}="):
            return header
    return None


def with_cookie(token: str) -> dict:
    return {"Cookie": f"{COOKIE}={token}"}
