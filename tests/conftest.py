"""
Pytest fixtures for the accounts API.

Every test gets its own in-memory SQLite store and media directory.
"""
from datetime import timedelta

import pytest

from api import create_app
from models.db_storage import DBStorage
from utils.accounts import AccountManager
from utils.media import LocalMediaStore
from utils.security import CredentialHasher, SecuritySettings, TokenIssuer


@pytest.fixture
def settings():
    """Fixed secrets and cheap argon2 parameters."""
    return SecuritySettings(
        access_secret="test-access-secret",
        access_expires=timedelta(minutes=15),
        refresh_secret="test-refresh-secret",
        refresh_expires=timedelta(days=10),
        password_time_cost=1,
        password_memory_cost=1024,
    )


@pytest.fixture
def storage():
    db = DBStorage("sqlite://")
    db.reload()
    yield db
    db.drop_all()


@pytest.fixture
def media_store(tmp_path):
    return LocalMediaStore(tmp_path / "media", "/media")


@pytest.fixture
def hasher(settings):
    return CredentialHasher(settings)


@pytest.fixture
def issuer(settings):
    return TokenIssuer(settings)


@pytest.fixture
def manager(storage, hasher, issuer, media_store):
    return AccountManager(storage, hasher, issuer, media_store)


@pytest.fixture
def ann(manager):
    """A registered user: ann / p1."""
    return manager.register("ann", "a@x.com", "p1", "Ann A")


@pytest.fixture
def make_upload(tmp_path):
    """Create a temporary 'uploaded' file and return its path."""
    uploads = tmp_path / "uploads"
    uploads.mkdir()

    def _make(name="picture.png", content=b"\x89PNG fake image"):
        path = uploads / name
        path.write_bytes(content)
        return str(path)

    return _make


@pytest.fixture
def app(storage, media_store, tmp_path):
    app = create_app("testing", storage=storage, media_store=media_store)
    app.config["MEDIA_ROOT"] = str(media_store.root)
    upload_dir = tmp_path / "tmp-uploads"
    upload_dir.mkdir()
    app.config["UPLOAD_TEMP_DIR"] = str(upload_dir)
    return app


@pytest.fixture
def client(app):
    # tokens are passed explicitly, never through the cookie jar
    return app.test_client(use_cookies=False)


@pytest.fixture
def register_and_login(client):
    """Register via the API, log in, return the login payload."""

    def _do(username="ann", email="a@x.com", password="p1", full_name="Ann A"):
        resp = client.post(
            "/api/v1/auth/register",
            json={"username": username, "email": email, "password": password, "fullName": full_name},
        )
        assert resp.status_code == 201, resp.get_json()
        resp = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]

    return _do
