"""Pytest configuration and fixtures for testing."""

from datetime import datetime, timezone

import pytest

from campusnet.app_factory import create_app
from campusnet.config.settings import Settings
from campusnet.core.container import EXTENSION_KEY
from campusnet.infrastructure.database.models.user_model import UserModel
from campusnet.infrastructure.database.session import db_session
from campusnet.infrastructure.realtime.socketio_server import socketio
from campusnet.infrastructure.revocation import InMemoryRevocationStore
from campusnet.infrastructure.security.identity_verifier import BypassIdentityVerifier
from campusnet.infrastructure.security.jwt_provider import JwtProvider
from campusnet.repositories.user_repository import UserRepository


@pytest.fixture(scope="function")
def test_settings():
    """Settings isolated from the developer's .env / environment."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        environment="test",
        debug=False,
        jwt_secret="test-secret-key-with-enough-length-1234",
        jwt_issuer="campusnet-test",
        jwt_audience="campusnet-test-app",
        redis_url="",
        store_retry_attempts=2,
        store_retry_initial_delay=0.0,
    )


@pytest.fixture(scope="function")
def jwt_provider(test_settings):
    return JwtProvider(test_settings)


@pytest.fixture(scope="function")
def app(test_settings):
    """Application built by the factory on a fresh in-memory database."""
    application = create_app(
        test_settings,
        identity_verifier=BypassIdentityVerifier(),
        revocation_store=InMemoryRevocationStore(),
        async_mode="threading",
    )
    application.config["TESTING"] = True
    yield application


@pytest.fixture(scope="function")
def container(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture(scope="function")
def make_user(app):
    """Insert a user directly and return its id."""

    def _make(college_id: str, username: str | None = None) -> int:
        with db_session() as session:
            user = UserRepository(session).add(
                UserModel(
                    college_id=college_id,
                    username=username or college_id,
                    bio="",
                    created_at=datetime.now(timezone.utc),
                )
            )
            return int(user.id)

    return _make


@pytest.fixture(scope="function")
def login(client):
    """POST /login and return (token, profile)."""

    def _login(username: str, password: str = "secret") -> tuple[str, dict]:
        resp = client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        body = resp.get_json()
        return body["token"], body["profile"]

    return _login


@pytest.fixture(scope="function")
def socket_client(app):
    """Factory for connected Socket.IO test clients; disconnects them at teardown."""
    clients = []

    def _connect(token: str | None = None, **kwargs):
        auth = {"token": token} if token is not None else None
        sc = socketio.test_client(app, auth=auth, **kwargs)
        clients.append(sc)
        return sc

    yield _connect

    for sc in clients:
        if sc.is_connected():
            sc.disconnect()