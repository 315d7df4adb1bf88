"""Tests for the per-connection handshake state machine."""

from unittest.mock import MagicMock, patch

import pytest

from campusnet.core.exceptions import (
    InvalidCredentialError,
    MissingCredentialError,
    TokenRevokedError,
    UnauthorizedError,
)
from campusnet.infrastructure.revocation import InMemoryRevocationStore, credential_key
from campusnet.services.auth_service import AuthService
from campusnet.services.connection_gateway import ConnectionGateway, ConnectionState
from campusnet.services.presence_tracker import PresenceTracker


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def revocations():
    return InMemoryRevocationStore()


@pytest.fixture
def presence():
    return PresenceTracker()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(jwt_provider, revocations, presence, clock):
    return ConnectionGateway(
        auth_service=AuthService(jwt_provider=jwt_provider, revocation_store=revocations),
        presence=presence,
        handshake_timeout_seconds=10,
        clock=clock,
    )


def test_happy_path_reaches_joined(gateway, jwt_provider, presence):
    token = jwt_provider.issue_access_token(subject="5")

    gateway.open("sid-1")
    assert gateway.state_of("sid-1") == ConnectionState.CONNECTING

    claims = gateway.authenticate("sid-1", token)
    assert claims["sub"] == "5"
    assert gateway.state_of("sid-1") == ConnectionState.AUTHENTICATING
    # ainda não está na presença antes do join
    assert not presence.is_online(5)

    assert gateway.join("sid-1") == 5
    assert gateway.state_of("sid-1") == ConnectionState.JOINED
    assert gateway.user_of("sid-1") == 5
    assert presence.is_online(5)


@pytest.mark.parametrize(
    "token, error",
    [
        (None, MissingCredentialError),
        ("", MissingCredentialError),
        ("garbage", InvalidCredentialError),
    ],
)
def test_bad_credentials_are_rejected(gateway, presence, token, error):
    gateway.open("sid-1")

    with pytest.raises(error):
        gateway.authenticate("sid-1", token)

    assert gateway.state_of("sid-1") == ConnectionState.CLOSED
    assert presence.online_users() == set()


def test_revoked_credential_is_rejected(gateway, jwt_provider, revocations):
    token = jwt_provider.issue_access_token(subject="5")
    revocations.revoke(credential_key(token), 60)
    gateway.open("sid-1")

    with pytest.raises(TokenRevokedError):
        gateway.authenticate("sid-1", token)


def test_join_requires_authentication(gateway):
    gateway.open("sid-1")

    with pytest.raises(UnauthorizedError):
        gateway.join("sid-1")


def test_authenticate_twice_is_rejected(gateway, jwt_provider):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)

    with pytest.raises(UnauthorizedError):
        gateway.authenticate("sid-1", token)


def test_close_is_idempotent_and_clears_presence(gateway, jwt_provider, presence):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)
    gateway.join("sid-1")

    assert gateway.close("sid-1") == 5
    assert gateway.close("sid-1") is None
    assert gateway.state_of("sid-1") == ConnectionState.CLOSED
    assert not presence.is_online(5)


def test_close_before_join_leaves_no_presence(gateway, jwt_provider, presence):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)

    assert gateway.close("sid-1") is None
    with pytest.raises(UnauthorizedError):
        gateway.join("sid-1")
    assert not presence.is_online(5)


def test_two_devices_same_user(gateway, jwt_provider, presence):
    token = jwt_provider.issue_access_token(subject="5")
    for sid in ("phone", "laptop"):
        gateway.open(sid)
        gateway.authenticate(sid, token)
        gateway.join(sid)

    gateway.close("phone")
    assert presence.is_online(5)
    gateway.close("laptop")
    assert not presence.is_online(5)


def test_require_joined_revalidates_credential(gateway, jwt_provider, revocations, presence):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)
    gateway.join("sid-1")

    assert gateway.require_joined("sid-1") == 5

    revocations.revoke(credential_key(token), 60)
    with pytest.raises(TokenRevokedError):
        gateway.require_joined("sid-1")

    assert gateway.state_of("sid-1") == ConnectionState.CLOSED
    assert not presence.is_online(5)


def test_require_joined_rejects_unknown_sid(gateway):
    with pytest.raises(UnauthorizedError):
        gateway.require_joined("ghost")


def test_stale_handshakes(gateway, jwt_provider, clock):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("slow")
    clock.now = 5
    gateway.open("fast")
    gateway.authenticate("fast", token)
    gateway.join("fast")

    clock.now = 10
    assert gateway.stale_handshakes() == ["slow"]

    clock.now = 100
    # JOINED nunca é considerado handshake parado
    assert gateway.stale_handshakes() == ["slow"]


def test_unexpected_error_while_authenticating_closes_session(jwt_provider, presence):
    store = MagicMock()
    store.is_revoked.side_effect = RuntimeError("store down")
    gateway = ConnectionGateway(
        auth_service=AuthService(jwt_provider=jwt_provider, revocation_store=store),
        presence=presence,
        handshake_timeout_seconds=0,
    )
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")

    with pytest.raises(RuntimeError):
        gateway.authenticate("sid-1", token)

    assert gateway.state_of("sid-1") == ConnectionState.CLOSED
    # não sobra handshake pendurado pro reaper
    assert gateway.stale_handshakes() == []
    assert not presence.is_online(5)


def test_presence_listener_can_query_gateway(gateway, jwt_provider, presence):
    seen = []
    presence.set_listener(lambda online: seen.append((online, gateway.state_of("sid-1"))))
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)

    gateway.join("sid-1")
    gateway.close("sid-1")

    assert seen == [([5], ConnectionState.JOINED), ([], ConnectionState.CLOSED)]


def test_close_racing_join_leaves_no_presence(gateway, jwt_provider, presence):
    token = jwt_provider.issue_access_token(subject="5")
    gateway.open("sid-1")
    gateway.authenticate("sid-1", token)
    real_add = presence.add_session

    def close_then_add(user_id, sid):
        # o transporte cai entre a transição e o registro de presença
        gateway.close(sid)
        return real_add(user_id, sid)

    with patch.object(presence, "add_session", side_effect=close_then_add):
        with pytest.raises(UnauthorizedError):
            gateway.join("sid-1")

    assert gateway.state_of("sid-1") == ConnectionState.CLOSED
    assert not presence.is_online(5)
