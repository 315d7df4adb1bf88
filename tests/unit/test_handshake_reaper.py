"""Tests for closing sockets that never finish the handshake."""

import logging
from unittest.mock import MagicMock

import pytest

from campusnet.api.realtime.socket_handlers import reap_stale_handshakes
from campusnet.services.auth_service import AuthService
from campusnet.services.connection_gateway import ConnectionGateway, ConnectionState
from campusnet.services.presence_tracker import PresenceTracker


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(jwt_provider, clock):
    revocations = MagicMock()
    revocations.is_revoked.return_value = False
    return ConnectionGateway(
        auth_service=AuthService(jwt_provider=jwt_provider, revocation_store=revocations),
        presence=PresenceTracker(),
        handshake_timeout_seconds=10,
        clock=clock,
    )


def test_stale_socket_is_closed_and_disconnected(gateway, jwt_provider, clock):
    socketio = MagicMock()
    gateway.open("slow")
    gateway.open("joined")
    gateway.authenticate("joined", jwt_provider.issue_access_token(subject="5"))
    gateway.join("joined")
    clock.now = 11

    assert reap_stale_handshakes(socketio, gateway) == ["slow"]

    assert gateway.state_of("slow") == ConnectionState.CLOSED
    assert gateway.state_of("joined") == ConnectionState.JOINED
    socketio.server.disconnect.assert_called_once_with("slow", namespace="/")


def test_nothing_to_reap_before_timeout(gateway, clock):
    socketio = MagicMock()
    gateway.open("slow")
    clock.now = 5

    assert reap_stale_handshakes(socketio, gateway) == []
    assert gateway.state_of("slow") == ConnectionState.CONNECTING
    socketio.server.disconnect.assert_not_called()


def test_disconnect_failure_is_logged_and_reaping_continues(gateway, clock, caplog):
    socketio = MagicMock()
    socketio.server.disconnect.side_effect = [RuntimeError("transport gone"), None]
    gateway.open("first")
    gateway.open("second")
    clock.now = 30

    with caplog.at_level(logging.ERROR, logger="campusnet.api.realtime.socket_handlers"):
        reaped = reap_stale_handshakes(socketio, gateway)

    assert sorted(reaped) == ["first", "second"]
    assert gateway.state_of("first") == ConnectionState.CLOSED
    assert gateway.state_of("second") == ConnectionState.CLOSED
    assert socketio.server.disconnect.call_count == 2
    assert "Could not disconnect stale socket" in caplog.text
