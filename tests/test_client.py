from __future__ import annotations

from datetime import date

import pytest
import requests

from untis_client.client import UntisClient
from untis_client.config import UntisConfig
from untis_client.errors import IdentifierMismatch, NotFound
from untis_client.registry import ClientRegistry
from untis_client.transport import JsonRpcTransport

from conftest import URL, FakeUntisServer

MONDAY = date(2024, 3, 11)


@pytest.fixture()
def client(server: FakeUntisServer, config: UntisConfig) -> UntisClient:
    return UntisClient(
        config,
        registry=ClientRegistry(),
        transport_factory=lambda: JsonRpcTransport(URL, http=server, first_id=1),
    )


def test_login_registers_authenticated_session(client: UntisClient) -> None:
    session = client.login("jdoe", "secret")

    assert session.authenticated
    assert client.session("jdoe") is session
    assert client.registry.get("jdoe") is session


def test_failed_login_registers_nothing(
    client: UntisClient, server: FakeUntisServer
) -> None:
    server.id_override["authenticate"] = "0"

    with pytest.raises(IdentifierMismatch):
        client.login("jdoe", "secret")

    assert "jdoe" not in client.registry


def test_logout_closes_and_removes(
    client: UntisClient, server: FakeUntisServer
) -> None:
    session = client.login("jdoe", "secret")

    client.logout("jdoe")

    assert session.closed
    assert "jdoe" not in client.registry
    assert server.methods() == ["authenticate", "logout"]
    assert server.closed


def test_unknown_user(client: UntisClient) -> None:
    with pytest.raises(NotFound):
        client.session("nobody")
    with pytest.raises(NotFound):
        client.logout("nobody")
    with pytest.raises(NotFound):
        client.lessons("nobody", MONDAY, MONDAY)


def test_class_lessons(client: UntisClient, server: FakeUntisServer) -> None:
    server.results["getTimetable"] = [
        {
            "date": 20240311,
            "startTime": 850,
            "endTime": 940,
            "kl": [{"id": 1}],
            "te": [{"id": 8}],
            "ro": [{"id": 4}],
        }
    ]
    client.login("jdoe", "secret")

    lessons = client.class_lessons("jdoe", MONDAY, MONDAY, "5AHIF")

    assert lessons[0].teachers == ("Doe",)
    assert lessons[0].rooms == ("E13",)
    assert lessons[0].start_period == 2


def test_teacher_lessons(client: UntisClient, server: FakeUntisServer) -> None:
    client.login("jdoe", "secret")

    assert client.teacher_lessons("jdoe", MONDAY, MONDAY, "John SMITH") == []
    assert server.requests[-1]["envelope"]["params"]["id"] == 7


def test_own_lessons(client: UntisClient, server: FakeUntisServer) -> None:
    client.login("jdoe", "secret")

    client.lessons("jdoe", MONDAY, MONDAY)

    assert server.requests[-1]["envelope"]["params"]["id"] == 5


def test_resolver_bound_to_user_session(client: UntisClient) -> None:
    client.login("jdoe", "secret")

    assert client.resolver("jdoe").resolve_room_names([3, 4]) == ["E12", "E13"]


@pytest.fixture()
def servers() -> list[FakeUntisServer]:
    return [FakeUntisServer(), FakeUntisServer()]


@pytest.fixture()
def two_login_client(
    servers: list[FakeUntisServer], config: UntisConfig
) -> UntisClient:
    pending = iter(servers)
    return UntisClient(
        config,
        registry=ClientRegistry(),
        transport_factory=lambda: JsonRpcTransport(URL, http=next(pending), first_id=1),
    )


def test_second_login_logs_out_previous_session(
    two_login_client: UntisClient, servers: list[FakeUntisServer]
) -> None:
    first = two_login_client.login("jdoe", "secret")

    second = two_login_client.login("jdoe", "secret")

    assert two_login_client.session("jdoe") is second
    assert second.authenticated
    assert first.closed
    assert servers[0].methods() == ["authenticate", "logout"]
    assert servers[0].closed
    assert servers[1].methods() == ["authenticate"]
    assert not servers[1].closed


def test_second_login_survives_failed_logout(
    two_login_client: UntisClient, servers: list[FakeUntisServer]
) -> None:
    first = two_login_client.login("jdoe", "secret")
    servers[0].failures["logout"] = requests.ConnectionError("connection reset")

    second = two_login_client.login("jdoe", "secret")

    assert two_login_client.session("jdoe") is second
    assert first.closed
    assert servers[0].closed


def test_failed_relogin_keeps_previous_session(
    two_login_client: UntisClient, servers: list[FakeUntisServer]
) -> None:
    first = two_login_client.login("jdoe", "secret")
    servers[1].id_override["authenticate"] = "0"

    with pytest.raises(IdentifierMismatch):
        two_login_client.login("jdoe", "secret")

    assert two_login_client.session("jdoe") is first
    assert first.authenticated
    assert not servers[0].closed
