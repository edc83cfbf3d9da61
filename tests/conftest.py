from __future__ import annotations

import json as jsonlib
from typing import Any

import pytest
import requests

from untis_client.config import UntisConfig
from untis_client.session import Session
from untis_client.transport import JsonRpcTransport

URL = "https://untis.test/WebUntis/jsonrpc.do?school=test"

TEACHERS = [
    {"id": 7, "name": "Smith", "foreName": "John", "longName": "SMITH Jonathan"},
    {"id": 8, "name": "Doe", "foreName": "Jane", "longName": "DOE Jane"},
    {"id": 7, "name": "SmithDuplicate", "foreName": "Jon", "longName": "SMITH Jon"},
]
ROOMS = [
    {"id": 3, "name": "E12", "longName": "Room E12"},
    {"id": 4, "name": "E13", "longName": "Room E13"},
]
CLASSES = [
    {"id": 1, "name": "5AHIF", "longName": "5th year IT", "teacher1": 7},
    {"id": 2, "name": "4BHIF", "longName": "4th year IT"},
]


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)


class FakeUntisServer:
    """Stands in for requests.Session and answers like a WebUntis server.

    Echoes the request id unless ``id_override`` says otherwise, returns
    ``results[method]``, and records every request it receives.
    """

    def __init__(self) -> None:
        self.results: dict[str, Any] = {
            "authenticate": {"sessionId": "ABC123", "personType": 2, "personId": 5},
            "logout": None,
            "getTeachers": TEACHERS,
            "getRooms": ROOMS,
            "getKlassen": CLASSES,
            "getTimetable": [],
        }
        self.errors: dict[str, dict] = {}
        self.failures: dict[str, Exception] = {}
        self.status_codes: dict[str, int] = {}
        self.id_override: dict[str, Any] = {}
        # Verbatim bodies; "{id}" is replaced with the echoed request id
        self.raw_bodies: dict[str, str] = {}
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url, json=None, cookies=None, timeout=None):
        self.requests.append(
            {"url": url, "envelope": json, "cookies": cookies, "timeout": timeout}
        )
        method = json["method"]
        if method in self.failures:
            raise self.failures[method]

        response_id = self.id_override.get(method, str(json["id"]))
        status = self.status_codes.get(method, 200)
        if method in self.raw_bodies:
            return FakeResponse(
                self.raw_bodies[method].replace("{id}", str(response_id)), status
            )

        body: dict[str, Any] = {"jsonrpc": "2.0", "id": response_id}
        if method in self.errors:
            body["error"] = self.errors[method]
        else:
            body["result"] = self.results.get(method)
        return FakeResponse(jsonlib.dumps(body), status)

    def close(self) -> None:
        self.closed = True

    def methods(self) -> list[str]:
        return [r["envelope"]["method"] for r in self.requests]


@pytest.fixture()
def server() -> FakeUntisServer:
    return FakeUntisServer()


@pytest.fixture()
def config() -> UntisConfig:
    return UntisConfig(
        _env_file=None,
        untis_url=URL,
        untis_client_name="Refundable",
        request_timeout_seconds=5.0,
        reference_cache_ttl_seconds=0,
    )


@pytest.fixture()
def transport(server: FakeUntisServer) -> JsonRpcTransport:
    return JsonRpcTransport(URL, http=server, first_id=100)


@pytest.fixture()
def session(transport: JsonRpcTransport, config: UntisConfig) -> Session:
    return Session("jdoe", "secret", transport=transport, config=config)


@pytest.fixture()
def authed_session(session: Session) -> Session:
    session.authenticate()
    return session
