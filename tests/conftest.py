# tests/conftest.py
import os
import sys
import asyncio
import json

import pytest

sys.path.append(os.path.abspath("."))

from registry.database import Storage, get_storage
from registry import crud, schemas
from main import app


# DB (SQLite in-memory for tests)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture()
def storage():
    store = Storage(SQLALCHEMY_DATABASE_URL)
    store.initialize()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture()
def person_data():
    return {
        "name": "Ann",
        "email": "Ann@X.com",
        "phone": "9876543210",
        "age": "30",
        "permanent_address": "123 Long Street Name",
        "password": "Abc123!",
    }


@pytest.fixture()
def address_data():
    return {"communication_address": "456 Other Street Name"}


@pytest.fixture()
def make_person(storage, person_data, address_data):
    """Validate and store a person, returning its id."""

    def _make(communication_address=None, **overrides):
        person, address = schemas.validate_submission(
            {**person_data, **overrides},
            {
                "communication_address": communication_address
                or address_data["communication_address"]
            },
        )
        return crud.create_person(storage, person, address)

    return _make


# One event loop for the WHOLE pytest session
@pytest.fixture(scope="session")
def session_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


# Simple ASGI response/client
class SimpleResponse:
    def __init__(
        self, status_code: int, body: bytes, headers: list[tuple[bytes, bytes]]
    ):
        self.status_code = status_code
        self._body = body
        self.headers = {k.decode(): v.decode() for k, v in headers}

    def json(self):
        return json.loads(self._body.decode())


class SimpleClient:
    """
    Important:
    - uses ONE shared session loop (passed from fixture)
    - does NOT call asyncio.run()
    - does NOT close the loop
    - does NOT run the lifespan; storage comes from the override
    """

    def __init__(self, app, loop):
        self.app = app
        self.loop = loop

    def close(self):
        # do not close the loop here (session fixture closes it)
        pass

    def request(self, method: str, path: str, json_body=None, headers=None):
        headers = headers or {}
        body_bytes = b""

        if json_body is not None:
            body_bytes = json.dumps(json_body).encode()
            headers.setdefault("content-type", "application/json")

        path, _, query = path.partition("?")
        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        scope = {
            "type": "http",
            "method": method.upper(),
            "path": path,
            "headers": raw_headers,
            "query_string": query.encode(),
            "client": ("testclient", 5000),
        }

        async def receive():
            nonlocal body_bytes
            chunk, body_bytes = body_bytes, b""
            return {"type": "http.request", "body": chunk, "more_body": False}

        response_body = bytearray()
        response_status = 500
        response_headers: list[tuple[bytes, bytes]] = []

        async def send(message):
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = message.get("headers", [])
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        # ensure the loop is the current one
        asyncio.set_event_loop(self.loop)
        self.loop.run_until_complete(self.app(scope, receive, send))
        return SimpleResponse(response_status, bytes(response_body), response_headers)

    def get(self, path: str, headers=None):
        return self.request("GET", path, headers=headers)

    def post(self, path: str, json=None, headers=None):
        return self.request("POST", path, json_body=json, headers=headers)

    def put(self, path: str, json=None, headers=None):
        return self.request("PUT", path, json_body=json, headers=headers)

    def delete(self, path: str, headers=None):
        return self.request("DELETE", path, headers=headers)


# Client fixture: override storage dependency per test
@pytest.fixture()
def client(storage, session_loop):
    def override_get_storage():
        return storage

    app.dependency_overrides[get_storage] = override_get_storage

    c = SimpleClient(app, loop=session_loop)
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
        c.close()
