"""Pytest configuration and fixtures for solis-control tests."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from aioresponses import aioresponses

from soliscontrol.config import BridgeConfig, Credentials, MqttSettings
from soliscontrol.constants import CONTENT_TYPE, ENDPOINT_CONTROL, ENDPOINT_READ

KEY_ID = "1300386381676"
KEY_SECRET = "6680182547"
INVERTER_ID = "1308675217944611"

# AppKeys for the mock API server state
REGISTERS = web.AppKey("registers", dict)
REQUESTS = web.AppKey("requests", list)

# Base URL for aioresponses tests
BASE_URL = "https://www.soliscloud.com:13333"


def read_response(value: str) -> dict[str, Any]:
    """Successful /v2/api/atRead envelope carrying ``value``."""
    return {
        "success": True,
        "code": "0",
        "msg": "success",
        "data": {"msg": value, "yuanzhi": value, "needLoop": False},
    }


def control_response(code: str | int = "0", msg: str = "success") -> dict[str, Any]:
    """/v2/api/control envelope with ``code``."""
    return {"success": True, "code": code, "msg": msg, "data": None}


class FakePublisher:
    """Records publishes in order."""

    def __init__(self) -> None:
        self.published: list[tuple[str, str, bool]] = []

    def publish(self, topic: str, payload: str, *, retain: bool = True) -> None:
        self.published.append((topic, payload, retain))

    def topics(self) -> list[str]:
        return [topic for topic, _, _ in self.published]

    def payloads_for(self, topic: str) -> list[str]:
        return [payload for t, payload, _ in self.published if t == topic]


@pytest.fixture
def credentials() -> Credentials:
    """Test API credentials."""
    return Credentials(key_id=KEY_ID, key_secret=KEY_SECRET, inverter_id=INVERTER_ID)


@pytest.fixture
def config(credentials: Credentials) -> BridgeConfig:
    """Default bridge configuration (confirm mode, discovery on)."""
    return BridgeConfig(
        credentials=credentials,
        mqtt=MqttSettings(host="broker.test", username="solis", password="pw"),
        reconnect_delay=0,
    )


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m


@pytest.fixture
async def mock_api_server() -> AsyncGenerator[TestServer, None]:
    """Create a mock SolisCloud API server.

    The server verifies Content-MD5 and Authorization exactly as SolisCloud
    does and keeps register values in memory. Requests are recorded on
    ``server.app[REQUESTS]``.
    """
    registers: dict[str, str] = {"158": "20", "160": "10", "676": "3000", "109": "0"}
    requests: list[tuple[str, dict[str, Any]]] = []

    async def verify(request: web.Request) -> dict[str, Any] | None:
        body = await request.read()
        md5 = base64.b64encode(hashlib.md5(body).digest()).decode()
        if request.headers.get("Content-MD5") != md5:
            return None
        string_to_sign = "\n".join(
            (
                request.method,
                md5,
                request.headers.get("Content-Type", ""),
                request.headers.get("Date", ""),
                request.path,
            )
        )
        signature = base64.b64encode(
            hmac.new(KEY_SECRET.encode(), string_to_sign.encode(), hashlib.sha1).digest()
        ).decode()
        if request.headers.get("Authorization") != f"API {KEY_ID}:{signature}":
            return None
        if request.headers.get("Content-Type") != CONTENT_TYPE:
            return None
        payload: dict[str, Any] = json.loads(body)
        requests.append((request.path, payload))
        return payload

    def unauthorized() -> web.Response:
        return web.json_response({"success": False, "code": "403", "msg": "sign error"})

    async def handle_read(request: web.Request) -> web.Response:
        payload = await verify(request)
        if payload is None:
            return unauthorized()
        return web.json_response(read_response(registers[payload["cid"]]))

    async def handle_control(request: web.Request) -> web.Response:
        payload = await verify(request)
        if payload is None:
            return unauthorized()
        registers[payload["cid"]] = payload["value"]
        return web.json_response(control_response())

    app = web.Application()
    app[REGISTERS] = registers
    app[REQUESTS] = requests
    app.router.add_post(ENDPOINT_READ, handle_read)
    app.router.add_post(ENDPOINT_CONTROL, handle_control)

    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()
