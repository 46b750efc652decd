import asyncio
import json
import sys
from pathlib import Path

import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeSocket:
    """Stands in for socketio.AsyncClient; the test drives server-side events."""

    def __init__(self, fail: bool = False, auto_close: bool = False, **options) -> None:
        self.options = options
        self.fail = fail
        self.auto_close = auto_close
        self.handlers: dict = {}
        self.connect_calls: list[dict] = []
        self.sid: str | None = None
        self.connected = False
        self._closed: asyncio.Event | None = None

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def connect(self, url, headers=None, **kwargs):
        self.connect_calls.append({"url": url, "headers": dict(headers or {}), **kwargs})
        self._closed = asyncio.Event()
        if self.fail:
            await self.handlers["connect_error"]("Connection refused by the server")
            raise SocketConnectionError("Connection refused by the server")
        self.sid = "fake-sid-0001"
        self.connected = True
        await self.handlers["connect"]()

    async def server_event(self, event, data):
        await self.handlers[event](data)

    async def drop(self, reason="transport close"):
        self.sid = None
        self.connected = False
        await self.handlers["disconnect"](reason)
        if reason == "transport close" and self.options.get("reconnection", True):
            # socketio.AsyncClient retries lost transports on the same handle
            await self.connect(self.connect_calls[-1]["url"], headers=self.connect_calls[-1]["headers"])
            return
        self._closed.set()

    async def wait(self):
        if self.auto_close and not self._closed.is_set():
            await self.drop("io server disconnect")
        await self._closed.wait()

    async def disconnect(self):
        await self.drop("client disconnect")


class FakeSocketFactory:
    def __init__(self, fail: bool = False, auto_close: bool = False) -> None:
        self.fail = fail
        self.auto_close = auto_close
        self.sockets: list[FakeSocket] = []

    def __call__(self, **options) -> FakeSocket:
        sock = FakeSocket(fail=self.fail, auto_close=self.auto_close, **options)
        self.sockets.append(sock)
        return sock


@pytest.fixture
def socket_factory():
    return FakeSocketFactory()


@pytest.fixture
def write_config(tmp_path):
    def _write(data, name="config.json"):
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path
    return _write


@pytest.fixture
def config_file(write_config):
    return write_config({
        "apiEndpoint": "https://docstore.example.com",
        "appCredentials": {"user": "alice", "password": "secret"},
    })


@pytest.fixture
def failing_socket_factory():
    return FakeSocketFactory(fail=True)


@pytest.fixture
def closing_socket_factory():
    """Server hangs up as soon as the client starts waiting."""
    return FakeSocketFactory(auto_close=True)
