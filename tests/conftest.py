import asyncio
import os

# Minimal values for tests
os.environ.setdefault("SPACECOUNTER_PUBLIC_WS_BASE", "ws://testserver")
from httpx import ASGITransport
from httpx import AsyncClient
import pytest
from starlette.testclient import TestClient

from spacecounter.app import create_app
from spacecounter.broadcaster import Broadcaster
from spacecounter.channel import OutboundChannel
from spacecounter.processor import UpdateProcessor
from spacecounter.registry import Connection
from spacecounter.registry import ConnectionRegistry
from spacecounter.settings import Settings
from spacecounter.spaces import SpaceTable


@pytest.fixture
def settings():
    return Settings(public_ws_base="ws://testserver")


# ---- Fresh app per test so registry and spaces never leak between tests ----
@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def hub(app):
    return app.state.hub


# ---- HTTP client bound to the ASGI app ----
@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


# ---- Sync client for websocket sessions; all sessions share one event loop ----
@pytest.fixture
def ws_client(app):
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def wait_until_removed(ws_client, hub):
    """Polls the registry until a closed session's teardown has run."""

    def _wait(connection_id, attempts=200):
        for _ in range(attempts):
            if ws_client.portal.call(hub.registry.get, connection_id) is None:
                return True
            ws_client.portal.call(asyncio.sleep, 0.01)
        return False

    return _wait


@pytest.fixture
def register(ws_client):
    """Registers a connection and returns its id."""

    def _register(space_code=None):
        body = {} if space_code is None else {"space_code": space_code}
        resp = ws_client.post("/register", json=body)
        assert resp.status_code == 200
        return resp.json()["url"].rsplit("/", 1)[-1]

    return _register


# ---- Core components without the HTTP layer ----
@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def spaces():
    return SpaceTable()


@pytest.fixture
def broadcaster(registry):
    return Broadcaster(registry)


@pytest.fixture
def processor(registry, spaces, broadcaster):
    return UpdateProcessor(registry, spaces, broadcaster)


@pytest.fixture
def add_connection(registry):
    """Inserts an upgraded connection and returns its outbound channel."""

    async def _add(connection_id, space_code=None):
        channel = OutboundChannel()
        await registry.insert(Connection(id=connection_id, space_code=space_code, outbound=channel))
        return channel

    return _add


@pytest.fixture
def drain():
    """Everything currently queued on a channel, without waiting."""

    def _drain(channel):
        frames = []
        while not channel._queue.empty():
            item = channel._queue.get_nowait()
            # skip the close marker
            if isinstance(item, str):
                frames.append(item)
        return frames

    return _drain
