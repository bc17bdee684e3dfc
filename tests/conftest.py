"""Shared pytest fixtures for camgate tests.

The app is built per test around an in-memory store double so each test can
inspect exactly which store calls were made. Password hashes use the
minimum bcrypt cost to keep the suite fast.
"""

import base64
import logging
from collections.abc import AsyncIterator

import bcrypt
import pytest
from httpx import ASGITransport, AsyncClient

from camgate.config import CamgateConfig, ServerConfig
from camgate.credentials import CredentialStore
from camgate.errors import StoreError
from camgate.server import create_app

USERNAME = "alex"
PASSWORD = "hunter2:with-colon"


class MemoryStore:
    """In-memory ObjectStore double that records every call.

    Attributes:
        objects: ``{key: bytes}`` in insertion order.
        list_calls: Prefixes passed to list_keys().
        open_calls: Keys passed to open_stream().
        fail_list: When set, list_keys() raises StoreError.
        fail_mid_stream: When set, streams raise StoreError after one chunk.
    """

    def __init__(self, objects: dict[str, bytes] | None = None, chunk_size: int = 2) -> None:
        self.objects = dict(objects or {})
        self.chunk_size = chunk_size
        self.list_calls: list[str] = []
        self.open_calls: list[str] = []
        self.fail_list = False
        self.fail_mid_stream = False

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def list_keys(self, prefix: str) -> list[str]:
        self.list_calls.append(prefix)
        if self.fail_list:
            raise StoreError("list", prefix, ConnectionError("store unavailable"))
        return [k for k in self.objects if k.startswith(prefix)]

    async def open_stream(self, key: str) -> AsyncIterator[bytes]:
        self.open_calls.append(key)
        if key not in self.objects:
            raise StoreError("get", key, KeyError(key))
        return self._chunks(key, self.objects[key])

    async def _chunks(self, key: str, data: bytes) -> AsyncIterator[bytes]:
        for i in range(0, len(data), self.chunk_size):
            yield data[i : i + self.chunk_size]
            if self.fail_mid_stream:
                raise StoreError("read", key, ConnectionResetError("reset"))


def basic_auth(username: str, password: str) -> dict[str, str]:
    """Build an Authorization header dict for httpx."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture(scope="session")
def credentials() -> CredentialStore:
    """A credential store with one user, hashed at the minimum cost."""
    hashed = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()
    return CredentialStore({USERNAME: hashed})


@pytest.fixture
def config() -> CamgateConfig:
    """A test config; listeners are never started by the app tests."""
    return CamgateConfig(
        server=ServerConfig(host="127.0.0.1", http_port=8080, https_port=0, realm="test-realm")
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        {
            "2024/05/01/a.jpg": b"\x01\x02\x03",
            "2024/05/01/b.jpg": b"\x04\x05",
            "2024/05/01/clip.avi": b"RIFFdata",
            "2024/05/02/c.jpg": b"\x06",
        }
    )


@pytest.fixture
def app(config, credentials, store):
    return create_app(config, credentials, store)


@pytest.fixture
async def client(app) -> AsyncClient:
    """Unauthenticated async client for the camgate app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return basic_auth(USERNAME, PASSWORD)


@pytest.fixture
def make_auth():
    """Return the basic_auth helper for tests that need custom credentials."""
    return basic_auth


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging()/basicConfig() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
