"""Fixtures that run the guest-store tests against every backend.

Redis is replaced by fakeredis; the managed KV REST API is emulated by
``FakeKVServer`` behind ``httpx.MockTransport``.
"""

import json

import fakeredis
import httpx
import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis

from wedding_rsvp.storage.file_store import FileGuestStore
from wedding_rsvp.storage.kv_store import KVGuestStore
from wedding_rsvp.storage.redis_store import RedisGuestStore

KV_URL = "https://kv.test"
KV_TOKEN = "test-token"


class FakeKVServer:
    """In-memory stand-in for the Upstash-style REST endpoint."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.commands: list[list[str]] = []
        self.fail_with: str | None = None

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("authorization") != f"Bearer {KV_TOKEN}":
            return httpx.Response(401, json={"error": "Unauthorized"})

        command = json.loads(request.content)
        self.commands.append(command)
        if self.fail_with:
            return httpx.Response(200, json={"error": self.fail_with})

        name, args = command[0].upper(), command[1:]
        if name == "PING":
            return httpx.Response(200, json={"result": "PONG"})
        if name == "GET":
            return httpx.Response(200, json={"result": self.data.get(args[0])})
        if name == "SET":
            key, value = args[0], args[1]
            self.data[key] = value
            if len(args) == 4 and args[2].upper() == "EX":
                self.expiry[key] = int(args[3])
            return httpx.Response(200, json={"result": "OK"})
        if name == "DEL":
            removed = int(self.data.pop(args[0], None) is not None)
            self.expiry.pop(args[0], None)
            return httpx.Response(200, json={"result": removed})
        return httpx.Response(400, json={"error": f"ERR unknown command '{name}'"})


@pytest.fixture
def redis_client():
    return fake_aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_store(redis_client) -> RedisGuestStore:
    return RedisGuestStore(redis_client, rate_limit_ttl_seconds=3600)


@pytest.fixture
def kv_server() -> FakeKVServer:
    return FakeKVServer()


def _kv_store(kv_server: FakeKVServer) -> KVGuestStore:
    return KVGuestStore(
        KV_URL,
        KV_TOKEN,
        rate_limit_ttl_seconds=3600,
        transport=httpx.MockTransport(kv_server.handle),
    )


@pytest_asyncio.fixture
async def kv_store(kv_server: FakeKVServer):
    store = _kv_store(kv_server)
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["file", "redis", "kv"])
async def store(request, tmp_path):
    """A guest store for each backend; contract tests run once per backend."""
    if request.param == "file":
        backend = FileGuestStore(tmp_path / "data")
    elif request.param == "redis":
        backend = RedisGuestStore(fake_aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True))
    else:
        backend = _kv_store(FakeKVServer())
    yield backend
    await backend.close()
