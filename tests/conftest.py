"""Shared pytest fixtures for allocator, replenishment and API tests."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio
import redis
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_context
from app.main import app
from suid.allocator import ID_SIZE, SHARD_SIZE, LocalAllocator
from suid.config import Settings
from suid.context import SuidContext
from suid.pool import BlockPoolStore

SERVER_URL = "http://blocks.test/suid"
FIRST_GRANTED_BLOCK = 100000


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BlockServer:
    """Scripted stand-in for the block allocation service.

    Queued responses (or exceptions) are served first; after that every
    request is granted the next block.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []
        self.next_block = FIRST_GRANTED_BLOCK

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            scripted = self.responses.pop(0)
            if isinstance(scripted, Exception):
                raise scripted
            return scripted
        block = self.next_block
        self.next_block += ID_SIZE * SHARD_SIZE
        return httpx.Response(200, json=block)


@pytest.fixture
def settings() -> Settings:
    return Settings(SUID_SERVER_URL=SERVER_URL, REDIS_URL=None, SUID_POOL_MIN=3, SUID_POOL_MAX=4)


@pytest.fixture
def redis_data() -> dict[str, str]:
    return {}


@pytest.fixture
def memory_redis(redis_data: dict[str, str]) -> MagicMock:
    """Dict-backed Redis double covering the commands the pool store uses."""
    client = MagicMock(spec=redis.Redis)

    def _set(key: str, value: str, *args, **kwargs) -> bool:
        redis_data[key] = value
        return True

    def _delete(*keys: str) -> int:
        return sum(1 for key in keys if redis_data.pop(key, None) is not None)

    client.get.side_effect = redis_data.get
    client.set.side_effect = _set
    client.delete.side_effect = _delete
    return client


@pytest.fixture
def store(memory_redis: MagicMock) -> BlockPoolStore:
    return BlockPoolStore(memory_redis, key="suid:pool", legacy_key="suidpool")


@pytest.fixture
def on_low() -> MagicMock:
    return MagicMock()


@pytest.fixture
def allocator(store: BlockPoolStore, settings: Settings, on_low: MagicMock) -> LocalAllocator:
    return LocalAllocator(store, settings, on_low=on_low)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def block_server() -> BlockServer:
    return BlockServer()


@pytest_asyncio.fixture
async def ctx(
    settings: Settings,
    memory_redis: MagicMock,
    block_server: BlockServer,
    clock: FakeClock,
) -> AsyncGenerator[SuidContext, None]:
    context = SuidContext(
        settings,
        redis_client=memory_redis,
        transport=httpx.MockTransport(block_server),
        clock=clock,
    )
    yield context
    await context.aclose()


@pytest_asyncio.fixture
async def client(ctx: SuidContext) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_context() -> SuidContext:
        return ctx

    app.dependency_overrides[get_context] = override_get_context

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
