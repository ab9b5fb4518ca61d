"""Allocator context lifecycle, readiness and configuration tests."""

import asyncio

import httpx
import pytest

from suid.context import SuidContext
from suid.models import Suid

from conftest import FIRST_GRANTED_BLOCK, SERVER_URL


@pytest.mark.asyncio
async def test_start_fetches_and_becomes_ready(ctx, block_server):
    assert ctx.ready is False

    await ctx.start()
    await ctx.wait_ready(timeout=1)

    assert ctx.ready is True
    assert block_server.requests[0].url.params["blocks"] == "4"
    assert ctx.next() == Suid(FIRST_GRANTED_BLOCK)


@pytest.mark.asyncio
async def test_on_ready_fires_once_after_readiness(ctx):
    calls = []
    ctx.on_ready(lambda: calls.append("ready"))
    assert calls == []

    await ctx.start()
    await ctx.wait_ready(timeout=1)
    await asyncio.sleep(0)
    assert calls == ["ready"]

    ctx.store.save([])
    ctx.replenisher.fetch()
    await ctx.replenisher.join()
    await asyncio.sleep(0)
    assert calls == ["ready"]


@pytest.mark.asyncio
async def test_on_ready_after_readiness_is_still_asynchronous(ctx):
    ctx.store.save([1000])
    calls = []

    ctx.on_ready(lambda: calls.append("ready"))
    assert calls == []

    await asyncio.sleep(0)
    assert calls == ["ready"]


@pytest.mark.asyncio
async def test_wait_ready_times_out_without_supply(settings, memory_redis):
    context = SuidContext(settings.model_copy(update={"SUID_SERVER_URL": None}), redis_client=memory_redis)
    try:
        with pytest.raises(asyncio.TimeoutError):
            await context.wait_ready(timeout=0.01)
    finally:
        await context.aclose()


@pytest.mark.asyncio
async def test_configure_rechecks_readiness(settings, memory_redis, block_server):
    context = SuidContext(
        settings.model_copy(update={"SUID_SERVER_URL": None}),
        redis_client=memory_redis,
        transport=httpx.MockTransport(block_server),
    )
    try:
        context.store.save([1000])
        calls = []
        context.on_ready(lambda: calls.append("ready"))
        await asyncio.sleep(0)
        assert calls == []

        context.configure(server_url=SERVER_URL)
        await asyncio.sleep(0)

        assert context.ready is True
        assert calls == ["ready"]
        await context.replenisher.join()
        assert block_server.requests[0].url.params["blocks"] == "3"
    finally:
        await context.aclose()


@pytest.mark.asyncio
async def test_configure_validates_options(ctx):
    with pytest.raises(ValueError, match="Unknown suid option"):
        ctx.configure(url="http://elsewhere")
    with pytest.raises(ValueError, match="positive integer"):
        ctx.configure(pool_min=0)


@pytest.mark.asyncio
async def test_configure_is_scoped_to_context(ctx, settings):
    ctx.store.save([1000, 2000, 3000, 4000, 5000])
    ctx.configure(pool_min=5, pool_max=8)

    assert ctx.settings.SUID_POOL_MIN == 5
    assert ctx.settings.SUID_POOL_MAX == 8
    assert settings.SUID_POOL_MIN == 3


@pytest.mark.asyncio
async def test_contexts_are_independent(settings, block_server):
    first = SuidContext(settings, transport=httpx.MockTransport(block_server))
    second = SuidContext(settings, transport=httpx.MockTransport(block_server))
    try:
        first.store.save([1000])
        second.store.save([2000])

        assert first.next() == Suid(1000)
        assert second.next() == Suid(2000)
        assert first.allocator.current_id == 1
        assert second.allocator.current_id == 1
    finally:
        await first.aclose()
        await second.aclose()
