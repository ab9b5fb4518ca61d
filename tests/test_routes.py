"""HTTP endpoint tests."""

import pytest
from httpx import AsyncClient

from suid.enums import HealthStatus


@pytest.mark.asyncio
async def test_health_unhealthy_without_supply(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.UNHEALTHY.value
    assert data["server_configured"] is True
    assert data["pool_size"] == 0
    assert data["ready"] is False


@pytest.mark.asyncio
async def test_health_healthy_with_pooled_block(client: AsyncClient, ctx) -> None:
    ctx.store.save([1000])

    response = await client.get("/health")
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["pool_size"] == 1
    assert data["ready"] is True


@pytest.mark.asyncio
async def test_allocate_suid(client: AsyncClient, ctx) -> None:
    ctx.store.save([1000, 2000, 3000, 4000])

    first = await client.get("/api/suid")
    second = await client.get("/api/suid")

    assert first.status_code == 200
    assert first.json() == {"value": 1000, "text": "rs"}
    assert second.json() == {"value": 1004, "text": "rw"}


@pytest.mark.asyncio
async def test_allocate_suid_exhausted(client: AsyncClient) -> None:
    response = await client.get("/api/suid")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert "exhausted" in response.json()["detail"]


@pytest.mark.asyncio
async def test_decode_canonical_text(client: AsyncClient) -> None:
    response = await client.get("/api/suid/14she")
    assert response.status_code == 200
    assert response.json() == {"value": 1903154, "text": "14she"}


@pytest.mark.asyncio
async def test_decode_legacy_text(client: AsyncClient) -> None:
    response = await client.get("/api/suid/1u2ij", params={"format": "base32"})
    assert response.status_code == 200
    assert response.json() == {"value": 1903154, "text": "14she"}


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["14SHE", "zzzzzzzzzzzz"])
async def test_decode_rejects_malformed_text(client: AsyncClient, text: str) -> None:
    response = await client.get(f"/api/suid/{text}")
    assert response.status_code == 422
