"""Redirect endpoint behavior tests."""

import pytest
from httpx import AsyncClient


async def create(client: AsyncClient, **body) -> str:
    body.setdefault("originalUrl", "https://example.com")
    response = await client.post("/api/urls", json=body)
    assert response.status_code == 201
    return response.json()["shortCode"]


@pytest.mark.asyncio
async def test_redirect_valid_code(client: AsyncClient) -> None:
    short_code = await create(client, originalUrl="https://www.google.com")

    # httpx won't follow by default
    response = await client.get(f"/t/{short_code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://www.google.com"


@pytest.mark.asyncio
async def test_redirect_invalid_code(client: AsyncClient) -> None:
    response = await client.get("/t/nonexistent", follow_redirects=False)
    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_redirect_one_time_use(client: AsyncClient) -> None:
    short_code = await create(client, oneTimeUse=True)

    first = await client.get(f"/t/{short_code}", follow_redirects=False)
    second = await client.get(f"/t/{short_code}", follow_redirects=False)

    assert first.status_code == 302
    assert second.status_code == 410


@pytest.mark.asyncio
async def test_redirect_max_attempts(client: AsyncClient) -> None:
    short_code = await create(client, maxAttempts=2)

    statuses = [(await client.get(f"/t/{short_code}", follow_redirects=False)).status_code for _ in range(3)]

    assert statuses == [302, 302, 429]
    info = (await client.get(f"/api/urls/info/{short_code}")).json()
    assert info["attemptCount"] == 3
    assert info["status"] == "attempts_exceeded"


@pytest.mark.asyncio
async def test_redirect_usage_scenario(client: AsyncClient) -> None:
    short_code = await create(client, maxUsage=2, maxAttempts=5)

    for expected_usage in (1, 2):
        response = await client.get(f"/t/{short_code}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com"
        info = (await client.get(f"/api/urls/info/{short_code}")).json()
        assert info["usageCount"] == expected_usage

    response = await client.get(f"/t/{short_code}", follow_redirects=False)
    assert response.status_code == 410

    info = (await client.get(f"/api/urls/info/{short_code}")).json()
    assert info["attemptCount"] == 3
    assert info["usageCount"] == 2
    assert info["status"] == "expired"


@pytest.mark.asyncio
async def test_redirect_past_expiration(client: AsyncClient) -> None:
    short_code = await create(client, expirationTime="2000-01-01T00:00:00Z")

    response = await client.get(f"/t/{short_code}", follow_redirects=False)

    assert response.status_code == 410
    info = (await client.get(f"/api/urls/info/{short_code}")).json()
    assert info["attemptCount"] == 1


@pytest.mark.asyncio
async def test_response_carries_request_id(client: AsyncClient) -> None:
    response = await client.get("/t/nonexistent", headers={"X-Request-ID": "req-42"})
    assert response.headers["x-request-id"] == "req-42"
