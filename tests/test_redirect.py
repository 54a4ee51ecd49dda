"""Redirect endpoint behavior tests."""

import datetime

import pytest
from httpx import AsyncClient

from app.store import UrlMappingStore


@pytest.mark.asyncio
async def test_redirect_valid_code(client: AsyncClient) -> None:
    # Create a short URL first
    create_resp = await client.post("/shorten", json={"longUrl": "https://www.google.com"})
    short_code = create_resp.text.rsplit("/", 1)[-1]

    # Follow redirect (httpx won't follow by default)
    response = await client.get(f"/{short_code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://www.google.com"


@pytest.mark.asyncio
async def test_redirect_invalid_code(client: AsyncClient) -> None:
    response = await client.get("/nonexistent", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_redirect_increments_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/shorten", json={"longUrl": "https://www.python.org"})
    short_code = create_resp.text.rsplit("/", 1)[-1]

    # Visit 3 times
    for _ in range(3):
        await client.get(f"/{short_code}", follow_redirects=False)

    stats_resp = await client.get(f"/api/stats/{short_code}")
    assert stats_resp.status_code == 200
    assert stats_resp.json()["clicks"] == 3


@pytest.mark.asyncio
async def test_redirect_with_custom_code(client: AsyncClient) -> None:
    await client.post(
        "/shorten",
        json={"longUrl": "https://www.github.com", "customShortCode": "ghub"},
    )
    response = await client.get("/ghub", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://www.github.com"


@pytest.mark.asyncio
async def test_redirect_expired_code(client: AsyncClient, store: UrlMappingStore, make_mapping) -> None:
    past = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=5)
    await store.insert(
        make_mapping(
            "old123",
            "https://www.example.com/old",
            created_at=past - datetime.timedelta(hours=1),
            expires_at=past,
        )
    )

    response = await client.get("/old123", follow_redirects=False)
    assert response.status_code == 404

    mapping = await store.find_by_code("old123")
    assert mapping.clicks == 0
