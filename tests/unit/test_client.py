"""Tests for the entity REST client."""

from __future__ import annotations

import httpx
import pytest

from spoilerdown.client import EntityApiClient, EntityFetcher
from spoilerdown.embeds import EntityType
from spoilerdown.errors import EntityFetchError


def _client(handler, **kwargs: object) -> EntityApiClient:  # type: ignore[no-untyped-def]
    return EntityApiClient(
        "https://api.example.org/api/", transport=httpx.MockTransport(handler), **kwargs
    )


def test_url_for_uses_type_endpoint() -> None:
    client = EntityApiClient("https://api.example.org/api/")

    assert client.base_url == "https://api.example.org/api"
    assert client.url_for(EntityType.CHARACTER, 1) == "https://api.example.org/api/characters/1"
    assert client.url_for(EntityType.GAMBLE, 12) == "https://api.example.org/api/gambles/12"


def test_client_satisfies_fetcher_protocol() -> None:
    assert isinstance(EntityApiClient(), EntityFetcher)


@pytest.mark.asyncio
async def test_fetch_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 5, "name": "Tower Arc"})

    async with _client(handler) as client:
        payload = await client.fetch_entity(EntityType.ARC, 5)

    assert payload == {"id": 5, "name": "Tower Arc"}
    assert str(seen[0].url) == "https://api.example.org/api/arcs/5"
    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_bearer_token_sent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 1})

    async with _client(handler, token="secret") as client:
        await client.fetch_entity(EntityType.CHARACTER, 1)

    assert seen[0].headers["authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_404_is_none() -> None:
    async with _client(lambda request: httpx.Response(404)) as client:
        assert await client.fetch_entity(EntityType.CHARACTER, 999) is None


@pytest.mark.parametrize("content", [b"", b"  ", b"null", b"{}"])
@pytest.mark.asyncio
async def test_empty_body_is_none(content: bytes) -> None:
    async with _client(lambda request: httpx.Response(200, content=content)) as client:
        assert await client.fetch_entity(EntityType.QUOTE, 1) is None


@pytest.mark.asyncio
async def test_server_error_raises_with_status() -> None:
    async with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(EntityFetchError) as exc_info:
            await client.fetch_entity(EntityType.ARC, 5)

    assert exc_info.value.status_code == 500
    assert exc_info.value.entity_id == 5
    assert "status 500" in exc_info.value.reason


@pytest.mark.asyncio
async def test_non_object_body_raises() -> None:
    async with _client(lambda request: httpx.Response(200, json=[1, 2])) as client:
        with pytest.raises(EntityFetchError, match="Expected a JSON object, got list"):
            await client.fetch_entity(EntityType.ARC, 5)


@pytest.mark.asyncio
async def test_invalid_json_raises() -> None:
    async with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(EntityFetchError, match="Invalid JSON response"):
            await client.fetch_entity(EntityType.ARC, 5)


@pytest.mark.asyncio
async def test_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("too slow", request=request)

    async with _client(handler) as client:
        with pytest.raises(EntityFetchError, match="Request timed out") as exc_info:
            await client.fetch_entity(EntityType.VOLUME, 2)

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


@pytest.mark.asyncio
async def test_connection_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(EntityFetchError, match="Request failed"):
            await client.fetch_entity(EntityType.VOLUME, 2)
