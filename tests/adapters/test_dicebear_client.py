import httpx
import pytest

from infrastructure.adapters.avatar_generator import DiceBearAvatarGenerator
from infrastructure.external.api_clients import APIError, DiceBearClient

DEFAULT_URL = "/uploads/avatars/default.png"


def make_client(handler, max_retries: int = 1) -> DiceBearClient:
    return DiceBearClient(
        base_url="https://avatars.test/7.x",
        style="bottts-neutral",
        size=64,
        max_retries=max_retries,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetch_png_sends_seed_and_size():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

    async with make_client(handler) as client:
        data = await client.fetch_png("alice_01")

    assert data == b"\x89PNG"
    assert seen[0].url.path == "/7.x/bottts-neutral/png"
    assert seen[0].url.params["seed"] == "alice_01"
    assert seen[0].url.params["size"] == "64"


@pytest.mark.asyncio
async def test_retries_transient_errors_then_succeeds():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503)
        return httpx.Response(200, content=b"png", headers={"content-type": "image/png"})

    async with make_client(handler) as client:
        assert await client.fetch_png("seed") == b"png"
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_non_image_response_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "nope"})

    async with make_client(handler) as client:
        with pytest.raises(APIError):
            await client.fetch_png("seed")


@pytest.mark.asyncio
async def test_generator_stores_avatar(storage):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"png", headers={"content-type": "image/png"})

    client = make_client(handler)
    url = await DiceBearAvatarGenerator(client, storage, DEFAULT_URL).generate("alice_01")
    await client.close()

    assert url.startswith("/uploads/avatars/") and url.endswith(".png")
    assert url != DEFAULT_URL


@pytest.mark.asyncio
async def test_generator_falls_back_to_default_on_failure(storage):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    client = make_client(handler, max_retries=0)
    url = await DiceBearAvatarGenerator(client, storage, DEFAULT_URL).generate("alice_01")
    await client.close()

    assert url == DEFAULT_URL
