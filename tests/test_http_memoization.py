import asyncio

import httpx
import pytest

from throttle import throttle


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="https://api.example.test",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_request():
    hits = []

    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request.url.path)
        return httpx.Response(200, json={"login": "octocat"})

    async with _client(handler) as client:
        async def fetch_user(name: str) -> dict:
            resp = await client.get(f"/users/{name}")
            resp.raise_for_status()
            return resp.json()

        fetch = throttle(fetch_user, max_age=60)

        first, second = await asyncio.gather(fetch("octocat"), fetch("octocat"))
        third = await fetch("octocat")
        other = await fetch("hubot")

    assert first == second == third == {"login": "octocat"}
    assert other == {"login": "octocat"}
    assert hits == ["/users/octocat", "/users/hubot"]


@pytest.mark.asyncio
async def test_failed_request_is_retried_with_clear_policy():
    statuses = iter([503, 200])
    hits = []

    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request.url.path)
        return httpx.Response(next(statuses), json={"ok": True})

    async with _client(handler) as client:
        async def fetch_status() -> dict:
            resp = await client.get("/status")
            resp.raise_for_status()
            return resp.json()

        fetch = throttle(fetch_status, max_size=16, on_error="clear")

        with pytest.raises(httpx.HTTPStatusError):
            await fetch()
        assert len(fetch.cache) == 0

        assert await fetch() == {"ok": True}
        assert await fetch() == {"ok": True}

    assert len(hits) == 2
