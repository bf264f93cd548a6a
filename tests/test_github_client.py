"""GitHub release client against an httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from releases_notifier.config import GitHubConfig
from releases_notifier.errors import ReleaseFetchError
from releases_notifier.github.client import GitHubClient


def _config(**overrides) -> GitHubConfig:
    values = dict(
        api_url="https://api.github.test",
        token="secret",
        timeout_seconds=5,
        max_retries=1,
        request_delay_seconds=0.0,
    )
    values.update(overrides)
    return GitHubConfig(**values)


RELEASES_JSON = [
    {"name": "v2.0-rc1", "tag_name": "v2.0-rc1", "html_url": "https://gh/r/3",
     "body": "rc", "prerelease": True, "draft": False},
    {"name": "", "tag_name": "v1.1", "html_url": "https://gh/r/2",
     "body": None, "prerelease": False, "draft": False},
    {"name": "draft", "tag_name": "v9", "html_url": "https://gh/r/9",
     "body": "wip", "prerelease": False, "draft": True},
    {"name": "v1.0", "tag_name": "v1.0", "html_url": "https://gh/r/1",
     "body": "first", "prerelease": False, "draft": False},
]


async def test_get_versions_oldest_first():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["per_page"] = request.url.params["per_page"]
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=RELEASES_JSON)

    async with GitHubClient(_config(), transport=httpx.MockTransport(handler)) as client:
        releases = await client.get_versions("acme", "widget", 20)

    assert seen == {"path": "/repos/acme/widget/releases", "per_page": "20", "auth": "Bearer secret"}
    assert [r.name for r in releases] == ["v1.0", "v1.1", "v2.0-rc1"]
    assert releases[1].description == ""
    assert releases[-1].is_prerelease
    assert client.total_requests == 1


async def test_missing_repo_raises_fetch_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"message": "Not Found"}))
    async with GitHubClient(_config(), transport=transport) as client:
        with pytest.raises(ReleaseFetchError) as exc_info:
            await client.get_versions("ghost", "missing", 20)

    assert exc_info.value.reason == "repository not found"


async def test_server_error_retried_then_succeeds(monkeypatch):
    async def no_sleep(_):
        return None

    monkeypatch.setattr("releases_notifier.utils.resilience.asyncio.sleep", no_sleep)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502)
        return httpx.Response(200, json=[])

    async with GitHubClient(_config(max_retries=3), transport=httpx.MockTransport(handler)) as client:
        assert await client.get_versions("acme", "widget", 5) == []

    assert len(calls) == 2


async def test_transport_error_becomes_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with GitHubClient(_config(), transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ReleaseFetchError):
            await client.get_versions("acme", "widget", 5)


async def test_no_token_sends_no_auth_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=[])

    async with GitHubClient(_config(token=""), transport=httpx.MockTransport(handler)) as client:
        await client.get_versions("acme", "widget", 500)

    assert seen["auth"] is None
