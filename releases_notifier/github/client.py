"""Releases Notifier — GitHub Release Client.

Async client for the GitHub REST API built on httpx.AsyncClient with:
  - Optional token authentication
  - Exponential backoff retry on transport errors and 5xx responses
  - Request pacing via AsyncRateLimiter
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from releases_notifier.config import GitHubConfig
from releases_notifier.database.models import Release
from releases_notifier.errors import ReleaseFetchError
from releases_notifier.utils.logger import get_logger
from releases_notifier.utils.rate_limiter import AsyncRateLimiter
from releases_notifier.utils.resilience import retry_async

logger = get_logger(__name__)

_MAX_PER_PAGE = 100


def _parse_release(item: dict[str, Any]) -> Release:
    """Convert one REST release object into a Release."""
    return Release(
        name=item.get("name") or item.get("tag_name") or "",
        url=item.get("html_url") or "",
        description=item.get("body") or "",
        is_prerelease=bool(item.get("prerelease", False)),
    )


class GitHubClient:
    """Fetches published releases of GitHub repositories.

    Attributes:
        config: GitHub section of the app configuration.
        max_retries: Attempts per request, read by the retry decorator.
        total_requests: Successful requests this session.
    """

    def __init__(
        self,
        config: GitHubConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: GitHubConfig from settings.yaml.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self.config = config
        self.max_retries = config.max_retries
        self.total_requests = 0
        self._transport = transport
        self._rate_limiter = AsyncRateLimiter(
            max_calls=1,
            period_seconds=config.request_delay_seconds,
        )
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "releases-notifier",
            }
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    @retry_async(
        max_attempts=3,
        base_delay=2.0,
        exceptions=(httpx.TransportError, httpx.HTTPStatusError),
        attempts_attr="max_retries",
    )
    async def _request(self, path: str, params: dict[str, Any]) -> httpx.Response:
        """GET a path; 5xx responses raise so the decorator retries them."""
        await self._rate_limiter.acquire()
        client = await self._get_client()
        response = await client.get(path, params=params)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def get_versions(self, owner: str, name: str, limit: int) -> list[Release]:
        """Fetch the most recent published releases of a repository.

        Draft releases are skipped.

        Args:
            owner: Repository owner.
            name: Repository name.
            limit: Maximum number of releases (capped at 100).

        Returns:
            Releases ordered oldest → newest.

        Raises:
            ReleaseFetchError: If the repository does not exist or GitHub
                cannot be reached.
        """
        path = f"/repos/{owner}/{name}/releases"
        params = {"per_page": max(1, min(limit, _MAX_PER_PAGE))}
        logger.debug("Fetching releases of %s/%s (limit=%d)", owner, name, limit)

        try:
            response = await self._request(path, params)
        except httpx.HTTPError as e:
            logger.warning("GitHub request for %s/%s failed: %s", owner, name, e)
            raise ReleaseFetchError(owner, name, str(e)) from e

        if response.status_code == 404:
            raise ReleaseFetchError(owner, name, "repository not found")
        if response.status_code >= 400:
            raise ReleaseFetchError(owner, name, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ReleaseFetchError(owner, name, "invalid JSON response") from e
        if not isinstance(payload, list):
            raise ReleaseFetchError(owner, name, "unexpected response shape")

        self.total_requests += 1
        releases = [_parse_release(item) for item in payload if not item.get("draft")]
        # GitHub lists newest first
        releases.reverse()
        logger.debug("Fetched %d releases of %s/%s", len(releases), owner, name)
        return releases

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
