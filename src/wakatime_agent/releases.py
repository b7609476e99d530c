"""HTTP access to wakatime-cli release metadata and archives."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

import aiohttp

logger = logging.getLogger(__name__)

USER_AGENT = "github.com/wakatime/wakatime-agent"


class ReleaseFetchError(RuntimeError):
    """Raised when release metadata or an archive cannot be retrieved."""


@dataclass(slots=True)
class ReleaseResponse:
    """The parts of a latest-release response the agent cares about."""

    status: int
    tag_name: str | None = None
    last_modified: str | None = None


class ReleaseClient:
    """Fetch release metadata and archives over HTTP."""

    def __init__(self, releases_url: str, *, timeout: float = 60.0) -> None:
        self._releases_url = releases_url
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def releases_url(self) -> str:
        return self._releases_url

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=self._timeout, headers={"User-Agent": USER_AGENT})

    async def fetch_latest(
        self,
        last_modified: str | None = None,
        *,
        proxy: str | None = None,
        verify_ssl: bool = True,
    ) -> ReleaseResponse:
        """GET the latest-release document, conditionally when ``last_modified`` is known.

        Only a 200 response carries a parsed ``tag_name``; every other status is
        returned as-is for the caller to interpret.
        """

        headers = {"Accept": "application/json"}
        if last_modified:
            headers["If-Modified-Since"] = last_modified

        try:
            async with self._session() as session:
                async with session.get(
                    self._releases_url,
                    headers=headers,
                    proxy=proxy or None,
                    ssl=verify_ssl,
                ) as response:
                    if response.status != 200:
                        return ReleaseResponse(status=response.status)
                    body = await response.text()
                    try:
                        payload = json.loads(body)
                    except json.JSONDecodeError as exc:
                        raise ReleaseFetchError(f"Invalid release metadata: {exc}") from exc
                    tag_name = payload.get("tag_name") if isinstance(payload, dict) else None
                    return ReleaseResponse(
                        status=response.status,
                        tag_name=str(tag_name) if tag_name else None,
                        last_modified=response.headers.get("Last-Modified"),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ReleaseFetchError(f"Unable to fetch {self._releases_url}: {exc}") from exc

    async def download(
        self,
        url: str,
        *,
        proxy: str | None = None,
        verify_ssl: bool = True,
    ) -> bytes:
        """Download ``url`` fully into memory."""

        logger.debug("Downloading archive", extra={"url": url})
        try:
            async with self._session() as session:
                async with session.get(
                    url,
                    proxy=proxy or None,
                    ssl=verify_ssl,
                ) as response:
                    if response.status != 200:
                        raise ReleaseFetchError(
                            f"Download of {url} failed with HTTP {response.status}"
                        )
                    return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ReleaseFetchError(f"Unable to download {url}: {exc}") from exc


__all__ = ["ReleaseClient", "ReleaseFetchError", "ReleaseResponse", "USER_AGENT"]
