"""Process-lifetime memoization of the host architecture and latest wakatime-cli version."""

from __future__ import annotations

import asyncio
import logging
import shutil
from enum import Enum

from .cli import ProcessRunner, ProcessRunnerError
from .releases import ReleaseClient, ReleaseFetchError, ReleaseResponse
from .storage import ConfigStores, ConfigWriteError

logger = logging.getLogger(__name__)

INTERNAL_SECTION = "internal"
CLI_VERSION_KEY = "cli_version"
CLI_VERSION_LAST_MODIFIED_KEY = "cli_version_last_modified"


class Architecture(str, Enum):
    AMD64 = "amd64"
    ARM64 = "arm64"

    @classmethod
    def from_machine(cls, machine: str) -> "Architecture":
        """Classify ``uname -m`` output; anything ARM-like is arm64."""

        lowered = machine.lower()
        if "arm" in lowered or "aarch64" in lowered:
            return cls.ARM64
        return cls.AMD64


class RuntimeCache:
    """Lazily populated values that stay fixed until the process restarts.

    The architecture is detected once by spawning ``uname -m``. The latest
    release tag is fetched once, conditionally on the Last-Modified value
    kept in the internal config file. Neither value is ever invalidated.
    """

    def __init__(
        self,
        *,
        stores: ConfigStores,
        releases: ReleaseClient,
        runner: ProcessRunner,
        uname: str | None = None,
    ) -> None:
        self._stores = stores
        self._releases = releases
        self._runner = runner
        self._uname = uname
        self._architecture: Architecture | None = None
        self._architecture_lookup: asyncio.Future[Architecture] | None = None
        self._latest_version: str | None = None

    @property
    def cached_architecture(self) -> Architecture | None:
        return self._architecture

    @property
    def cached_latest_version(self) -> str | None:
        return self._latest_version

    async def get_architecture(self) -> Architecture:
        """Detect the architecture once; concurrent first callers share one ``uname``."""

        if self._architecture is not None:
            return self._architecture
        if self._architecture_lookup is None:
            self._architecture_lookup = asyncio.ensure_future(self._detect_architecture())
        return await asyncio.shield(self._architecture_lookup)

    async def _detect_architecture(self) -> Architecture:
        binary = self._uname or shutil.which("uname") or "/usr/bin/uname"
        architecture = Architecture.AMD64
        try:
            result = await self._runner.run(binary, "-m")
        except ProcessRunnerError as exc:
            logger.error("Unable to detect machine architecture: %s", exc)
        else:
            if result.stderr_lines:
                logger.error("uname reported an error: %s", "\n".join(result.stderr_lines))
            architecture = Architecture.from_machine(result.stdout)

        self._architecture = architecture
        return architecture

    async def _fetch(self, last_modified: str | None) -> ReleaseResponse:
        return await self._releases.fetch_latest(
            last_modified, proxy=self._stores.proxy(), verify_ssl=self._stores.verify_ssl()
        )

    async def get_latest_version(self) -> str | None:
        """Return the latest wakatime-cli release tag, or ``None`` when unknown."""

        if self._latest_version:
            return self._latest_version

        last_modified = self._stores.get(
            INTERNAL_SECTION, CLI_VERSION_LAST_MODIFIED_KEY, internal=True
        )
        try:
            response = await self._fetch(last_modified or None)
            logger.debug("GitHub API response %s", response.status)
            if response.status == 304:
                cached = self._stores.get(INTERNAL_SECTION, CLI_VERSION_KEY, internal=True)
                if cached:
                    logger.debug("Latest wakatime-cli version from cache: %s", cached)
                    self._latest_version = cached
                    return cached
                response = await self._fetch(None)
        except ReleaseFetchError as exc:
            logger.error("Unable to fetch latest wakatime-cli version: %s", exc)
            return None

        if response.status != 200 or not response.tag_name:
            logger.warning("GitHub API response %s: no release version available", response.status)
            return None

        latest = response.tag_name
        logger.debug("Latest wakatime-cli version from GitHub: %s", latest)
        try:
            self._stores.set(INTERNAL_SECTION, CLI_VERSION_KEY, latest, internal=True)
            if response.last_modified:
                self._stores.set(
                    INTERNAL_SECTION,
                    CLI_VERSION_LAST_MODIFIED_KEY,
                    response.last_modified,
                    internal=True,
                )
        except (ConfigWriteError, ValueError) as exc:
            logger.warning("Unable to cache wakatime-cli version: %s", exc)

        self._latest_version = latest
        return latest


__all__ = ["Architecture", "RuntimeCache", "CLI_VERSION_KEY", "CLI_VERSION_LAST_MODIFIED_KEY"]
