"""Keep a current wakatime-cli binary in the managed resources directory."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .cache import Architecture, RuntimeCache
from .cli import ProcessRunner, ProcessRunnerError
from .config import AgentSettings
from .releases import ReleaseClient, ReleaseFetchError
from .storage import ConfigStores

logger = logging.getLogger(__name__)

CLI_NAME = "wakatime-cli"
ARCHIVE_NAME = f"{CLI_NAME}.zip"


class ToolState(str, Enum):
    MISSING = "missing"
    STALE = "stale"
    CURRENT = "current"


@dataclass(frozen=True, slots=True)
class ToolInstallation:
    """A wakatime-cli binary on disk. Replaced wholesale, never modified."""

    path: Path
    version: str
    architecture: Architecture


class DependencyInstaller:
    """Install or update wakatime-cli when it is missing or behind the latest release."""

    def __init__(
        self,
        *,
        settings: AgentSettings,
        cache: RuntimeCache,
        releases: ReleaseClient,
        stores: ConfigStores,
        runner: ProcessRunner,
        unzip: str | None = None,
        ln: str | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._releases = releases
        self._stores = stores
        self._runner = runner
        self._unzip = unzip or shutil.which("unzip") or "/usr/bin/unzip"
        self._ln = ln or shutil.which("ln") or "/bin/ln"

    def resources_dir(self) -> Path:
        return self._settings.resources_dir()

    async def cli_location(self) -> Path:
        architecture = await self._cache.get_architecture()
        name = f"{CLI_NAME}-{self._settings.cli_os}-{architecture.value}"
        return self.resources_dir() / name

    def alias_location(self) -> Path:
        return self.resources_dir() / CLI_NAME

    async def download_url(self, version: str) -> str:
        architecture = await self._cache.get_architecture()
        return (
            f"{self._settings.download_prefix}/{version}/"
            f"{CLI_NAME}-{self._settings.cli_os}-{architecture.value}.zip"
        )

    async def is_installed(self) -> bool:
        cli = await self.cli_location()
        return cli.is_file() and os.access(cli, os.X_OK)

    async def installed_version(self) -> str | None:
        cli = await self.cli_location()
        try:
            result = await self._runner.run(cli, "--version")
        except ProcessRunnerError as exc:
            logger.error("Failed to check local wakatime-cli version with error: %s", exc)
            return None
        if result.stderr_lines:
            logger.error(
                "Failed to check local wakatime-cli version with error: %s",
                "\n".join(result.stderr_lines),
            )
        version = result.stdout.strip()
        logger.debug("Current wakatime-cli version is %s", version)
        return version

    async def check_state(self) -> ToolState:
        if not await self.is_installed():
            return ToolState.MISSING

        current = await self.installed_version()
        logger.debug("Checking for updates to wakatime-cli...")
        latest = await self._cache.get_latest_version()
        if latest is None:
            logger.debug("Unable to get latest wakatime-cli version")
            return ToolState.CURRENT
        if current == latest:
            logger.debug("wakatime-cli is up to date")
            return ToolState.CURRENT
        logger.debug("Found new wakatime-cli version: %s", latest)
        return ToolState.STALE

    async def install(self) -> bool:
        """Download, unpack and alias the latest release. Returns False when aborted."""

        version = await self._cache.get_latest_version()
        if not version:
            logger.warning("Latest wakatime-cli version unknown; skipping install")
            return False

        url = await self.download_url(version)
        logger.debug("Downloading wakatime-cli from %s", url)
        try:
            payload = await self._releases.download(
                url, proxy=self._stores.proxy(), verify_ssl=self._stores.verify_ssl()
            )
        except ReleaseFetchError as exc:
            logger.error("Failed to download wakatime-cli: %s", exc)
            return False

        folder = self.resources_dir()
        archive = folder / ARCHIVE_NAME
        try:
            archive.write_bytes(payload)
        except OSError as exc:
            logger.error("Failed to write %s: %s", archive, exc)
            return False

        try:
            await self._extract(archive, folder)
        finally:
            archive.unlink(missing_ok=True)

        await self._symlink()
        return True

    async def _extract(self, archive: Path, folder: Path) -> None:
        logger.debug("Extracting %s file...", archive.name)
        try:
            result = await self._runner.run(self._unzip, "-o", str(archive), "-d", str(folder))
        except ProcessRunnerError as exc:
            logger.error("Failed to extract %s with error: %s", archive.name, exc)
            return
        if result.stderr_lines:
            logger.error(
                "Failed to extract %s with error: %s", archive.name, "\n".join(result.stderr_lines)
            )

    async def _symlink(self) -> None:
        cli = await self.cli_location()
        alias = self.alias_location()
        try:
            result = await self._runner.run(self._ln, "-s", "-f", str(cli), str(alias))
        except ProcessRunnerError as exc:
            logger.error("Failed to link %s to %s: %s", alias, cli, exc)
            return
        if result.stderr_lines:
            logger.error("Failed to link %s to %s: %s", alias, cli, "\n".join(result.stderr_lines))

    async def ensure_current(self) -> ToolState:
        """Install when missing or stale; return the state once done."""

        state = await self.check_state()
        if state is ToolState.CURRENT:
            return state

        logger.debug("wakatime-cli is %s, installing", state.value)
        if not await self.install():
            return state
        logger.debug("Finished installing wakatime-cli")
        return ToolState.CURRENT if await self.is_installed() else ToolState.MISSING

    async def installation(self) -> ToolInstallation | None:
        if not await self.is_installed():
            return None
        version = await self.installed_version()
        architecture = await self._cache.get_architecture()
        return ToolInstallation(
            path=await self.cli_location(), version=version or "", architecture=architecture
        )


__all__ = ["ARCHIVE_NAME", "CLI_NAME", "DependencyInstaller", "ToolInstallation", "ToolState"]
