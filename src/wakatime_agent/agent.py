"""The long-lived service that turns editor events into heartbeats."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
import time
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import ValidationError

from . import __version__
from .cache import RuntimeCache
from .cli import ProcessRunner, is_valid_api_key
from .config import AgentSettings
from .heartbeat import (
    EditorDocument,
    HeartbeatDispatcher,
    HeartbeatEvent,
    HeartbeatThrottler,
)
from .installer import DependencyInstaller, ToolState
from .releases import ReleaseClient
from .storage import ConfigStores, ConfigWriteError

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "wakatime_agent"
DASHBOARD_URL = "https://wakatime.com/dashboard"
LOCAL_FILE_MAX_CHARS = 128_000


def plugin_identifier(settings: AgentSettings) -> str:
    return f"{settings.editor_name}/{settings.editor_version} wakatime-agent/{__version__}"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class WakaTimeAgent:
    """Own every collaborator of the heartbeat pipeline for one editor instance.

    Components can be injected for testing; anything omitted is built from
    ``settings``. The first heartbeat waits until the one-time startup path
    (make sure wakatime-cli is installed and current) has finished.
    """

    def __init__(
        self,
        settings: AgentSettings,
        *,
        stores: ConfigStores | None = None,
        runner: ProcessRunner | None = None,
        releases: ReleaseClient | None = None,
        cache: RuntimeCache | None = None,
        installer: DependencyInstaller | None = None,
        throttler: HeartbeatThrottler | None = None,
        dispatcher: HeartbeatDispatcher | None = None,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        self._settings = settings
        self._stores = stores or ConfigStores.from_settings(settings)
        self._runner = runner or ProcessRunner(timeout=settings.process_timeout)
        self._releases = releases or ReleaseClient(
            settings.releases_url, timeout=settings.http_timeout
        )
        self._cache = cache or RuntimeCache(
            stores=self._stores, releases=self._releases, runner=self._runner
        )
        self._installer = installer or DependencyInstaller(
            settings=settings,
            cache=self._cache,
            releases=self._releases,
            stores=self._stores,
            runner=self._runner,
        )
        self._throttler = throttler or HeartbeatThrottler()
        self._env_key = self._env_api_key()
        self._dispatcher = dispatcher or HeartbeatDispatcher(
            locator=self._installer,
            runner=self._runner,
            plugin=plugin_identifier(settings),
            api_key=self._env_key,
        )
        self._clock_ms = clock_ms or _epoch_millis
        self._debug: bool | None = None
        self._startup: asyncio.Future[ToolState | None] | None = None
        self._ready = False
        self._tool_state: ToolState | None = None

    @property
    def settings(self) -> AgentSettings:
        return self._settings

    @property
    def stores(self) -> ConfigStores:
        return self._stores

    @property
    def installer(self) -> DependencyInstaller:
        return self._installer

    @property
    def throttler(self) -> HeartbeatThrottler:
        return self._throttler

    @property
    def dispatcher(self) -> HeartbeatDispatcher:
        return self._dispatcher

    @property
    def ready(self) -> bool:
        return self._ready

    def _env_api_key(self) -> str | None:
        key = self._settings.api_key
        if not key:
            return None
        if not is_valid_api_key(key.strip()):
            logger.warning("Ignoring WAKATIME_API_KEY: not a valid API key")
            return None
        return key.strip()

    async def ensure_ready(self) -> ToolState | None:
        """Run the install check once; concurrent callers share the same run."""

        if self._ready:
            return self._tool_state
        if self._startup is None:
            self._startup = asyncio.ensure_future(self._run_startup())
        return await asyncio.shield(self._startup)

    async def _run_startup(self) -> ToolState | None:
        """Run the install check; a failure is logged and still marks the agent ready."""

        try:
            self._tool_state = await self._installer.ensure_current()
        except Exception:
            logger.exception("wakatime-cli install check failed")
            self._tool_state = None
        finally:
            self._ready = True
        return self._tool_state

    async def activate(self) -> ToolState | None:
        self.apply_log_level()
        logger.debug("Initializing version %s", __version__)
        state = await self.ensure_ready()
        if not self._env_key and not self.has_api_key():
            logger.warning("No WakaTime API key configured; set one with the set_api_key tool")
        logger.debug("Finished initializing WakaTime agent")
        return state

    async def handle_event(
        self, document: EditorDocument | None, *, is_write: bool = False
    ) -> bool:
        """Send a heartbeat for ``document`` if the throttle allows it.

        Returns True when a heartbeat was dispatched.
        """

        accepted = self._throttler.accept(document, is_write=is_write, now_ms=self._clock_ms())
        if document is None or not accepted:
            return False

        local_file = self._local_file_if_remote(document)
        try:
            event = HeartbeatEvent(
                file_path=document.path or "",
                is_write=is_write,
                language=document.syntax,
                local_file=local_file,
            )
        except ValidationError as exc:
            logger.warning("Discarding heartbeat for %s: %s", document.path, exc)
            if local_file:
                with contextlib.suppress(OSError):
                    os.remove(local_file)
            return False

        await self.ensure_ready()
        await self._dispatcher.send(event)
        return True

    def _local_file_if_remote(self, document: EditorDocument) -> str | None:
        if not document.is_remote:
            return None
        try:
            handle, path = tempfile.mkstemp(prefix="wakatime-")
            with os.fdopen(handle, "w", encoding="utf-8") as snapshot:
                snapshot.write(document.text[:LOCAL_FILE_MAX_CHARS])
        except OSError as exc:
            logger.warning("Unable to write local copy of remote document: %s", exc)
            return None
        return path

    def get_api_key(self) -> str:
        key = self._stores.get("settings", "api_key")
        return key if is_valid_api_key(key) else ""

    def has_api_key(self) -> bool:
        return bool(self.get_api_key())

    def set_api_key(self, value: str | None) -> bool:
        """Persist ``value`` when it is a valid API key; invalid values are dropped."""

        candidate = (value or "").strip()
        if not is_valid_api_key(candidate):
            return False
        try:
            self._stores.set("settings", "api_key", candidate)
        except ConfigWriteError as exc:
            logger.error("Unable to save API key: %s", exc)
            return False
        return True

    def is_debug_enabled(self) -> bool:
        if self._debug is None:
            self._debug = self._stores.get("settings", "debug") == "true"
        return self._debug

    def set_debug(self, enabled: bool) -> bool:
        try:
            self._stores.set("settings", "debug", "true" if enabled else "false")
        except ConfigWriteError as exc:
            logger.error("Unable to save debug setting: %s", exc)
            return False
        self._debug = enabled
        self.apply_log_level()
        return True

    def apply_log_level(self) -> None:
        level = logging.DEBUG if self.is_debug_enabled() else logging.NOTSET
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    def dashboard_url(self) -> str:
        return DASHBOARD_URL

    async def status(self) -> dict[str, Any]:
        installation = await self._installer.installation()
        throttle = self._throttler.state
        last_sent = self._dispatcher.last_sent_at
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "agent_version": __version__,
            "plugin": self._dispatcher.plugin,
            "ready": self._ready,
            "tool_state": self._tool_state.value if self._tool_state else None,
            "cli": {
                "path": str(installation.path) if installation else None,
                "alias": str(self._installer.alias_location()),
                "version": installation.version if installation else None,
                "architecture": installation.architecture.value if installation else None,
                "latest_version": self._cache.cached_latest_version,
            },
            "heartbeats": {
                "last_file": throttle.last_file or None,
                "last_sent_at_ms": throttle.last_sent_at_ms or None,
                "last_status": (
                    self._dispatcher.last_status.value if self._dispatcher.last_status else None
                ),
                "last_success_at": last_sent.isoformat() if last_sent else None,
            },
            "api_key_configured": self.has_api_key(),
            "debug": self.is_debug_enabled(),
            "config_file": str(self._stores.user.path),
        }


__all__ = ["DASHBOARD_URL", "LOCAL_FILE_MAX_CHARS", "WakaTimeAgent", "plugin_identifier"]
