"""Hand heartbeats to wakatime-cli and report how it went."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, Protocol

from ..cli import ProcessResult, ProcessRunner, ProcessRunnerError, format_arguments
from .models import ExitStatus, HeartbeatEvent

logger = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CliLocator(Protocol):
    """Anything that can tell where the architecture-specific binary lives."""

    async def cli_location(self) -> os.PathLike[str]:
        ...


def format_date(moment: datetime) -> str:
    """Render ``moment`` as e.g. ``Oct 18, 2026 3:07 PM``."""

    hour = moment.hour
    ampm = "PM" if hour > 11 else "AM"
    hour = hour % 12 or 12
    return (
        f"{_MONTHS[moment.month - 1]} {moment.day}, {moment.year} "
        f"{hour}:{moment.minute:02d} {ampm}"
    )


class HeartbeatDispatcher:
    """Build the wakatime-cli command line for a heartbeat and run it."""

    def __init__(
        self,
        *,
        locator: CliLocator,
        runner: ProcessRunner,
        plugin: str,
        api_key: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._locator = locator
        self._runner = runner
        self._plugin = plugin
        self._api_key = api_key
        self._clock = clock or datetime.now
        self.last_status: ExitStatus | None = None
        self.last_sent_at: datetime | None = None

    @property
    def plugin(self) -> str:
        return self._plugin

    def build_arguments(self, event: HeartbeatEvent) -> list[str]:
        args = ["--entity", event.file_path, "--plugin", self._plugin]
        if event.is_write:
            args.append("--write")
        if event.language:
            args.extend(["--language", event.language])
        if event.local_file:
            args.extend(["--local-file", event.local_file])
        if self._api_key:
            args.extend(["--key", self._api_key])
        return args

    async def send(self, event: HeartbeatEvent) -> ExitStatus | None:
        """Run wakatime-cli for ``event``.

        Returns the interpreted exit status, or ``None`` when the process could
        not be run at all. The local snapshot file, if any, is always removed.
        """

        try:
            cli = str(await self._locator.cli_location())
            args = self.build_arguments(event)
            logger.debug("Sending heartbeat:\n%s", format_arguments(cli, args))
            try:
                result = await self._runner.run(cli, *args)
            except ProcessRunnerError as exc:
                logger.error("Failed to run wakatime-cli: %s", exc)
                return None

            status = ExitStatus.from_code(result.returncode)
            self._report(status, result)
            self.last_status = status
            if status is ExitStatus.SUCCESS:
                self.last_sent_at = self._clock()
            return status
        finally:
            if event.local_file:
                _remove_quietly(event.local_file)

    def _report(self, status: ExitStatus, result: ProcessResult) -> None:
        if status is ExitStatus.SUCCESS:
            logger.debug("Last heartbeat sent %s", format_date(self._clock()))
            return

        output_level = logging.DEBUG if status is ExitStatus.OFFLINE else logging.ERROR
        if result.stderr.strip():
            logger.log(output_level, "%s", result.stderr.strip())
        if result.stdout.strip():
            logger.log(output_level, "%s", result.stdout.strip())

        if status is ExitStatus.OFFLINE:
            logger.debug("WakaTime Offline, coding activity will sync when online")
        elif status is ExitStatus.CONFIG_PARSE_ERROR:
            logger.error(
                "An error occurred while parsing ~/.wakatime.cfg. "
                "Check ~/.wakatime.log for more info"
            )
        elif status is ExitStatus.INVALID_API_KEY:
            logger.error("Invalid API Key. Make sure your API Key is correct!")
        else:
            logger.error(
                "Unknown Error (%s); Check your ~/.wakatime.log file for more details.",
                result.returncode,
            )


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Unable to remove temporary file %s: %s", path, exc)


__all__ = ["CliLocator", "HeartbeatDispatcher", "format_date"]
