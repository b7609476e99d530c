"""Async runner for external processes (wakatime-cli and host utilities)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .utils import sanitize_environment

logger = logging.getLogger(__name__)


class ProcessRunnerError(RuntimeError):
    """Base class for process runner errors."""


class ProcessNotFoundError(ProcessRunnerError):
    """Raised when an executable cannot be spawned."""


class ProcessTimeoutError(ProcessRunnerError):
    """Raised when a process does not exit within the configured timeout."""


@dataclass(slots=True)
class ProcessResult:
    """Holds the outcome of a process invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def stdout_lines(self) -> list[str]:
        return [line for line in self.stdout.splitlines() if line.strip()]

    @property
    def stderr_lines(self) -> list[str]:
        return [line for line in self.stderr.splitlines() if line.strip()]


class ProcessRunner:
    """Execute commands asynchronously, collecting their output until exit.

    A ``timeout`` of ``None`` waits forever. Otherwise a process still running
    after ``timeout`` seconds is killed and :class:`ProcessTimeoutError` raised.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def run(self, executable: str | Path, *args: str) -> ProcessResult:
        return await self._invoke(str(executable), *args)

    async def _invoke(self, executable: str, *args: str) -> ProcessResult:
        cmd = [executable, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=sanitize_environment(),
            )
        except OSError as exc:
            raise ProcessNotFoundError(f"Unable to run {executable}: {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise ProcessTimeoutError(
                f"{executable} did not exit within {self._timeout} seconds"
            ) from exc

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        logger.debug(
            "Process exited",
            extra={"executable": executable, "returncode": process.returncode},
        )
        return ProcessResult(
            args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr
        )


class FakeProcessRunner(ProcessRunner):
    """Test double that simulates process responses.

    Responses are consumed in order; once exhausted every call succeeds with
    empty output. A response that is an exception instance is raised instead.
    """

    def __init__(
        self, responses: Iterable[ProcessResult | ProcessRunnerError] | None = None
    ) -> None:
        super().__init__(timeout=None)
        self._responses = list(responses or [])
        self._invocations: list[tuple[str, ...]] = []

    async def _invoke(self, executable: str, *args: str) -> ProcessResult:  # type: ignore[override]
        self._invocations.append((executable, *args))
        if self._responses:
            response = self._responses.pop(0)
            if isinstance(response, ProcessRunnerError):
                raise response
            return response
        return ProcessResult(args=(executable, *args), returncode=0, stdout="", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations
