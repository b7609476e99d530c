"""Heartbeat data models."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(slots=True)
class EditorDocument:
    """What the host editor tells us about the document an event fired for."""

    path: str | None
    is_empty: bool = False
    syntax: str | None = None
    is_remote: bool = False
    text: str = ""


@dataclass(slots=True)
class ThrottleState:
    """Last dispatched heartbeat. Lives in memory only."""

    last_file: str = ""
    last_sent_at_ms: int = 0


class HeartbeatEvent(BaseModel):
    """A single heartbeat handed to wakatime-cli."""

    model_config = ConfigDict(frozen=True)

    file_path: str = Field(..., description="Absolute path of the file being edited.")
    is_write: bool = Field(default=False, description="Whether the event came from a save.")
    language: str | None = Field(default=None, description="Editor syntax hint, if known.")
    local_file: str | None = Field(
        default=None,
        description="Temporary snapshot of a remote document's contents.",
    )

    @field_validator("file_path")
    @classmethod
    def _validate_file_path(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Heartbeat file path must not be empty")
        if not os.path.isabs(normalized):
            raise ValueError("Heartbeat file path must be absolute")
        return normalized

    @field_validator("language", "local_file")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ExitStatus(str, Enum):
    """Meaning of a wakatime-cli exit code."""

    SUCCESS = "success"
    OFFLINE = "offline"
    CONFIG_PARSE_ERROR = "config_parse_error"
    INVALID_API_KEY = "invalid_api_key"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: int) -> "ExitStatus":
        return _EXIT_CODES.get(code, cls.UNKNOWN)


_EXIT_CODES = {
    0: ExitStatus.SUCCESS,
    102: ExitStatus.OFFLINE,
    112: ExitStatus.OFFLINE,
    103: ExitStatus.CONFIG_PARSE_ERROR,
    104: ExitStatus.INVALID_API_KEY,
}


__all__ = ["EditorDocument", "ExitStatus", "HeartbeatEvent", "ThrottleState"]
