"""Configuration management for the WakaTime agent."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__

GITHUB_RELEASES_URL = "https://api.github.com/repos/wakatime/wakatime-cli/releases/latest"
GITHUB_DOWNLOAD_PREFIX = "https://github.com/wakatime/wakatime-cli/releases/download"


class AgentSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    home_override: str | None = Field(default=None, validation_alias="WAKATIME_HOME")
    log_level: str = Field(default="INFO", validation_alias="WAKATIME_LOG_LEVEL")
    editor_name: str = Field(default="mcp", validation_alias="WAKATIME_EDITOR_NAME")
    editor_version: str = Field(default=__version__, validation_alias="WAKATIME_EDITOR_VERSION")
    cli_os: str = Field(default="darwin", validation_alias="WAKATIME_CLI_OS")
    releases_url: str = Field(default=GITHUB_RELEASES_URL, validation_alias="WAKATIME_RELEASES_URL")
    download_prefix: str = Field(
        default=GITHUB_DOWNLOAD_PREFIX, validation_alias="WAKATIME_DOWNLOAD_PREFIX"
    )
    http_timeout: float = Field(default=60.0, validation_alias="WAKATIME_HTTP_TIMEOUT")
    process_timeout: float = Field(default=300.0, validation_alias="WAKATIME_PROCESS_TIMEOUT")
    api_key: str | None = Field(default=None, validation_alias="WAKATIME_API_KEY")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WAKATIME_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("cli_os")
    @classmethod
    def _normalize_cli_os(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("WAKATIME_CLI_OS must not be empty")
        return normalized

    @field_validator("releases_url", "download_prefix")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("http_timeout", "process_timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts must be greater than zero seconds")
        return value

    def home_directory(self) -> Path:
        """Return the WAKATIME_HOME override when it is a directory, else the user's home."""

        if self.home_override:
            candidate = Path(self.home_override.strip()).expanduser()
            if candidate.is_dir():
                return candidate
        return Path.home()

    def resources_dir(self) -> Path:
        """Return the managed resources directory, creating it when missing."""

        folder = self.home_directory() / ".wakatime"
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def config_file(self) -> Path:
        return self.home_directory() / ".wakatime.cfg"

    def internal_config_file(self) -> Path:
        return self.home_directory() / ".wakatime-internal.cfg"


@lru_cache(maxsize=1)
def get_settings() -> AgentSettings:
    """Return cached settings instance."""

    return AgentSettings()


__all__ = ["AgentSettings", "get_settings", "GITHUB_RELEASES_URL", "GITHUB_DOWNLOAD_PREFIX"]
