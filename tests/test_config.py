from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from wakatime_agent.config import GITHUB_DOWNLOAD_PREFIX, GITHUB_RELEASES_URL, AgentSettings


def test_defaults(monkeypatch) -> None:
    for name in ("WAKATIME_HOME", "WAKATIME_LOG_LEVEL", "WAKATIME_CLI_OS", "WAKATIME_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    settings = AgentSettings()

    assert settings.log_level == "INFO"
    assert settings.cli_os == "darwin"
    assert settings.releases_url == GITHUB_RELEASES_URL
    assert settings.download_prefix == GITHUB_DOWNLOAD_PREFIX
    assert settings.http_timeout == 60.0
    assert settings.process_timeout == 300.0
    assert settings.api_key is None


def test_environment_overrides(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("WAKATIME_HOME", str(tmp_path))
    monkeypatch.setenv("WAKATIME_LOG_LEVEL", "debug")
    monkeypatch.setenv("WAKATIME_CLI_OS", " Linux ")
    monkeypatch.setenv("WAKATIME_DOWNLOAD_PREFIX", "https://mirror.test/dl/")

    settings = AgentSettings()

    assert settings.log_level == "DEBUG"
    assert settings.cli_os == "linux"
    assert settings.download_prefix == "https://mirror.test/dl"
    assert settings.home_directory() == tmp_path


def test_invalid_log_level_rejected() -> None:
    with pytest.raises(ValidationError):
        AgentSettings(WAKATIME_LOG_LEVEL="chatty")


def test_non_positive_timeout_rejected() -> None:
    with pytest.raises(ValidationError):
        AgentSettings(WAKATIME_PROCESS_TIMEOUT=0)


def test_home_override_must_be_a_directory(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path / "user"))
    missing = tmp_path / "does-not-exist"

    settings = AgentSettings(WAKATIME_HOME=str(missing))

    assert settings.home_directory() == Path.home()


def test_resource_and_config_paths(tmp_path: Path) -> None:
    settings = AgentSettings(WAKATIME_HOME=str(tmp_path))

    resources = settings.resources_dir()

    assert resources == tmp_path / ".wakatime"
    assert resources.is_dir()
    assert settings.config_file() == tmp_path / ".wakatime.cfg"
    assert settings.internal_config_file() == tmp_path / ".wakatime-internal.cfg"
