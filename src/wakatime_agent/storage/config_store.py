"""File-backed access to the user settings and internal cache files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config import AgentSettings
from .ini import IniDocument

logger = logging.getLogger(__name__)


class ConfigWriteError(RuntimeError):
    """Raised when a config file cannot be rewritten."""


class ConfigStore:
    """Read-modify-write access to a single INI-style file.

    Reads never fail: a missing or unreadable file behaves as an empty one.
    Writes rewrite the whole file in place and are not safe against
    concurrent writers.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> IniDocument:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return IniDocument()
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug(
                "Unable to read config file", extra={"path": str(self._path), "error": str(exc)}
            )
            return IniDocument()
        return IniDocument.parse(text)

    def get(self, section: str, key: str) -> str:
        return self.load().get(section, key) or ""

    def set(self, section: str, key: str, value: str) -> None:
        document = self.load()
        document.set(section, key, value)
        try:
            self._path.write_text(document.render(), encoding="utf-8")
        except OSError as exc:
            raise ConfigWriteError(f"Unable to write {self._path}: {exc}") from exc


@dataclass(slots=True)
class ConfigStores:
    """The user-editable settings file and the internal cache file."""

    user: ConfigStore
    internal: ConfigStore

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> "ConfigStores":
        return cls(
            user=ConfigStore(settings.config_file()),
            internal=ConfigStore(settings.internal_config_file()),
        )

    def _store(self, internal: bool) -> ConfigStore:
        return self.internal if internal else self.user

    def get(self, section: str, key: str, *, internal: bool = False) -> str:
        return self._store(internal).get(section, key)

    def set(self, section: str, key: str, value: str, *, internal: bool = False) -> None:
        self._store(internal).set(section, key, value)

    def proxy(self) -> str | None:
        return self.get("settings", "proxy") or None

    def verify_ssl(self) -> bool:
        return self.get("settings", "no_sll_verify") != "true"


__all__ = ["ConfigStore", "ConfigStores", "ConfigWriteError"]
