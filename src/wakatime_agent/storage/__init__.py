"""Storage abstractions for the WakaTime agent."""

from .config_store import ConfigStore, ConfigStores, ConfigWriteError
from .ini import IniDocument

__all__ = [
    "ConfigStore",
    "ConfigStores",
    "ConfigWriteError",
    "IniDocument",
]
