"""Utility helpers for building and logging process invocations."""

from __future__ import annotations

import os
import re
from typing import Iterable, Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
}

_API_KEY_PATTERN = re.compile(
    r"^[0-9A-F]{8}-[0-9A-F]{4}-4[0-9A-F]{3}-[89AB][0-9A-F]{3}-[0-9A-F]{12}$",
    re.IGNORECASE,
)

_KEY_FLAGS = {"--key"}
_MASK = "XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXX"


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a sanitized environment suitable for subprocess execution."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    if additional:
        env.update(additional)
    return env


def is_valid_api_key(key: str | None) -> bool:
    """Return True when ``key`` is a UUID v4 string (any case)."""

    if not key:
        return False
    return _API_KEY_PATTERN.fullmatch(key) is not None


def obfuscate_key(key: str | None) -> str:
    """Mask all but the last four characters of a credential."""

    if not key:
        return ""
    if len(key) <= 4:
        return key
    return _MASK + key[-4:]


def quote_argument(value: str) -> str:
    if " " in value:
        return '"' + value.replace('"', '\\"') + '"'
    return value


def format_arguments(binary: str, args: Iterable[str]) -> str:
    """Render a command line for the log with credentials masked."""

    rendered: list[str] = []
    previous = ""
    for arg in [binary, *args]:
        if previous in _KEY_FLAGS:
            rendered.append(quote_argument(obfuscate_key(arg)))
        else:
            rendered.append(quote_argument(arg))
        previous = arg
    return " ".join(rendered)
