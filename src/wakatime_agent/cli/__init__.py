"""Process execution utilities."""

from .runner import (
    FakeProcessRunner,
    ProcessNotFoundError,
    ProcessResult,
    ProcessRunner,
    ProcessRunnerError,
    ProcessTimeoutError,
)
from .utils import format_arguments, is_valid_api_key, obfuscate_key, quote_argument

__all__ = [
    "FakeProcessRunner",
    "ProcessNotFoundError",
    "ProcessResult",
    "ProcessRunner",
    "ProcessRunnerError",
    "ProcessTimeoutError",
    "format_arguments",
    "is_valid_api_key",
    "obfuscate_key",
    "quote_argument",
]
