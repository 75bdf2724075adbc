# Purpose: Define the error taxonomy shared by the chat client modules.
# Why: One place for failure kinds keeps the CLI's reporting table simple.
"""Exceptions raised by configuration loading and completion requests."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Classification of a failed completion request."""

    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def from_status(cls, status_code: Optional[int]) -> "ErrorKind":
        """Map an HTTP status code onto an error kind."""
        if status_code is None:
            return cls.UNCLASSIFIED
        return _STATUS_KINDS.get(status_code, cls.UNCLASSIFIED)


_STATUS_KINDS = {
    401: ErrorKind.AUTHENTICATION,
    429: ErrorKind.RATE_LIMITED,
    500: ErrorKind.UPSTREAM_UNAVAILABLE,
}


class ConfigReadError(OSError):
    """The env file could not be read."""


class ConfigError(ValueError):
    """The settings file exists but cannot be used."""


class MissingCredentialError(RuntimeError):
    """The access token variable is absent from the environment."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"{variable} not found in your .env file.")
        self.variable = variable


class CompletionError(Exception):
    """A chat completion request failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.kind = ErrorKind.from_status(status_code)
