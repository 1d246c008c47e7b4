"""
Error types raised by cw2slack.

Library code raises these and never recovers from them locally; the entry
point in ``cw2slack.main`` maps each kind to a process exit code.
"""

from typing import Optional


class Cw2SlackError(Exception):
    """Base class for all cw2slack errors."""

    exit_code = 1


class ConfigError(Cw2SlackError):
    """Configuration file is missing, unreadable, malformed or invalid."""

    exit_code = 2


class RequestError(Cw2SlackError):
    """Network or transport failure talking to a remote service."""

    exit_code = 3


class ApiError(Cw2SlackError):
    """The source API answered with a status outside [200, 300)."""

    exit_code = 4

    def __init__(self, status_code: int, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        if url:
            message = f"HTTP {status_code} from {url}"
        else:
            message = f"HTTP {status_code}"
        super().__init__(message)


class DecodeError(Cw2SlackError):
    """A response body was not valid JSON of the expected shape."""

    exit_code = 5
