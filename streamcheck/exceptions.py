"""
Error types raised by the token lifecycle and stream queries.
Nothing here is swallowed internally; callers decide how to report.
"""

from typing import Optional


class TwitchError(Exception):
    """Base class for every streamcheck failure."""


class NotFoundError(TwitchError):
    """Cached access token is absent or empty."""


class InvalidArgumentError(TwitchError, ValueError):
    """An argument was rejected before touching the store or network."""


class ConfigurationError(TwitchError, ValueError):
    """Credentials or backend settings are missing or still placeholders."""


class ValidationError(TwitchError):
    """The identity provider did not accept the cached token."""


class TransportError(TwitchError):
    """Network failure or unexpected HTTP status from a Twitch endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(TwitchError):
    """A response body could not be decoded into the expected shape."""
