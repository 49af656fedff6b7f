"""Exceptions for solis-control.

All errors raised by this package inherit from :class:`SolisError` so callers
can use a single ``except SolisError`` around a command. The router treats
every subclass except :class:`BusConnectionError` and
:class:`SolisConfigError` as locally recoverable.
"""

from __future__ import annotations

from typing import Any


class SolisError(Exception):
    """Base exception for solis-control."""

    pass


class SolisConfigError(SolisError):
    """Process configuration is incomplete or inconsistent."""

    pass


class SolisInvalidPayloadError(SolisError, ValueError):
    """A command payload failed local validation.

    Raised before any network call is made.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        """Initialize with the offending field name, if any.

        Args:
            message: Human readable description of the failure
            field: Name of the payload field that failed validation
        """
        self.field = field
        super().__init__(message)


class UnknownTopicError(SolisError):
    """Inbound topic does not map to a control parameter."""

    def __init__(self, topic: str) -> None:
        self.topic = topic
        super().__init__(f"Unknown topic: {topic}")


class SolisConnectionError(SolisError):
    """Failed to reach the SolisCloud API (connection, DNS or timeout)."""

    pass


class SolisAPIError(SolisError):
    """The SolisCloud API was reached but the call did not succeed.

    The decoded envelope, when there is one, is kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | int | None = None,
        response: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the server's code and raw envelope.

        Args:
            message: Description of the failure
            code: The ``code`` field reported by the server
            response: The complete decoded response envelope
        """
        self.code = code
        self.response = response
        super().__init__(message)


class SolisRemoteRejectedError(SolisAPIError):
    """The API answered with a non-success code."""

    pass


class SolisMalformedResponseError(SolisAPIError):
    """The API response could not be parsed or lacks required fields."""

    pass


class SolisNotImplementedError(SolisError):
    """The command is recognised but its write path is intentionally unfinished."""

    pass


class BusConnectionError(SolisError):
    """The MQTT broker connection failed or was lost."""

    pass
