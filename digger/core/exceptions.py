"""
Exceptions raised by the digger client.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification carried by DiggerClientError."""

    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    INTERRUPTED = "interrupted"
    UNCLASSIFIED = "unclassified"


class DiggerError(Exception):
    """Base exception for digger errors."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED


class ConfigurationError(DiggerError):
    """Malformed server address or credentials."""

    kind = ErrorKind.CONFIGURATION


class APIError(DiggerError):
    """Jenkins API call failed."""
    pass


class JenkinsConnectionError(APIError):
    """Jenkins could not be reached or refused our credentials."""

    kind = ErrorKind.CONNECTION


class JenkinsAPIError(APIError):
    """Jenkins answered with an unexpected status or payload."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class JobNotFoundError(JenkinsAPIError):
    """The requested job does not exist on the server."""
    pass


class WaitInterruptedError(DiggerError):
    """A wait between polls was interrupted."""

    kind = ErrorKind.INTERRUPTED


class DiggerClientError(DiggerError):
    """
    The single error type raised by DiggerClient.

    The underlying failure is always available as ``__cause__``.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNCLASSIFIED):
        super().__init__(message)
        self.kind = kind

    @staticmethod
    def kind_of(cause: BaseException) -> ErrorKind:
        if isinstance(cause, DiggerError):
            return cause.kind
        if isinstance(cause, OSError):
            return ErrorKind.CONNECTION
        return ErrorKind.UNCLASSIFIED

    @classmethod
    def wrap(cls, message: str, cause: BaseException) -> "DiggerClientError":
        """Build a client error whose kind follows the wrapped failure."""
        return cls(f"{message}: {cause}" if str(cause) else message, cls.kind_of(cause))
