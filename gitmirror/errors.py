"""
Module defining the errors that end a request.

Every error that should reach the remote client derives from MirrorError. Only the
command-line entry point turns these into an exit code and a diagnostic line, so all
other code simply raises them.
"""

from enum import Enum


class ErrorKind(Enum):
    """Categories of fatal errors."""

    CONFIGURATION = "configuration"
    PATH = "path"
    POLICY = "policy"
    USAGE = "usage"


class MirrorError(Exception):
    """Base class for errors that abort the request."""

    kind: ErrorKind

    def __init__(self, message: str):
        """Instantiate the error with a message suitable for the remote client."""
        super().__init__(message)
        self.message = message


class ConfigurationError(MirrorError):
    """A required setting is missing or invalid."""

    kind = ErrorKind.CONFIGURATION


class PathError(MirrorError):
    """The repository path argument is missing or unusable."""

    kind = ErrorKind.PATH


class PolicyRejection(MirrorError):
    """The request is not allowed by the read/write policy of this mirror."""

    kind = ErrorKind.POLICY


class UsageError(MirrorError):
    """git-mirror was invoked as an unknown service or with unusable arguments."""

    kind = ErrorKind.USAGE
