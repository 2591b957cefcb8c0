"""Module defining the git services that git-mirror stands in for."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import gitmirror.constants as constants
from gitmirror.config import Config
from gitmirror.errors import UsageError


class ServiceKind(Enum):
    """Kinds of requests, identified by the name of the git service executable."""

    PUSH = constants.RECEIVE_PACK
    FETCH = constants.UPLOAD_PACK
    ARCHIVE = constants.UPLOAD_ARCHIVE

    @property
    def service_name(self) -> str:
        """Name of the executable that implements the service."""
        return self.value

    @property
    def is_write(self) -> bool:
        """Check if the service modifies the repository."""
        return self is ServiceKind.PUSH

    @staticmethod
    def from_service_name(name: str) -> ServiceKind:
        """Look up the kind of request for a service executable name."""
        try:
            return ServiceKind(name)
        except ValueError:
            raise UsageError(f"unexpected service: {name}")

    def local_handler(self, config: Config) -> str:
        """Return the configured local executable that serves this kind of request."""
        return {
            ServiceKind.PUSH: config.git_receive_pack,
            ServiceKind.FETCH: config.git_upload_pack,
            ServiceKind.ARCHIVE: config.git_upload_archive,
        }[self]


@dataclass(frozen=True)
class ServiceRequest:
    """
    A request for a git service.

    path_arg is the repository path exactly as sent by the client and options holds
    the arguments preceding it, which are passed on to whichever command serves the
    request.
    """

    kind: ServiceKind
    path_arg: str
    options: Tuple[str, ...] = ()
