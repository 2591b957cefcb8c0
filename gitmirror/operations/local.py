"""Module that serves a request with a git service on this host."""

from typing import List

from gitmirror.routing import ServeLocal
from gitmirror.service import ServiceRequest
from .common import Operations


class ServeLocalOperations(Operations):
    """Runs the local git service on the local repository."""

    def __init__(self, request: ServiceRequest, decision: ServeLocal):
        """Initialize local operations for a request routed to this host."""
        super().__init__(request)
        self._decision = decision

    def _compose_command(self) -> List[str]:
        """Compose the command line of the local service."""
        return [self._decision.handler, *self._request.options, self._decision.path]
