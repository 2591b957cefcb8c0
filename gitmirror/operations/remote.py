"""Module that forwards a request to the git service on the master."""

import shlex
from typing import List

from gitmirror.config import Config
from gitmirror.routing import ForwardUpstream
from gitmirror.service import ServiceRequest
from .common import Operations


def sq_quote(arg: str) -> str:
    """Quote an argument in single quotes for a POSIX shell, the way git does."""
    return "'" + arg.replace("'", "'\\''") + "'"


class ForwardOperations(Operations):
    """
    Runs the git service on the master through an ssh session.

    ssh exits with the exit code of the remote service, or 255 if the session itself
    failed. Both are passed on to the client as is.
    """

    def __init__(
        self, config: Config, request: ServiceRequest, decision: ForwardUpstream
    ):
        """Initialize forwarding operations for a request routed to the master."""
        super().__init__(request)
        self._config = config
        self._decision = decision

    def _compose_command(self) -> List[str]:
        """Compose the ssh command that runs the service on the master."""
        ssh_command = self._config.ssh_command()

        # Specify the master
        ssh_command.append(self._config.upstream_login())

        # ssh hands the command to the remote shell as a single string
        remote_command = [self._decision.service]
        remote_command.extend(map(shlex.quote, self._request.options))
        remote_command.append(sq_quote(self._decision.path))

        ssh_command.append(" ".join(remote_command))

        return ssh_command
