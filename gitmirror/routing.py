"""
Module that decides how a request for a git service is served.

There are three possible decisions:

* ServeLocal: run the local git service on the repository on this host.
* ForwardUpstream: run the git service on the master through ssh.
* Reject: refuse the request because the read/write policy doesn't allow it.

Writes go to the master unless the repository exists locally and is not a mirror, so a
mirror never diverges from its master. Reads are served locally whenever possible and
may create a mirror first. Reads of repositories that can't be mirrored fall back to
the master.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from gitmirror.config import Config
from gitmirror.git import Git
from gitmirror.logger import log
from gitmirror.mirror import (
    inspect,
    MirrorProvisioner,
    MirrorRefresher,
    MirrorState,
)
import gitmirror.paths as paths
from gitmirror.service import ServiceKind, ServiceRequest


@dataclass(frozen=True)
class ServeLocal:
    """Serve the request with a local executable on a local repository."""

    handler: str
    path: str


@dataclass(frozen=True)
class ForwardUpstream:
    """Forward the request to the master."""

    service: str
    path: str


@dataclass(frozen=True)
class Reject:
    """Refuse the request."""

    reason: str


RoutingDecision = Union[ServeLocal, ForwardUpstream, Reject]


class Router:
    """Routing engine that turns service requests into decisions."""

    def __init__(
        self,
        config: Config,
        git: Optional[Git] = None,
        provisioner: Optional[MirrorProvisioner] = None,
        refresher: Optional[MirrorRefresher] = None,
    ):
        """Construct the routing engine and the mirror components it relies on."""
        self._config = config
        self._git = git or Git(config)
        self._provisioner = provisioner or MirrorProvisioner(config, self._git)
        self._refresher = refresher or MirrorRefresher(self._git)

    def route(self, request: ServiceRequest) -> RoutingDecision:
        """Decide how to serve the request."""
        repo = paths.resolve(request.path_arg, self._config)

        log.debug(f"resolved {request.path_arg!r} to {repo}")

        if request.kind.is_write:
            return self._route_receive(repo)
        else:
            return self._route_upload(request.kind, repo)

    def _inspect(self, repo: paths.RepoPath) -> MirrorState:
        state = inspect(repo.local_dir, self._git)

        log.debug(f"state of {repo.local_dir}: {state.value}")

        return state

    def _route_receive(self, repo: paths.RepoPath) -> RoutingDecision:
        state = self._inspect(repo)

        if state is MirrorState.LOCAL_NONMIRROR:
            log.info("repository exists locally and is not a mirror, serving push")
            return ServeLocal(self._config.git_receive_pack, repo.local_dir)

        log.info("repository does not exist locally or is a mirror, pushing to master")

        if not self._config.write_enabled:
            log.info("mirror push disabled (write_enabled == false)")
            return Reject("mirror is not setup to allow write to master, write aborted")

        return ForwardUpstream(ServiceKind.PUSH.service_name, repo.remote_dir)

    def _route_upload(self, kind: ServiceKind, repo: paths.RepoPath) -> RoutingDecision:
        config = self._config
        state = self._inspect(repo)

        if (
            state is MirrorState.ABSENT
            and config.auto_create
            and config.auto_update
            and config.read_enabled
        ):
            # An unreachable master leaves the repository absent, the request then
            # falls through to the master like any other unmirrored read.
            outcome = self._provisioner.provision(repo)
            log.info(f"mirror creation for {repo.local_dir}: {outcome.name.lower()}")

            state = self._inspect(repo)

        handler = kind.local_handler(config)

        if state is MirrorState.LOCAL_NONMIRROR:
            log.info("repository exists locally and is not a mirror, serving upload")
            return ServeLocal(handler, repo.local_dir)

        if state is MirrorState.LOCAL_MIRROR:
            if not config.read_enabled:
                log.info("mirror upload disabled (read_enabled == false)")
                return Reject(
                    "mirror is not setup to allow read of mirrored master repositories, "
                    "read aborted"
                )

            if config.auto_update and not self._refresher.refresh(repo):
                log.info("serving mirror as of now")

            log.info("serving upload of mirrored repository")
            return ServeLocal(handler, repo.local_dir)

        if not config.read_enabled:
            log.info("master upload disabled (read_enabled == false)")
            return Reject(
                "mirror is not setup to allow read of master repositories, read aborted"
            )

        log.info("repository does not exist locally, serving upload from master")
        return ForwardUpstream(kind.service_name, repo.remote_dir)
