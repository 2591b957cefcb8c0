"""
Modules that maintain the local mirror repositories.

A mirror is a bare repository below the local repository root that fetches all
references of a repository on the master. Mirrors are created lazily by the first read
request for a repository that doesn't exist locally yet, and brought up to date before
serving later reads. Nothing in here ever deletes a published mirror.

No locks are taken. Concurrent creation of the same mirror is resolved by building it
in a scratch directory and publishing it with a rename that fails if the destination
exists. Concurrent updates rely on git's own locking of references.
"""

from .provision import MirrorProvisioner, ProvisionOutcome
from .refresh import MirrorRefresher
from .state import inspect, MirrorState

__all__ = [
    "inspect",
    "MirrorProvisioner",
    "MirrorRefresher",
    "MirrorState",
    "ProvisionOutcome",
]
