"""Module that determines whether a repository is served from a local mirror."""

from enum import Enum
import os

import gitmirror.constants as constants
from gitmirror.git import Git, GitError
from gitmirror.logger import log


class MirrorState(Enum):
    """State of the local copy of a repository."""

    ABSENT = "absent"
    LOCAL_NONMIRROR = "local-nonmirror"
    LOCAL_MIRROR = "local-mirror"

    @property
    def exists(self) -> bool:
        """Check if the repository exists locally."""
        return self is not MirrorState.ABSENT

    @property
    def is_mirror(self) -> bool:
        """Check if the local repository is a mirror of the master."""
        return self is MirrorState.LOCAL_MIRROR


def inspect(local_dir: str, git: Git) -> MirrorState:
    """
    Determine the current state of a local repository.

    The state is read from disk on every call and must not be cached, since other
    requests may create the mirror at any time.
    """
    if not os.path.isdir(local_dir):
        return MirrorState.ABSENT

    try:
        is_mirror = git.get_bool(local_dir, constants.MIRROR_FLAG)
    except GitError as e:
        log.debug(f"could not read mirror flag of {local_dir}: {e}")
        is_mirror = False

    if is_mirror:
        return MirrorState.LOCAL_MIRROR
    else:
        return MirrorState.LOCAL_NONMIRROR
