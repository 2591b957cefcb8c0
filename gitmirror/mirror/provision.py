"""Module that creates local mirrors of repositories on the master."""

import ctypes
from enum import auto, Enum
import errno
import os
import tempfile

from semver import VersionInfo

import gitmirror.constants as constants
from gitmirror.config import Config
from gitmirror.errors import ConfigurationError
from gitmirror.git import Git, GitError
from gitmirror.logger import log
from gitmirror.paths import RepoPath

# https://github.com/torvalds/linux/blob/master/include/uapi/linux/fcntl.h
AT_FDCWD = -100

# https://github.com/torvalds/linux/blob/master/include/uapi/linux/fs.h
RENAME_NOREPLACE = 1

SCRATCH_PREFIX = ".git-mirror-"


class ProvisionOutcome(Enum):
    """Result of an attempt to create a mirror."""

    CREATED = auto()
    EXISTS = auto()
    RACE_LOST = auto()
    UNREACHABLE = auto()


class MirrorProvisioner:
    """
    Creates mirrors of master repositories on demand.

    A mirror is first built in a scratch directory next to the mirror tree and only
    moved to its final location once it is completely configured and the master is
    known to serve the repository. The final move is an atomic rename that refuses to
    overwrite an existing repository, so concurrent requests for the same repository
    end up with exactly one of them publishing its mirror while the others discard
    their copies. At no point can a half-initialized repository be observed at the
    final location.
    """

    def __init__(self, config: Config, git: Git):
        """Create a provisioner for the mirror tree described by the config."""
        self._config = config
        self._git = git

    def provision(self, repo: RepoPath) -> ProvisionOutcome:
        """Create the local mirror of a repository unless it already exists."""
        root = self._config.local_repos
        self._prepare_root(root)

        # Fast path, the final rename is what actually guards against duplicates
        if os.path.exists(repo.local_dir):
            return ProvisionOutcome.EXISTS

        self._check_git_version()

        # The scratch directory must be on the same file system as the destination to
        # be able to rename it into place.
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX, dir=root) as scratch:
            scratch_repo = os.path.join(scratch, os.path.basename(repo.local_dir))

            self._init_mirror(scratch_repo, repo.remote_dir)

            # Don't publish a mirror that could never be filled
            try:
                self._git.ls_remote(scratch_repo)
            except GitError as e:
                log.info(f"master repository {repo.remote_dir} not reachable: {e}")
                return ProvisionOutcome.UNREACHABLE

            os.makedirs(os.path.dirname(repo.local_dir), exist_ok=True)

            if not rename_noreplace(scratch_repo, repo.local_dir):
                log.info(f"mirror {repo.local_dir} was created concurrently")
                return ProvisionOutcome.RACE_LOST

        log.info(f"created mirror {repo.local_dir} of {repo.remote_dir}")

        return ProvisionOutcome.CREATED

    @staticmethod
    def _prepare_root(root: str) -> None:
        """Ensure that the mirror tree exists and is only accessible by its owner."""
        try:
            os.makedirs(root, mode=0o700, exist_ok=True)
            os.chmod(root, 0o700)
        except OSError as e:
            raise ConfigurationError(f"can't prepare mirror root {root}: {e}")

    def _check_git_version(self) -> None:
        try:
            version = self._git.version()
        except GitError as e:
            raise ConfigurationError(f"could not determine git version: {e}")

        if version < VersionInfo.parse(constants.MIN_GIT_VERSION):
            raise ConfigurationError(
                f"git {version} is too old, need {constants.MIN_GIT_VERSION}"
            )

    def _init_mirror(self, path: str, remote_dir: str) -> None:
        """Initialize an empty repository that mirrors all references of the master."""
        self._git.init_bare(path)

        self._git.set_config(
            path, "remote.origin.url", self._config.upstream_url(remote_dir)
        )
        self._git.set_config(path, constants.MIRROR_FLAG, "true")

        # Mirror everything, not only branches and tags
        self._git.set_config(path, "remote.origin.fetch", "+refs/*:refs/*")


def _renameat2(src: str, dst: str, flags: int) -> int:
    """
    Call renameat2() from libc and return 0 or the errno of the failure.

    Raises OSError or AttributeError if libc doesn't provide renameat2().
    """
    libc = ctypes.CDLL("libc.so.6", use_errno=True)

    renameat2 = libc.renameat2
    renameat2.argtypes = [
        ctypes.c_int,
        ctypes.c_char_p,
        ctypes.c_int,
        ctypes.c_char_p,
        ctypes.c_uint,
    ]
    renameat2.restype = ctypes.c_int

    if renameat2(AT_FDCWD, os.fsencode(src), AT_FDCWD, os.fsencode(dst), flags) == 0:
        return 0
    else:
        return ctypes.get_errno()


def rename_noreplace(src: str, dst: str) -> bool:
    """
    Atomically rename src to dst unless dst exists.

    Returns False without touching either path if dst exists.
    """
    try:
        err = _renameat2(src, dst, RENAME_NOREPLACE)
    except (OSError, AttributeError):
        # No renameat2() in this libc
        err = errno.ENOSYS

    if err == 0:
        return True
    elif err == errno.EEXIST:
        return False
    elif err not in (errno.ENOSYS, errno.EINVAL):
        raise OSError(err, os.strerror(err), dst)

    # Kernel or file system lacks RENAME_NOREPLACE. rename() never replaces a
    # non-empty directory, so a published mirror still can't be overwritten.
    if os.path.lexists(dst):
        return False

    try:
        os.rename(src, dst)
    except OSError as e:
        if e.errno in (errno.EEXIST, errno.ENOTEMPTY):
            return False

        raise

    return True
