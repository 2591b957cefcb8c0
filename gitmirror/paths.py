"""
Module that resolves the repository path sent by a client.

git clients send the path part of the repository URL as the last argument of the
service command. Depending on the client and the URL form this may be quoted, start
with a "~", lack a leading slash or lack the ".git" suffix. All of these spellings of
the same repository resolve to one normalized path, which is then mapped onto the local
mirror tree and onto the repository tree of the master.
"""

from __future__ import annotations

from dataclasses import dataclass

from gitmirror.config import Config
from gitmirror.errors import PathError

GIT_SUFFIX = ".git"
QUOTES = ("'", '"')


@dataclass(frozen=True)
class RepoPath:
    """
    Resolved locations of a repository.

    client_path is the normalized path as requested by the client, base_path is the
    same path with the configured local base prefix removed. local_dir and remote_dir
    are the locations of the repository on this host and on the master respectively.

    All paths are absolute and end with a single ".git" suffix, or are empty.
    """

    client_path: str
    base_path: str
    local_dir: str
    remote_dir: str


def _force_leading_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def _strip_quotes(arg: str) -> str:
    if arg[:1] in QUOTES:
        arg = arg[1:]

    if arg[-1:] in QUOTES:
        arg = arg[:-1]

    return arg


def normalize(arg: str) -> str:
    """
    Normalize a client path argument.

    Returns an empty string for an empty argument. The result is idempotent under
    normalization: normalize(normalize(x)) == normalize(x).
    """
    path = _strip_quotes(arg)

    if not path:
        return ""

    # "~" refers to the repository root rather than a home directory
    if path.startswith("~"):
        path = path[1:]

    path = _force_leading_slash(path)

    while path.endswith(GIT_SUFFIX):
        path = path[: -len(GIT_SUFFIX)]

    return path + GIT_SUFFIX


def strip_base(path: str, local_base: str) -> str:
    """
    Remove the local base prefix from a normalized path, if it is present.

    The path is kept as is if the remainder doesn't name a repository, such as when
    the base covers the whole path.
    """
    if not local_base or not path.startswith(local_base):
        return path

    stripped = _force_leading_slash(path[len(local_base) :])

    if not stripped.endswith(GIT_SUFFIX) or stripped == "/" + GIT_SUFFIX:
        return path

    return stripped


def join_root(root: str, path: str) -> str:
    """Place a normalized path under a repository root directory."""
    return _force_leading_slash(root.rstrip("/") + path)


def resolve(arg: str, config: Config) -> RepoPath:
    """Resolve a client path argument into the local and remote repository paths."""
    client_path = normalize(arg)

    if not client_path:
        raise PathError("can't find dir parameter")

    base_path = strip_base(client_path, config.local_base)

    return RepoPath(
        client_path=client_path,
        base_path=base_path,
        local_dir=join_root(config.local_repos, base_path),
        remote_dir=join_root(config.remote_repos, base_path),
    )
