"""Module that updates existing mirrors from the master."""

from gitmirror.git import Git, GitError
from gitmirror.logger import log
from gitmirror.paths import RepoPath


class MirrorRefresher:
    """Fetches all references of the master into a local mirror."""

    def __init__(self, git: Git):
        """Create a refresher that runs fetches with the given git runner."""
        self._git = git

    def refresh(self, repo: RepoPath) -> bool:
        """
        Bring the mirror of a repository up to date.

        Returns whether the update succeeded. A failed update leaves the mirror as it
        was, which callers may choose to serve anyway.
        """
        log.debug(f"updating mirror {repo.local_dir}")

        try:
            self._git.fetch(repo.local_dir)
        except GitError as e:
            log.info(f"failed to update mirror {repo.local_dir}: {e}")
            return False

        return True
