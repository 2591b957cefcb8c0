"""Module that wraps the git command-line tool for managing mirror repositories."""

import os
import re
import shlex
import subprocess
from typing import Dict, List, Optional

import semver

from gitmirror.config import Config
from gitmirror.logger import log


class GitError(RuntimeError):
    """Exception raised when a git command fails."""

    def __init__(self, command: List[str], returncode: int, stderr: str):
        """Instantiate the exception with the failed command and its error output."""
        message = f"{' '.join(command)} failed ({returncode})"

        if stderr:
            message += f": {stderr}"

        super().__init__(message)

        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class Git:
    """
    Runs git commands on behalf of the mirror provisioner and refresher.

    Output of git is always captured. The stdout and stderr of this process belong to
    the client connection and must only carry the output of the served command.

    Network operations reach the master through the same ssh binary, options and
    identity that are used for forwarding requests.
    """

    def __init__(self, config: Config, executable: str = "git"):
        """Create a git runner that connects to the master configured in config."""
        self._config = config
        self._executable = executable

    def version(self) -> semver.VersionInfo:
        """Determine the version of the installed git."""
        output = self._run(["--version"])

        # For example "git version 2.39.2" or "git version 2.37.1 (Apple Git-137.1)"
        match = re.search(r"(\d+)\.(\d+)(?:\.(\d+))?", output)

        if match is None:
            raise GitError([self._executable, "--version"], 0, output.strip())

        major, minor, patch = match.groups()

        return semver.VersionInfo(int(major), int(minor), int(patch or 0))

    def init_bare(self, path: str) -> None:
        """Create an empty bare repository."""
        self._run(["init", "--quiet", "--bare", path])

    def set_config(self, repo: str, key: str, value: str) -> None:
        """Set a variable in the configuration of a repository."""
        self._run(["config", key, value], git_dir=repo)

    def get_bool(self, repo: str, key: str) -> Optional[bool]:
        """
        Read a boolean variable from the configuration of a repository.

        Returns None if the variable is not set. Raises GitError if it can't be read,
        for example because it is not a valid boolean.
        """
        command = [
            "config",
            "--file",
            os.path.join(repo, "config"),
            "--bool",
            "--get",
            key,
        ]

        try:
            return self._run(command).strip() == "true"
        except GitError as e:
            # git config exits with 1 if the variable is not set
            if e.returncode == 1 and not e.stderr:
                return None

            raise

    def ls_remote(self, repo: str, remote: str = "origin") -> str:
        """List the references of a remote repository."""
        return self._run(["ls-remote", remote], git_dir=repo)

    def fetch(self, repo: str, remote: str = "origin") -> None:
        """Fetch all references of the remote according to its refspec."""
        self._run(["fetch", "--quiet", "--prune", remote], git_dir=repo)

    def _environment(self) -> Dict[str, str]:
        env = dict(os.environ)

        # Set when running from within a git hook, which would redirect every command
        env.pop("GIT_DIR", None)
        env.pop("GIT_WORK_TREE", None)

        # Never wait for a password or host key confirmation that nobody can give
        ssh_command = self._config.ssh_command() + ["-oBatchMode=yes"]

        # GIT_SSH_COMMAND is interpreted by a shell
        env["GIT_SSH_COMMAND"] = " ".join(map(shlex.quote, ssh_command))
        env["GIT_TERMINAL_PROMPT"] = "0"

        return env

    def _run(self, args: List[str], git_dir: Optional[str] = None) -> str:
        command = [self._executable]

        if git_dir is not None:
            command.append(f"--git-dir={git_dir}")

        command.extend(args)

        log.debug(f"running {command}")

        try:
            proc = subprocess.run(
                command,
                env=self._environment(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise GitError(command, -1, str(e))

        if proc.returncode != 0:
            raise GitError(command, proc.returncode, proc.stderr.decode().strip())

        return proc.stdout.decode()

