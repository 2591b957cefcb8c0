"""Module with shared fixtures and the markers for tests that need extra tools."""

import os
import shutil
import subprocess

import pytest

from gitmirror.config import Config

# Deterministic commits regardless of the user's git configuration
GIT_ENV = {
    "GIT_AUTHOR_NAME": "git-mirror",
    "GIT_AUTHOR_EMAIL": "git-mirror@localhost",
    "GIT_COMMITTER_NAME": "git-mirror",
    "GIT_COMMITTER_EMAIL": "git-mirror@localhost",
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_CONFIG_GLOBAL": os.devnull,
}


def pytest_configure(config):
    config.addinivalue_line("markers", "git: mark test as requiring git to run")


def pytest_collection_modifyitems(config, items):
    if shutil.which("git") is None:
        skip_git = pytest.mark.skip(reason="git is not installed")

        for item in items:
            if "git" in item.keywords:
                item.add_marker(skip_git)


def run_git(*args, cwd=None):
    """Run a git command for test setup and return its output."""
    env = dict(os.environ)
    env.update(GIT_ENV)

    return subprocess.check_output(["git", *args], cwd=cwd, env=env).decode()


def make_upstream(path, work_dir):
    """Create a bare repository with a single commit on master."""
    run_git("init", "--quiet", "--bare", str(path))

    run_git("init", "--quiet", str(work_dir))
    (work_dir / "README").write_text("This is a test reference git\n")
    run_git("add", "README", cwd=str(work_dir))
    run_git("commit", "--quiet", "-m", "This is a test commit", cwd=str(work_dir))
    run_git("push", "--quiet", str(path), "HEAD:refs/heads/master", cwd=str(work_dir))

    return path


def has_ref(repo, ref):
    """Check if a repository contains a reference."""
    try:
        run_git(f"--git-dir={repo}", "rev-parse", "--verify", "--quiet", ref)
        return True
    except subprocess.CalledProcessError:
        return False


def make_script(path, body):
    """Create an executable shell script."""
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)

    return str(path)


@pytest.fixture
def identity(tmp_path):
    key = tmp_path / "id_mirror"
    key.write_text("not a real key\n")

    return str(key)


@pytest.fixture
def config(tmp_path, identity):
    """Config with a local and remote repository tree under tmp_path."""
    return Config(
        master_host="master.example.com",
        master_account="mirror",
        master_identity=identity,
        local_repos=str(tmp_path / "mirrors"),
        remote_repos=str(tmp_path / "references"),
    )


@pytest.fixture
def local_upstream(monkeypatch):
    """Make git reach the repositories of the master through the local file system."""
    monkeypatch.setattr(Config, "upstream_url", lambda self, remote_dir: remote_dir)


class MirrorHost:
    """
    A git-mirror installation in a temporary directory.

    The local services only print how they were invoked. The ssh stand-in records its
    arguments and runs the requested command with stand-ins for the services on the
    master, which fail for repositories that don't exist below the references tree.
    """

    SERVICES = ("git-upload-pack", "git-upload-archive", "git-receive-pack")

    def __init__(self, base, identity):
        self.root = base / "git-mirror"
        self.references = base / "references"
        self.mirrors = base / "mirrors"
        self.work = base / "work"
        self.calls = base / "ssh-calls"

        local_bin = base / "local-bin"
        master_bin = base / "master-bin"

        for path in (self.root, local_bin, master_bin):
            path.mkdir(parents=True)

        self.handlers = {}

        for service in self.SERVICES:
            self.handlers[service] = make_script(
                local_bin / service, f'echo "local {service} $*"'
            )
            make_script(
                master_bin / service,
                f"[ -d \"$1\" ] || {{ echo \"fatal: '$1' does not appear to be a git "
                f'repository" >&2; exit 128; }}\necho "master {service} $*"',
            )

        self.ssh = make_script(
            local_bin / "ssh",
            f'for last; do :; done\necho "$*" >> "{self.calls}"\n'
            f'PATH="{master_bin}:$PATH" exec sh -c "$last"',
        )

        self.identity = identity

    def configure(self, **settings):
        """Write the config file, settings use the names of the config file keys."""
        values = {
            "master-server": "localhost",
            "master-user": "mirror",
            "master-identity": self.identity,
            "ssh": self.ssh,
            "git-upload-pack": self.handlers["git-upload-pack"],
            "git-upload-archive": self.handlers["git-upload-archive"],
            "git-receive-pack": self.handlers["git-receive-pack"],
            "remote-repos": str(self.references),
            "local-repos": str(self.mirrors),
            "local-base": "/git-mirror-test",
        }
        values.update(settings)

        lines = ["[git-mirror]"] + [f"    {k} = {v}" for k, v in values.items()]
        (self.root / "config").write_text("\n".join(lines) + "\n")

    def add_upstream(self, name):
        """Create a repository on the master."""
        return make_upstream(self.references / name, self.work / name)

    def ssh_calls(self):
        """Return the argument lists ssh was started with."""
        if not self.calls.exists():
            return []

        return self.calls.read_text().splitlines()


@pytest.fixture
def mirror_host(tmp_path, monkeypatch, identity):
    host = MirrorHost(tmp_path, identity)

    monkeypatch.setenv("GIT_MIRROR_ROOT", str(host.root))
    monkeypatch.delenv("SSH_ORIGINAL_COMMAND", raising=False)

    return host
