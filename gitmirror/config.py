"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, Error as ConfigParserError, SectionProxy
from dataclasses import dataclass
import os
import shlex
import shutil
from typing import List, Optional, Tuple

import gitmirror.constants as constants
from gitmirror.errors import ConfigurationError
from gitmirror.logger import log, summarize


def root_dir() -> str:
    """Return the directory holding the config and log files."""
    return os.path.expanduser(os.getenv(constants.ROOT_ENV) or constants.DEFAULT_ROOT)


def default_config_path() -> str:
    """Return the path of the config file used when none is specified."""
    return os.path.join(root_dir(), constants.CONFIG_FILENAME)


def default_log_path() -> str:
    """Return the path of the debug log file."""
    return os.path.join(root_dir(), constants.LOG_FILENAME)


@dataclass(frozen=True)
class Config:
    """
    Configuration variables of a mirror host.

    A Config is loaded once per request and handed to every component that needs it.
    The field names follow the meaning of the settings, the keys in the config file
    follow the historical git-config style names (see load()).
    """

    master_host: str = ""
    master_account: str = ""
    master_identity: str = ""

    ssh: str = "ssh"
    ssh_opts: Tuple[str, ...] = ()

    git_receive_pack: str = "/usr/bin/git-receive-pack"
    git_upload_pack: str = "/usr/bin/git-upload-pack"
    git_upload_archive: str = "/usr/bin/git-upload-archive"

    write_enabled: bool = False
    read_enabled: bool = True
    auto_update: bool = False
    auto_create: bool = False

    local_base: str = ""
    local_repos: str = ""
    remote_repos: str = ""

    debug: bool = False

    @staticmethod
    def load(filename: Optional[str] = None) -> Config:
        """
        Load overridden configuration variables from a config file.

        A missing file is not an error since validate() reports the settings that
        have no usable default. A file that exists but cannot be parsed is.
        """
        filename = filename or default_config_path()
        parser = ConfigParser(interpolation=None)

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
            return Config()
        except (OSError, ConfigParserError) as e:
            raise ConfigurationError(f"failed to read config file {filename}: {e}")

        if constants.CONFIG_SECTION not in parser:
            log.info(f"no [{constants.CONFIG_SECTION}] section in {filename}")
            return Config()

        try:
            config = Config._from_section(parser[constants.CONFIG_SECTION])
        except ValueError as e:
            raise ConfigurationError(f"invalid value in config file {filename}: {e}")

        log.info(f"loaded config: {summarize(config, 1024)}")

        return config

    @staticmethod
    def _from_section(section: SectionProxy) -> Config:
        defaults = Config()

        def path(key: str, fallback: str) -> str:
            return os.path.expanduser(section.get(key, fallback=fallback))

        def flag(key: str, fallback: bool) -> bool:
            return section.getboolean(key, fallback=fallback)

        ssh_opts = section.get("ssh-opts", fallback=None)

        return Config(
            master_host=section.get("master-server", fallback=defaults.master_host),
            master_account=section.get("master-user", fallback=defaults.master_account),
            master_identity=path("master-identity", defaults.master_identity),
            ssh=path("ssh", defaults.ssh),
            ssh_opts=tuple(shlex.split(ssh_opts)) if ssh_opts else (),
            git_receive_pack=path("git-receive-pack", defaults.git_receive_pack),
            git_upload_pack=path("git-upload-pack", defaults.git_upload_pack),
            git_upload_archive=path("git-upload-archive", defaults.git_upload_archive),
            write_enabled=flag("write-enabled", defaults.write_enabled),
            read_enabled=flag("read-enabled", defaults.read_enabled),
            auto_update=flag("auto-update", defaults.auto_update),
            auto_create=flag("auto-create", defaults.auto_create),
            local_base=section.get("local-base", fallback=defaults.local_base),
            local_repos=path("local-repos", defaults.local_repos),
            remote_repos=path("remote-repos", defaults.remote_repos),
            debug=flag("debug", defaults.debug),
        )

    def validate(self) -> None:
        """Check that all settings needed to serve or forward a request are usable."""
        for name in ("master_host", "master_account", "master_identity"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} not defined")

        if not os.path.isfile(self.master_identity):
            raise ConfigurationError(
                f"master_identity not readable: {self.master_identity}"
            )

        if not self.ssh:
            raise ConfigurationError("ssh not defined")

        if shutil.which(self.ssh) is None:
            raise ConfigurationError(f"could not exec ssh: {self.ssh}")

        for name in ("git_receive_pack", "git_upload_pack", "git_upload_archive"):
            binary = getattr(self, name)

            if not binary:
                raise ConfigurationError(f"{name} not defined")

            if not os.access(binary, os.X_OK) or os.path.isdir(binary):
                raise ConfigurationError(f"could not exec {name}: {binary}")

        if self.auto_create and not self.local_repos:
            raise ConfigurationError("auto_create requires local_repos to be defined")

    def ssh_command(self) -> List[str]:
        """Compose the ssh invocation used to reach the master host."""
        return [self.ssh, *self.ssh_opts, f"-i{self.master_identity}"]

    def upstream_login(self) -> str:
        """Return the account and host to connect to on the master."""
        return f"{self.master_account}@{self.master_host}"

    def upstream_url(self, remote_dir: str) -> str:
        """Return the URL that git uses to reach a repository on the master."""
        return f"ssh://{self.upstream_login()}{remote_dir}"

