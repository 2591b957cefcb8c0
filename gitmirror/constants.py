"""Module defining various global constants."""

# git-mirror version
VERSION = "1.0.0"

# Oldest git release known to support everything the provisioner and refresher rely on
# (bare init, mirror fetch refspecs, GIT_SSH_COMMAND and GIT_TERMINAL_PROMPT).
MIN_GIT_VERSION = "2.3.0"

# Exit code for rejected requests and git-mirror failures.
# Exit codes of served or forwarded commands are passed through unchanged.
ERROR_CODE = 1

# Name used in diagnostics and as the front-end executable name
PROGRAM_NAME = "git-mirror"

# Service executables that git-mirror stands in for
RECEIVE_PACK = "git-receive-pack"
UPLOAD_PACK = "git-upload-pack"
UPLOAD_ARCHIVE = "git-upload-archive"

# Environment variable that overrides the directory holding config and log files
ROOT_ENV = "GIT_MIRROR_ROOT"
DEFAULT_ROOT = "~/.git-mirror"

CONFIG_FILENAME = "config"
LOG_FILENAME = "git-mirror.log"

# Section of the config file that holds all git-mirror settings
CONFIG_SECTION = "git-mirror"

# Repository config key that flags a repository as a mirror of the master
MIRROR_FLAG = "remote.origin.mirror"
