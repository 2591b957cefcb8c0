"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
import os
import shlex
import sys
from typing import List, NoReturn, Optional, Tuple

import gitmirror.constants as constants
from gitmirror.errors import UsageError
from gitmirror.service import ServiceKind, ServiceRequest

SERVICES = tuple(kind.service_name for kind in ServiceKind)

# Wrapper scripts may be installed under the service name with one of these suffixes
SCRIPT_SUFFIXES = (".sh", ".py")


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports errors as usage errors instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


class Arguments(argparse.Namespace):
    """
    Parsed command-line arguments.

    git-mirror is normally installed under the names of the git services it replaces,
    in which case the arguments are exactly those of the git service. It can also be
    run as "git-mirror [option...] service [arg...]", or as a forced ssh command where
    the service and its arguments are taken from SSH_ORIGINAL_COMMAND.
    """

    service: str
    args: List[str]

    config: Optional[str]
    debug: bool

    @classmethod
    def parse(cls, argv: Optional[List[str]] = None) -> Arguments:
        """
        Parse a full command line, including the program name.

        Defaults to sys.argv if none is specified.
        """
        if argv is None:
            argv = sys.argv

        program = _program_name(argv[0]) if argv else constants.PROGRAM_NAME

        if program in SERVICES:
            args = cls(service=program, args=list(argv[1:]), config=None, debug=False)
        else:
            args = cls._get_parser().parse_args(argv[1:], namespace=cls())

            if args.service is None:
                args.service, args.args = cls._parse_forced_command()

        # Clients may also ask for "git upload-pack" instead of "git-upload-pack"
        if args.service == "git" and args.args:
            args.service = "git-" + args.args.pop(0)

        if args.service not in SERVICES:
            raise UsageError(f"unexpected service: {args.service}")

        return args

    def request(self) -> ServiceRequest:
        """Build the service request described by the arguments."""
        path_arg = self.args[-1] if self.args else ""

        return ServiceRequest(
            kind=ServiceKind.from_service_name(self.service),
            path_arg=path_arg,
            options=tuple(self.args[:-1]),
        )

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = _ArgumentParser(
            prog=constants.PROGRAM_NAME,
            description="Serve git requests from local mirrors of a master host.",
            usage="git-mirror [option...] [service [arg...]]",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {constants.VERSION}",
            help="show the program version",
        )

        # Primary arguments, taken from SSH_ORIGINAL_COMMAND if absent
        parser.add_argument(
            "service",
            type=str,
            nargs="?",
            help=f"git service to run ({', '.join(SERVICES)})",
        )
        parser.add_argument(
            "args", type=str, nargs=argparse.REMAINDER, help="arguments for service"
        )

        parser.add_argument(
            "--config",
            type=str,
            help="path to config file (default is ~/.git-mirror/config)",
        )

        # Enable the debug log regardless of the config file
        parser.add_argument(
            "--debug", action="store_true", help="log to the git-mirror log file"
        )

        return parser

    @staticmethod
    def _parse_forced_command() -> Tuple[str, List[str]]:
        """Split the command requested by an ssh client into service and arguments."""
        original = os.getenv("SSH_ORIGINAL_COMMAND", "")

        try:
            words = shlex.split(original)
        except ValueError as e:
            raise UsageError(f"can't parse command {original!r}: {e}")

        if not words:
            raise UsageError("no service specified")

        return words[0], words[1:]


def _program_name(path: str) -> str:
    """Return the base name of the program, without a script suffix."""
    name = os.path.basename(path)
    root, ext = os.path.splitext(name)

    return root if ext in SCRIPT_SUFFIXES else name
