"""
Module implementing the command-line interface and invoking the main logic of git-mirror.

git-mirror runs on a host that mirrors the repositories of a master host. It is
started once for every git request that reaches the host over ssh, in place of
git-upload-pack, git-upload-archive or git-receive-pack. Every request is either
served from a repository on this host, forwarded to the master over ssh, or rejected.
Reads of repositories that aren't available on this host yet may create a local
mirror first.

Access control is not part of git-mirror. It relies on the ssh layer to only let
authorized users reach it, and on the master account to have access to everything
that should be mirrored or forwarded.
"""

import signal
import socket
import sys
from typing import List, NoReturn, Optional

from gitmirror.args import Arguments
from gitmirror.config import Config, default_log_path
import gitmirror.constants as constants
from gitmirror.errors import MirrorError, PolicyRejection
from gitmirror.logger import enable_file_logging, log, summarize
import gitmirror.operations as operations
from gitmirror.routing import ForwardUpstream, Reject, Router, ServeLocal


def fatal(service: str, message: str) -> None:
    """Report an error to the remote client as a single line on stderr."""
    message = " ".join(message.splitlines())

    print(
        f"fatal: remote {socket.getfqdn()}: {constants.PROGRAM_NAME}: {service}: "
        f"{message}",
        file=sys.stderr,
        flush=True,
    )


def serve(args: Arguments) -> int:
    """Route the request described by the arguments and run the chosen command."""
    # Configure debug logging, before loading the config if requested explicitly.
    if args.debug:
        enable_file_logging(default_log_path(), args.service)

    config = Config.load(args.config)

    if config.debug and not args.debug:
        enable_file_logging(default_log_path(), args.service)
        log.info(f"loaded config: {summarize(config, 1024)}")

    log.info(f"eval: {args.service} {' '.join(args.args)}")

    config.validate()

    request = args.request()
    decision = Router(config).route(request)

    ops: operations.Operations

    if isinstance(decision, ServeLocal):
        ops = operations.ServeLocalOperations(request, decision)
    elif isinstance(decision, ForwardUpstream):
        ops = operations.ForwardOperations(config, request, decision)
    else:
        assert isinstance(decision, Reject)
        raise PolicyRejection(decision.reason)

    return ops.run()


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Serve a single git request with the given command line.

    Defaults to sys.argv if none is specified. The program name selects the git
    service unless it is git-mirror itself.
    """
    service = constants.PROGRAM_NAME

    try:
        args = Arguments.parse(arguments)
        service = args.service

        exit_code = serve(args)
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except MirrorError as e:
        log.error(f"{e.kind.value} error: {e.message}")
        fatal(service, e.message)
        exit_code = constants.ERROR_CODE
    except Exception as e:
        log.exception("failed to run command")
        fatal(service, f"failed to run command: {e}")
        exit_code = constants.ERROR_CODE

    # Exit with either the exit code of the served or forwarded command, or ERROR_CODE
    # for rejected requests and git-mirror failures.
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
