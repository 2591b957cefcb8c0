"""Shared functionality between serving a request locally and forwarding it."""

from abc import ABC
import contextlib
import ctypes
import signal
import subprocess
from typing import Any, Callable, List

from gitmirror.logger import log, summarize
from gitmirror.service import ServiceRequest

# Signals that are passed on to the command serving the request
FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


class Operations(ABC):
    """
    Base class for running the command that serves a request.

    The command inherits stdin, stdout and stderr of this process, so it talks to the
    client directly. Nothing is buffered in between, which allows transfers of any size
    in both directions without the risk of a deadlock.
    """

    def __init__(self, request: ServiceRequest):
        """Initialize operations for the given request."""
        self._request = request

    def run(self) -> int:
        """Run the command and clean up properly in case of errors."""
        with contextlib.ExitStack() as stack:
            return self._run(stack)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the command composed by the subclass and wait for it to exit."""
        command = self._compose_command()

        proc = self._start_command(command)
        stack.callback(self._ignore_process_error(proc.kill))

        # Pass termination requests on to the command rather than leaving it behind
        for sig in FORWARDED_SIGNALS:
            previous = signal.signal(sig, lambda signum, _: proc.send_signal(signum))
            stack.callback(signal.signal, sig, previous)

        return self._wait_command(proc)

    def _compose_command(self) -> List[str]:
        """Compose the command that serves the request."""
        raise NotImplementedError()

    def _start_command(self, command: List[str]) -> subprocess.Popen:
        """Start the command with the standard streams of this process."""
        log.info(f"exec: {summarize(command)}")

        def preexec_fn() -> None:
            # Terminate the command if git-mirror is terminated
            self._set_death_signal(signal.SIGTERM)

        try:
            return subprocess.Popen(command, preexec_fn=preexec_fn)
        except OSError as e:
            raise RuntimeError(f"failed to start {command[0]}: {e}")

    @staticmethod
    def _wait_command(proc: subprocess.Popen) -> int:
        """Wait for the command to exit and return its exit code."""
        proc.wait()

        if proc.returncode >= 0:
            log.info(f"command exited with {proc.returncode}")
            return proc.returncode
        else:
            # Killed by a signal
            # https://www.tldp.org/LDP/abs/html/exitcodes.html
            log.info(f"command killed by signal {-proc.returncode}")
            return 128 - proc.returncode

    # https://stackoverflow.com/a/19448096/238180
    @staticmethod
    def _set_death_signal(sig: signal.Signals) -> int:
        """Set the signal that the current process gets when its parent dies."""
        libc = ctypes.CDLL("libc.so.6")

        # https://github.com/torvalds/linux/blob/master/include/uapi/linux/prctl.h#L9
        PR_SET_PDEATHSIG = 1

        return libc.prctl(PR_SET_PDEATHSIG, sig)

    @staticmethod
    def _ignore_process_error(call: Callable[[], Any]) -> Callable[[], None]:
        """
        Workaround for race condition in Popen.terminate/Popen.kill.

        https://bugs.python.org/issue40550
        """

        def wrapper() -> None:
            with contextlib.suppress(ProcessLookupError):
                call()

        return wrapper
