"""Module containing utilities for logging, along with a standard logger."""

import logging
import os
from typing import Any, Optional

# stderr is part of the protocol stream seen by the remote client, so the default
# logger never writes there. Debug output goes to a log file instead.
LOG_FORMAT = "[%(asctime)s] git-mirror: %(process)d: %(service)s: %(levelname)s: %(message)s"


class _ServiceFilter(logging.Filter):
    """Stamp every record with the service being handled by this process."""

    def __init__(self, service: str):
        """Create the filter for the given service name."""
        super().__init__()
        self._service = service

    def filter(self, record: logging.LogRecord) -> bool:
        """Add the service name to the record."""
        record.service = self._service
        return True


def _get_logger(name: Optional[str] = "gitmirror") -> logging.Logger:
    logger = logging.getLogger(name)

    # Keeps the logging module from falling back to its stderr handler.
    logger.addHandler(logging.NullHandler())

    return logger


def enable_file_logging(path: str, service: str) -> logging.Handler:
    """Send debug output of this process to the given log file."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(_ServiceFilter(service))

    log.addHandler(handler)
    log.setLevel(logging.DEBUG)

    return handler


def summarize(obj: Any, max_length: int = 255) -> str:
    """Return a stringified representation of the object up to the given length."""
    stringified_obj = str(obj)

    if len(stringified_obj) <= max_length:
        return stringified_obj
    else:
        return stringified_obj[: max_length - 3] + "..."


# Default logger
log = _get_logger()
