"""Modules that run the command a request was routed to."""

from .common import Operations
from .local import ServeLocalOperations
from .remote import ForwardOperations

__all__ = [
    "ForwardOperations",
    "Operations",
    "ServeLocalOperations",
]
