"""
Error classification for power transition control.

This module provides a structured exception hierarchy for the errors that
can occur while parsing the command line, loading configuration, talking
to the remote state service and tracking convergence.
"""

from .remote import (
    RemoteServiceError,
    ServiceNotFoundError,
    PropertyAccessError,
    BusConnectionError,
)
from .usage import (
    UsageError,
    UnknownCommandError,
    ConfigurationError,
)
from .convergence import ConvergenceStateError

__all__ = [
    # Remote service errors
    "RemoteServiceError",
    "ServiceNotFoundError",
    "PropertyAccessError",
    "BusConnectionError",
    # Usage and configuration errors
    "UsageError",
    "UnknownCommandError",
    "ConfigurationError",
    # Tracker errors
    "ConvergenceStateError",
]
