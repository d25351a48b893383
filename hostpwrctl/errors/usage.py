"""
Usage and configuration error classifications.

These are detected before the convergence protocol starts and always end
the process with a failure status.
"""

from typing import Optional, List, Any


class UsageError(Exception):
    """Bad or missing command line arguments."""

    def __init__(self, message: str):
        super().__init__(message)
        self.recoverable = False


class UnknownCommandError(UsageError):
    """The command token does not name a known action."""

    def __init__(self, command: str, known: Optional[List[str]] = None):
        super().__init__(f"Unknown command: {command!r}")
        self.command = command
        self.known = known or []


class ConfigurationError(UsageError):
    """The merged configuration failed validation."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []
