"""
Centralized logging configuration for hostpwrctl.

This module provides standardized logging configuration using structlog
for all components. Log records go to stderr by default so that stdout
only carries the human-readable power state report.
"""
import logging
import sys
from typing import IO, Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "WARNING",
    format_json: bool = False,
    include_timestamp: bool = True,
    stream: Optional[IO[str]] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        stream: Output stream, stderr when omitted
    """
    log_level = getattr(logging, level.upper())
    output = stream if stream is not None else sys.stderr

    logging.basicConfig(
        level=log_level,
        stream=output,
        format="%(message)s",  # structlog will handle formatting
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for convergence tracking.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for tracker state changes
    """
    return structlog.get_logger(name, subsystem="convergence")


def get_remote_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound for remote state service calls."""
    return structlog.get_logger(name, subsystem="remote")


def log_state_transition(
    logger: FilteringBoundLogger,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a tracker state transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_state: Current tracker state
        to_state: Target tracker state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("state_transition")


def log_remote_failure(
    logger: FilteringBoundLogger,
    operation: str,
    error: Exception,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a failed remote call. Failures are reported, never raised past the client.

    Args:
        logger: Structlog logger instance
        operation: Remote operation name (resolve, get, set, subscribe)
        error: The exception describing the failure
        context: Object path, interface and property involved
    """
    bound_logger = logger.bind(
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
    )

    if context:
        bound_logger = bound_logger.bind(**context)

    bound_logger.error("remote_call_failed")
