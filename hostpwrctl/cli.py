"""
Command line entry point.

    hostpwrctl [options] {on|off|soft|reboot|status}

Exit status is 0 when the requested state was confirmed (or already
reached), 1 on timeout, bad arguments, invalid configuration or a bus
level failure.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from .actions import ACTIONS, Action, get_action
from .client.dbus_transport import DBusTransport
from .config.defaults import PowerControlConfig
from .config.loader import ConfigLoader
from .errors import BusConnectionError, ConfigurationError, UsageError
from .logging.config import configure_logging
from .orchestrator import TransitionOrchestrator
from .state.models import Outcome

EXIT_FAILURE = 1

logger = structlog.get_logger(__name__)


class _Parser(argparse.ArgumentParser):
    """Argument parser that reports problems as UsageError instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def commands_help() -> str:
    width = max(len(command) for command in ACTIONS)
    lines = ["The commands:"]
    for command, action in ACTIONS.items():
        lines.append(f"  {command.ljust(width)} - {action.description}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="hostpwrctl",
        usage="%(prog)s [options] <command>",
        description="Request a host power transition and wait until it is confirmed.",
        epilog=commands_help(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", nargs="?", help="one of: " + ", ".join(ACTIONS))
    parser.add_argument("-c", "--config", type=Path, default=None,
                        help="YAML configuration file")
    parser.add_argument("-t", "--timeout", type=float, default=None,
                        help="confirmation timeout in seconds")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="diagnostic log level (logs go to stderr)")
    parser.add_argument("--log-json", action="store_true",
                        help="emit diagnostic logs as JSON")
    return parser


def cli_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {}
    if args.timeout is not None:
        overrides["confirmation"] = {"timeout_seconds": args.timeout}
    return overrides


async def run_command(action: Action, config: PowerControlConfig) -> Outcome:
    """Connect to the bus, run one orchestrated transition and disconnect."""
    transport = DBusTransport(config.bus)
    try:
        await transport.connect()
    except BusConnectionError as e:
        logger.error("Bus connection failed", bus_type=e.bus_type, error=str(e))
        return Outcome.SERVICE_ERROR

    try:
        return await TransitionOrchestrator(action, transport, config).run()
    finally:
        await transport.disconnect()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.command is None:
            raise UsageError("missing command")
        action = get_action(args.command)
    except UsageError as e:
        print(f"{parser.prog}: {e}", file=sys.stderr)
        parser.print_help(sys.stdout)
        return EXIT_FAILURE

    configure_logging(level=args.log_level, format_json=args.log_json)

    try:
        config = ConfigLoader.create(args.config).load(cli_overrides(args))
    except ConfigurationError as e:
        print(f"{parser.prog}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    outcome = asyncio.run(run_command(action, config))
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
