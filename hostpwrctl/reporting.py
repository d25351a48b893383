"""Human-readable power state output on stdout."""

import sys
from typing import IO, Optional

from .state.models import Entity


def trim_class_name(value: str) -> str:
    """
    Remove the namespace from a state token, 'xyz.foo.bar.Value' -> 'Value'.

    Display only; convergence always compares the full token.
    """
    last = value.rfind(".")
    if last > 0:
        return value[last + 1:]
    return value


class StatusReporter:
    """Writes status lines for the operator."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream if stream is not None else sys.stdout

    def line(self, text: str) -> None:
        print(text, file=self.stream, flush=True)

    def current_state(self, entity: Entity, token: str) -> None:
        """A state change observed while waiting."""
        self.line(f"Current {entity.label} State: {trim_class_name(token)}")

    def status(self, chassis: str, host: str) -> None:
        """Summary of both entities, as printed by the status command."""
        for entity, token in ((Entity.CHASSIS, chassis), (Entity.HOST, host)):
            self.line(f"Current {entity.label} state: {trim_class_name(token)}")

    def timeout(self, seconds: float) -> None:
        self.line(
            "Unable to confirm operation success within timeout period "
            f"({seconds:g} s)."
        )
