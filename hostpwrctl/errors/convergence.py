"""Convergence tracker error classifications."""

from typing import Optional


class ConvergenceStateError(Exception):
    """Illegal tracker transition, such as setting an expectation twice."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None):
        super().__init__(message)
        self.current_state = current_state
        self.attempted_transition = attempted_transition
        self.recoverable = False
