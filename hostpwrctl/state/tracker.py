"""
Convergence tracker for the chassis/host power state pair.

The tracker owns current and expected state of both entities and moves
through IDLE -> WAITING -> CONVERGED | TIMED_OUT | FAILED. All mutation
goes through ``handle``, the single event transition function, so the
state machine can be exercised without a message bus.
"""

from typing import Optional

from ..errors import ConvergenceStateError
from ..logging.config import get_state_logger, log_state_transition
from .models import (
    ConvergencePair,
    Entity,
    EntityState,
    Event,
    StateChanged,
    TimedOut,
    TrackerState,
)

state_logger = get_state_logger(__name__)


class ConvergenceTracker:
    """Tracks observed state until both entities reach their expected state."""

    def __init__(self):
        self.logger = state_logger
        self.state = TrackerState.IDLE
        self.entities: dict[Entity, EntityState] = {
            Entity.CHASSIS: EntityState(),
            Entity.HOST: EntityState(),
        }
        self.failure_reason: Optional[str] = None

    def current(self, entity: Entity) -> str:
        return self.entities[entity].current

    def expected(self, entity: Entity) -> str:
        return self.entities[entity].expected

    @property
    def converged(self) -> bool:
        """Both expectations are set and both entities currently satisfy them."""
        return all(entity_state.satisfied for entity_state in self.entities.values())

    def seed(self, entity: Entity, token: str) -> None:
        """Record the initial read of an entity before any expectation is set."""
        if self.state is not TrackerState.IDLE:
            raise ConvergenceStateError(
                "Initial state can only be seeded while idle",
                current_state=self.state.value,
                attempted_transition="seed"
            )
        self.entities[entity] = self.entities[entity].with_current(token)

    def expect(self, pair: ConvergencePair) -> None:
        """Set the expected pair and start waiting."""
        if self.state is not TrackerState.IDLE:
            raise ConvergenceStateError(
                "Expectation is already set",
                current_state=self.state.value,
                attempted_transition=TrackerState.WAITING.value
            )
        if not pair.chassis or not pair.host:
            raise ConvergenceStateError(
                "Both entities need an expected state",
                current_state=self.state.value,
                attempted_transition=TrackerState.WAITING.value
            )

        for entity in Entity:
            self.entities[entity] = self.entities[entity].with_expected(pair.for_entity(entity))

        self._move_to(TrackerState.WAITING, trigger="expect", context={
            "expected_chassis": pair.chassis,
            "expected_host": pair.host,
        })

    def handle(self, event: Event) -> TrackerState:
        """
        Apply one event and return the resulting tracker state.

        StateChanged is accepted only while waiting; convergence is checked
        after every accepted update. Events arriving in a terminal state are
        ignored, so duplicate notifications never complete twice.
        """
        if self.state.is_terminal:
            return self.state

        if isinstance(event, StateChanged):
            self._apply_state_change(event)
        elif isinstance(event, TimedOut):
            if self.state is TrackerState.WAITING:
                self._move_to(TrackerState.TIMED_OUT, trigger="timeout", context={
                    "after_seconds": event.after_seconds,
                })

        return self.state

    def fail(self, reason: str) -> None:
        """Abort waiting after an unrecoverable remote error."""
        if self.state is not TrackerState.WAITING:
            raise ConvergenceStateError(
                "Only a waiting tracker can fail",
                current_state=self.state.value,
                attempted_transition=TrackerState.FAILED.value
            )
        self.failure_reason = reason
        self._move_to(TrackerState.FAILED, trigger="remote_error", context={"reason": reason})

    def _apply_state_change(self, event: StateChanged) -> None:
        if self.state is not TrackerState.WAITING:
            return
        if event.entity not in self.entities:
            return

        self.entities[event.entity] = self.entities[event.entity].with_current(event.token)
        self.logger.debug(
            "state_observed",
            entity=event.entity.value,
            token=event.token,
            expected=self.entities[event.entity].expected,
        )

        if self.converged:
            self._move_to(TrackerState.CONVERGED, trigger="state_changed", context={
                "chassis": self.current(Entity.CHASSIS),
                "host": self.current(Entity.HOST),
            })

    def _move_to(self, new_state: TrackerState, trigger: str, context: Optional[dict] = None) -> None:
        log_state_transition(
            self.logger,
            from_state=self.state.value,
            to_state=new_state.value,
            trigger=trigger,
            context=context,
        )
        self.state = new_state
