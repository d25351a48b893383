"""
Transition orchestrator.

Runs the convergence-confirmation protocol once per invocation:
snapshot -> no-op check -> transition request -> wait for notifications
until both entities reach the expected state or the timer fires.

Everything runs on one asyncio loop. Notification callbacks and the timer
only enqueue events; ``dispatch`` is the only place that mutates the
tracker, so no locking is needed.
"""

import asyncio
import time
from typing import Optional

import structlog

from .actions import Action, ActionPlan
from .client.base import Transport
from .client.state_client import StateClient
from .config.defaults import PowerControlConfig
from .errors import RemoteServiceError
from .notifications import NotificationSource
from .reporting import StatusReporter
from .state.models import (
    ActionReady,
    Entity,
    Event,
    Outcome,
    StateChanged,
    TimedOut,
    TrackerState,
)
from .state.tracker import ConvergenceTracker

logger = structlog.get_logger(__name__)


class TransitionOrchestrator:
    """
    Owns all per-invocation state: tracker, event queue, timer, subscriptions.

    Usage:
        orchestrator = TransitionOrchestrator(action, transport, config)
        outcome = await orchestrator.run()
    """

    def __init__(
        self,
        action: Action,
        transport: Transport,
        config: PowerControlConfig,
        reporter: Optional[StatusReporter] = None,
    ) -> None:
        self.action = action
        self.transport = transport
        self.config = config
        self.reporter = reporter or StatusReporter()
        self.logger = logger.bind(command=action.command)

        self.client = StateClient(transport, config)
        self.notifications = NotificationSource(self.client.bindings)
        self.tracker = ConvergenceTracker()

        self.timeout_seconds = config.confirmation.timeout_seconds
        self.writes_issued = 0
        self.timer_armed = False
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None

        self._events: Optional[asyncio.Queue] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    async def run(self) -> Outcome:
        """Execute the protocol and return the terminal outcome."""
        self.started_at = time.monotonic()
        try:
            await self._snapshot()

            if self.action.is_status:
                self.reporter.status(
                    self.tracker.current(Entity.CHASSIS),
                    self.tracker.current(Entity.HOST),
                )
                return self._finish(Outcome.SUCCESS)

            self._events = asyncio.Queue()
            self._events.put_nowait(ActionReady())
            while True:
                event = await self._events.get()
                outcome = await self.dispatch(event)
                if outcome is not None:
                    return self._finish(outcome)
        finally:
            await self._cleanup()

    async def dispatch(self, event: Event) -> Optional[Outcome]:
        """Handle one event; return an outcome when the invocation is over."""
        if isinstance(event, ActionReady):
            return await self._run_action()

        if isinstance(event, StateChanged):
            if self.tracker.state is TrackerState.WAITING:
                self.reporter.current_state(event.entity, event.token)
            return self._outcome_for(self.tracker.handle(event))

        if isinstance(event, TimedOut):
            state = self.tracker.handle(event)
            if state is TrackerState.TIMED_OUT:
                self.reporter.timeout(self.timeout_seconds)
            return self._outcome_for(state)

        return None

    async def _snapshot(self) -> None:
        for entity in Entity:
            self.tracker.seed(entity, await self.client.current_state(entity))

    async def _run_action(self) -> Optional[Outcome]:
        plan: ActionPlan = self.action.plan(self.tracker.current(Entity.CHASSIS))
        if plan.is_noop:
            self.reporter.line(plan.message)
            self.logger.info("No transition needed", chassis=self.tracker.current(Entity.CHASSIS))
            return Outcome.ALREADY_SATISFIED

        self.tracker.expect(plan.expected)

        # listen before writing so a fast state change cannot be missed
        try:
            await self.notifications.subscribe(self.transport, self._enqueue)
        except RemoteServiceError as e:
            self.logger.error("Cannot subscribe to state notifications", error=str(e))

        result = await self.client.request_transition(plan.request.entity, plan.request.value)
        self.writes_issued += 1
        if not result.is_ok and self.config.confirmation.fail_on_write_error:
            self.tracker.fail(str(result.error))
            return self._outcome_for(self.tracker.state)

        self.reporter.line(plan.message)
        self._arm_timer()

        if not self.action.recheck_after_write:
            return None

        # the remote effect may already be visible, so do not rely on the next signal alone
        for entity in Entity:
            current = await self.client.read_state(entity)
            if current.is_ok:
                self.tracker.handle(StateChanged(entity=entity, token=current.value))
        if self.tracker.state is TrackerState.CONVERGED:
            self.reporter.status(
                self.tracker.current(Entity.CHASSIS),
                self.tracker.current(Entity.HOST),
            )
        return self._outcome_for(self.tracker.state)

    def _enqueue(self, event: Event) -> None:
        if self._events is not None:
            self._events.put_nowait(event)

    def _arm_timer(self) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            self.timeout_seconds, self._enqueue, TimedOut(after_seconds=self.timeout_seconds)
        )
        self.timer_armed = True

    def _outcome_for(self, state: TrackerState) -> Optional[Outcome]:
        if state is TrackerState.CONVERGED:
            return Outcome.SUCCESS
        if state is TrackerState.TIMED_OUT:
            return Outcome.TIMEOUT
        if state is TrackerState.FAILED:
            return Outcome.SERVICE_ERROR
        return None

    def _finish(self, outcome: Outcome) -> Outcome:
        self.finished_at = time.monotonic()
        self.logger.info(
            "Invocation finished",
            outcome=outcome.value,
            tracker_state=self.tracker.state.value,
            writes=self.writes_issued,
            elapsed_s=round(self.finished_at - self.started_at, 3),
        )
        return outcome

    async def _cleanup(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        try:
            await self.notifications.close(self.transport)
        except RemoteServiceError as e:
            self.logger.warning("Unsubscribe failed", error=str(e))
