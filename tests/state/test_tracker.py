"""Tests for the convergence tracker state machine."""

import pytest
from unittest.mock import Mock

from hostpwrctl.errors import ConvergenceStateError
from hostpwrctl.state.models import (
    ActionReady,
    ChassisPowerState,
    ConvergencePair,
    Entity,
    HostState,
    StateChanged,
    TimedOut,
    TrackerState,
)
from hostpwrctl.state.tracker import ConvergenceTracker

ON_PAIR = ConvergencePair(chassis=ChassisPowerState.ON.value, host=HostState.RUNNING.value)
OFF_PAIR = ConvergencePair(chassis=ChassisPowerState.OFF.value, host=HostState.OFF.value)


def chassis(state: ChassisPowerState) -> StateChanged:
    return StateChanged(entity=Entity.CHASSIS, token=state.value)


def host(state: HostState) -> StateChanged:
    return StateChanged(entity=Entity.HOST, token=state.value)


class TestTrackerLifecycle:
    """Test IDLE -> WAITING -> terminal transitions."""

    def test_starts_idle_with_unknown_state(self):
        tracker = ConvergenceTracker()

        assert tracker.state == TrackerState.IDLE
        assert tracker.current(Entity.CHASSIS) == ""
        assert tracker.current(Entity.HOST) == ""
        assert tracker.converged is False

    def test_seed_records_initial_read(self):
        tracker = ConvergenceTracker()

        tracker.seed(Entity.CHASSIS, ChassisPowerState.OFF.value)

        assert tracker.current(Entity.CHASSIS) == ChassisPowerState.OFF.value
        assert tracker.state == TrackerState.IDLE

    def test_expect_moves_to_waiting(self):
        tracker = ConvergenceTracker()

        tracker.expect(ON_PAIR)

        assert tracker.state == TrackerState.WAITING
        assert tracker.expected(Entity.CHASSIS) == ChassisPowerState.ON.value
        assert tracker.expected(Entity.HOST) == HostState.RUNNING.value

    def test_expect_twice_is_rejected(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        with pytest.raises(ConvergenceStateError) as exc_info:
            tracker.expect(OFF_PAIR)

        assert exc_info.value.current_state == "waiting"

    def test_expect_requires_both_entities(self):
        tracker = ConvergenceTracker()

        with pytest.raises(ConvergenceStateError):
            tracker.expect(ConvergencePair(chassis=ChassisPowerState.ON.value, host=""))

    def test_seed_after_expect_is_rejected(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        with pytest.raises(ConvergenceStateError):
            tracker.seed(Entity.HOST, HostState.OFF.value)


class TestConvergence:
    """Test convergence detection on state change events."""

    def test_both_entities_required(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        assert tracker.handle(chassis(ChassisPowerState.ON)) == TrackerState.WAITING
        assert tracker.handle(host(HostState.RUNNING)) == TrackerState.CONVERGED

    @pytest.mark.parametrize("first,second", [
        (chassis(ChassisPowerState.ON), host(HostState.RUNNING)),
        (host(HostState.RUNNING), chassis(ChassisPowerState.ON)),
    ])
    def test_order_independent(self, first, second):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        tracker.handle(first)
        assert tracker.handle(second) == TrackerState.CONVERGED

    def test_duplicate_event_is_idempotent(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        tracker.handle(chassis(ChassisPowerState.ON))
        tracker.handle(chassis(ChassisPowerState.ON))
        assert tracker.state == TrackerState.WAITING

        tracker.handle(host(HostState.RUNNING))
        assert tracker.handle(host(HostState.RUNNING)) == TrackerState.CONVERGED

    def test_intermediate_state_breaks_match(self):
        """A reboot passes through off before returning to running."""
        tracker = ConvergenceTracker()
        tracker.seed(Entity.CHASSIS, ChassisPowerState.ON.value)
        tracker.seed(Entity.HOST, HostState.RUNNING.value)
        tracker.expect(ON_PAIR)

        tracker.handle(host(HostState.OFF))
        tracker.handle(chassis(ChassisPowerState.OFF))
        tracker.handle(chassis(ChassisPowerState.ON))
        assert tracker.state == TrackerState.WAITING

        assert tracker.handle(host(HostState.RUNNING)) == TrackerState.CONVERGED

    def test_comparison_uses_full_token(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        tracker.handle(StateChanged(entity=Entity.CHASSIS, token="On"))
        tracker.handle(StateChanged(entity=Entity.HOST, token="Running"))

        assert tracker.state == TrackerState.WAITING

    def test_events_ignored_while_idle(self):
        tracker = ConvergenceTracker()

        tracker.handle(chassis(ChassisPowerState.ON))

        assert tracker.current(Entity.CHASSIS) == ""
        assert tracker.state == TrackerState.IDLE

    def test_action_ready_does_not_change_state(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        assert tracker.handle(ActionReady()) == TrackerState.WAITING


class TestTerminalStates:
    """Test timeout, failure and post-terminal behaviour."""

    def test_timeout_while_waiting(self):
        tracker = ConvergenceTracker()
        tracker.expect(OFF_PAIR)

        assert tracker.handle(TimedOut(after_seconds=30.0)) == TrackerState.TIMED_OUT

    def test_timeout_ignored_while_idle(self):
        tracker = ConvergenceTracker()

        assert tracker.handle(TimedOut()) == TrackerState.IDLE

    def test_events_after_convergence_are_ignored(self):
        tracker = ConvergenceTracker()
        tracker.expect(OFF_PAIR)
        tracker.handle(chassis(ChassisPowerState.OFF))
        tracker.handle(host(HostState.OFF))

        assert tracker.handle(TimedOut()) == TrackerState.CONVERGED
        assert tracker.handle(host(HostState.RUNNING)) == TrackerState.CONVERGED
        assert tracker.current(Entity.HOST) == HostState.OFF.value

    def test_late_state_change_after_timeout_ignored(self):
        tracker = ConvergenceTracker()
        tracker.expect(OFF_PAIR)
        tracker.handle(TimedOut())

        tracker.handle(chassis(ChassisPowerState.OFF))
        assert tracker.handle(host(HostState.OFF)) == TrackerState.TIMED_OUT

    def test_fail_while_waiting(self):
        tracker = ConvergenceTracker()
        tracker.expect(ON_PAIR)

        tracker.fail("service not found")

        assert tracker.state == TrackerState.FAILED
        assert tracker.failure_reason == "service not found"

    def test_fail_requires_waiting(self):
        tracker = ConvergenceTracker()

        with pytest.raises(ConvergenceStateError):
            tracker.fail("too early")


class TestTrackerLogging:
    """Test that tracker transitions are logged."""

    def test_transitions_logged(self):
        tracker = ConvergenceTracker()
        tracker.logger = Mock()
        bound = tracker.logger.bind.return_value

        tracker.expect(ON_PAIR)
        tracker.handle(chassis(ChassisPowerState.ON))
        tracker.handle(host(HostState.RUNNING))

        bind_calls = [call.kwargs for call in tracker.logger.bind.call_args_list]
        moves = [(kw["from_state"], kw["to_state"]) for kw in bind_calls]
        assert moves == [("idle", "waiting"), ("waiting", "converged")]
        assert bound.bind.return_value.info.call_count == 2
