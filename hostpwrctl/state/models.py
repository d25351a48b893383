"""
Data models for power state convergence tracking.

This module defines the tracked entities, the namespaced state tokens the
remote state service publishes, the events consumed by the tracker and the
terminal outcome of an invocation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Entity(str, Enum):
    """Power-managed subsystems tracked by the protocol."""
    CHASSIS = "chassis"
    HOST = "host"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ChassisPowerState(str, Enum):
    """Values of the chassis CurrentPowerState property."""
    ON = "xyz.openbmc_project.State.Chassis.PowerState.On"
    OFF = "xyz.openbmc_project.State.Chassis.PowerState.Off"


class ChassisTransition(str, Enum):
    """Values accepted by the chassis RequestedPowerTransition property."""
    OFF = "xyz.openbmc_project.State.Chassis.Transition.Off"


class HostState(str, Enum):
    """Values of the host CurrentHostState property."""
    RUNNING = "xyz.openbmc_project.State.Host.HostState.Running"
    OFF = "xyz.openbmc_project.State.Host.HostState.Off"


class HostTransition(str, Enum):
    """Values accepted by the host RequestedHostTransition property."""
    ON = "xyz.openbmc_project.State.Host.Transition.On"
    OFF = "xyz.openbmc_project.State.Host.Transition.Off"
    REBOOT = "xyz.openbmc_project.State.Host.Transition.Reboot"


class TrackerState(str, Enum):
    """Convergence tracker lifecycle states."""
    IDLE = "idle"
    WAITING = "waiting"
    CONVERGED = "converged"
    TIMED_OUT = "timed_out"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TrackerState.CONVERGED, TrackerState.TIMED_OUT, TrackerState.FAILED)


class Outcome(str, Enum):
    """Terminal result of one invocation; drives the process exit code."""
    SUCCESS = "success"
    ALREADY_SATISFIED = "already_satisfied"
    TIMEOUT = "timeout"
    SERVICE_ERROR = "service_error"

    @property
    def exit_code(self) -> int:
        if self in (Outcome.SUCCESS, Outcome.ALREADY_SATISFIED):
            return 0
        return 1


@dataclass(frozen=True)
class EntityState:
    """Observed and expected state token of one entity. Empty means unknown / not waiting."""
    current: str = ""
    expected: str = ""

    @property
    def satisfied(self) -> bool:
        return bool(self.expected) and self.current == self.expected

    def with_current(self, token: str) -> 'EntityState':
        return EntityState(current=token, expected=self.expected)

    def with_expected(self, token: str) -> 'EntityState':
        return EntityState(current=self.current, expected=token)


@dataclass(frozen=True)
class TransitionRequest:
    """A single property write requesting a transition from the remote service."""
    entity: Entity
    value: str


@dataclass(frozen=True)
class ConvergencePair:
    """Expected terminal states of (chassis, host)."""
    chassis: str
    host: str

    def for_entity(self, entity: Entity) -> str:
        return self.chassis if entity is Entity.CHASSIS else self.host


@dataclass(frozen=True)
class ActionReady:
    """The selected action may run; always the first event of the loop."""


@dataclass(frozen=True)
class StateChanged:
    """The remote service reported a new state token for an entity."""
    entity: Entity
    token: str


@dataclass(frozen=True)
class TimedOut:
    """The confirmation timer expired."""
    after_seconds: Optional[float] = None


Event = Union[ActionReady, StateChanged, TimedOut]
