"""
Command table for power transitions.

Each command maps to an Action: a pure function of the current chassis
state that either reports a no-op or produces the single transition
request together with the (chassis, host) pair that confirms it.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import UnknownCommandError
from .state.models import (
    ChassisPowerState,
    ChassisTransition,
    ConvergencePair,
    Entity,
    HostState,
    HostTransition,
    TransitionRequest,
)

POWERED_ON = ConvergencePair(chassis=ChassisPowerState.ON.value, host=HostState.RUNNING.value)
POWERED_OFF = ConvergencePair(chassis=ChassisPowerState.OFF.value, host=HostState.OFF.value)


@dataclass(frozen=True)
class ActionPlan:
    """What an action decided for the current state."""
    message: str
    request: Optional[TransitionRequest] = None
    expected: Optional[ConvergencePair] = None

    @property
    def is_noop(self) -> bool:
        return self.request is None


@dataclass(frozen=True)
class Action:
    """A power command and how it maps onto the remote state machine."""
    command: str
    description: str
    noop_state: Optional[str] = None
    request: Optional[TransitionRequest] = None
    expected: Optional[ConvergencePair] = None
    sent_message: str = ""
    noop_message: str = ""
    recheck_after_write: bool = True

    @property
    def is_status(self) -> bool:
        return self.request is None

    def plan(self, chassis_current: str) -> ActionPlan:
        """Decide between a no-op and a transition for the observed chassis state."""
        if self.is_status or chassis_current == self.noop_state:
            return ActionPlan(message=self.noop_message)
        return ActionPlan(message=self.sent_message, request=self.request, expected=self.expected)


ACTIONS: dict[str, Action] = {
    action.command: action for action in (
        Action(
            command="on",
            description="turn the host on",
            noop_state=ChassisPowerState.ON.value,
            request=TransitionRequest(Entity.HOST, HostTransition.ON.value),
            expected=POWERED_ON,
            sent_message="Power up signal was sent to host, waiting for system start.",
            noop_message="System is already up.",
        ),
        Action(
            command="off",
            description="turn the host off",
            noop_state=ChassisPowerState.OFF.value,
            request=TransitionRequest(Entity.CHASSIS, ChassisTransition.OFF.value),
            expected=POWERED_OFF,
            sent_message="Shutdown signal was sent to chassis, waiting for system down.",
            noop_message="System is already down.",
        ),
        Action(
            command="soft",
            description="gracefully turn the host off",
            noop_state=ChassisPowerState.OFF.value,
            request=TransitionRequest(Entity.HOST, HostTransition.OFF.value),
            expected=POWERED_OFF,
            sent_message="Shutdown signal was sent to host, waiting for system down.",
            noop_message="System is already down.",
        ),
        Action(
            command="reboot",
            description="reboot the host",
            # reboot needs a running chassis
            noop_state=ChassisPowerState.OFF.value,
            request=TransitionRequest(Entity.HOST, HostTransition.REBOOT.value),
            expected=POWERED_ON,
            sent_message="Reboot signal was sent to host, waiting for system down and start again.",
            noop_message="Chassis is off, reboot is impossible.",
            # the target equals the starting state, only notifications can confirm it
            recheck_after_write=False,
        ),
        Action(
            command="status",
            description="show actual host power state",
        ),
    )
}


def get_action(command: str) -> Action:
    """Look up the action for a command token."""
    try:
        return ACTIONS[command]
    except KeyError:
        raise UnknownCommandError(command, known=list(ACTIONS)) from None
