"""Default configuration parameters for power transition control."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BusParams:
    """Message bus and object mapper location."""
    bus_type: str = "system"                                   # system | session
    mapper_service: str = "xyz.openbmc_project.ObjectMapper"
    mapper_path: str = "/xyz/openbmc_project/object_mapper"
    mapper_interface: str = "xyz.openbmc_project.ObjectMapper"


@dataclass(frozen=True)
class EntityParams:
    """Object path, interface and properties of one power-managed entity."""
    path: str
    interface: str
    state_property: str                                        # read
    transition_property: str                                   # write


@dataclass(frozen=True)
class ConfirmationParams:
    """Convergence confirmation parameters."""
    timeout_seconds: float = 30.0                              # Wait bound after the request
    fail_on_write_error: bool = False                          # Strict mode: abort on failed write


CHASSIS_PARAMS = EntityParams(
    path="/xyz/openbmc_project/state/chassis0",
    interface="xyz.openbmc_project.State.Chassis",
    state_property="CurrentPowerState",
    transition_property="RequestedPowerTransition",
)

HOST_PARAMS = EntityParams(
    path="/xyz/openbmc_project/state/host0",
    interface="xyz.openbmc_project.State.Host",
    state_property="CurrentHostState",
    transition_property="RequestedHostTransition",
)


@dataclass(frozen=True)
class PowerControlConfig:
    """Complete configuration, defaults or merged."""
    bus: BusParams
    chassis: EntityParams
    host: EntityParams
    confirmation: ConfirmationParams


def get_default_config() -> PowerControlConfig:
    """Get the default configuration instance."""
    return PowerControlConfig(
        bus=BusParams(),
        chassis=CHASSIS_PARAMS,
        host=HOST_PARAMS,
        confirmation=ConfirmationParams(),
    )
