"""Pytest configuration and shared fixtures."""

import asyncio
import io
from dataclasses import replace
from typing import Any, Optional

import pytest

from hostpwrctl.client.base import PropertiesChangedCallback, Subscription, Transport
from hostpwrctl.config.defaults import PowerControlConfig, get_default_config
from hostpwrctl.errors import PropertyAccessError, RemoteServiceError, ServiceNotFoundError
from hostpwrctl.reporting import StatusReporter
from hostpwrctl.state.models import ChassisPowerState, HostState

CHASSIS_PATH = "/xyz/openbmc_project/state/chassis0"
CHASSIS_IFACE = "xyz.openbmc_project.State.Chassis"
HOST_PATH = "/xyz/openbmc_project/state/host0"
HOST_IFACE = "xyz.openbmc_project.State.Host"
STATE_SERVICE = {
    CHASSIS_IFACE: "xyz.openbmc_project.State.Chassis",
    HOST_IFACE: "xyz.openbmc_project.State.Host",
}


class FakeTransport(Transport):
    """In-memory stand-in for the state manager on the message bus."""

    def __init__(self, chassis: str = "", host: str = ""):
        self.properties: dict[tuple[str, str, str], Any] = {
            (CHASSIS_PATH, CHASSIS_IFACE, "CurrentPowerState"): chassis,
            (HOST_PATH, HOST_IFACE, "CurrentHostState"): host,
        }
        self.missing_services: set[str] = set()
        self.failing_gets: set[str] = set()
        self.failing_first_get: set[str] = set()
        self.failing_sets: set[str] = set()
        self.fail_subscribe = False
        self.on_write = None

        self.connected = False
        self.resolves: list[tuple[str, str]] = []
        self.reads: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str, str]] = []
        self.subscribe_calls = 0
        self.subscriptions: list[tuple[Subscription, PropertiesChangedCallback]] = []

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def resolve_service(self, path: str, interface: str) -> str:
        self.resolves.append((path, interface))
        if interface in self.missing_services:
            raise ServiceNotFoundError("No service", path=path, interface=interface)
        return STATE_SERVICE[interface]

    async def get_property(self, service: str, path: str, interface: str, name: str) -> Any:
        self.reads.append((interface, name))
        if interface in self.failing_first_get:
            self.failing_first_get.discard(interface)
            raise PropertyAccessError("Get failed", service=service, interface=interface,
                                      property_name=name, operation="get")
        if interface in self.failing_gets:
            raise PropertyAccessError("Get failed", service=service, interface=interface,
                                      property_name=name, operation="get")
        return self.properties[(path, interface, name)]

    async def set_property(self, service: str, path: str, interface: str, name: str, value: str) -> None:
        if interface in self.failing_sets:
            raise PropertyAccessError("Set failed", service=service, interface=interface,
                                      property_name=name, operation="set")
        self.writes.append((interface, name, value))
        if self.on_write is not None:
            self.on_write(self, interface, name, value)

    async def subscribe(self, path: str, interface: str,
                        callback: PropertiesChangedCallback) -> Subscription:
        self.subscribe_calls += 1
        if self.fail_subscribe:
            raise RemoteServiceError("AddMatch failed", context={"path": path})
        subscription = Subscription(path=path, interface=interface, token=len(self.subscriptions))
        self.subscriptions.append((subscription, callback))
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        self.subscriptions = [(s, cb) for s, cb in self.subscriptions if s != subscription]

    def set_state(self, chassis: Optional[str] = None, host: Optional[str] = None) -> None:
        if chassis is not None:
            self.properties[(CHASSIS_PATH, CHASSIS_IFACE, "CurrentPowerState")] = chassis
        if host is not None:
            self.properties[(HOST_PATH, HOST_IFACE, "CurrentHostState")] = host

    def emit(self, path: str, interface: str, changed: dict[str, Any],
             invalidated: Optional[list[str]] = None) -> None:
        """Deliver a PropertiesChanged signal to matching subscribers."""
        for name, value in changed.items():
            if (path, interface, name) in self.properties:
                self.properties[(path, interface, name)] = value
        for subscription, callback in list(self.subscriptions):
            if subscription.path == path and subscription.interface == interface:
                callback(interface, dict(changed), list(invalidated or []))

    def emit_chassis(self, state: str) -> None:
        self.emit(CHASSIS_PATH, CHASSIS_IFACE, {"CurrentPowerState": state})

    def emit_host(self, state: str) -> None:
        self.emit(HOST_PATH, HOST_IFACE, {"CurrentHostState": state})

    async def wait_subscribed(self, count: int = 2) -> None:
        while len(self.subscriptions) < count:
            await asyncio.sleep(0)
        # let the orchestrator finish the write and block on its queue
        for _ in range(5):
            await asyncio.sleep(0)


def make_config(timeout: float = 30.0, fail_on_write_error: bool = False) -> PowerControlConfig:
    config = get_default_config()
    return replace(
        config,
        confirmation=replace(
            config.confirmation,
            timeout_seconds=timeout,
            fail_on_write_error=fail_on_write_error,
        ),
    )


@pytest.fixture
def powered_off() -> FakeTransport:
    return FakeTransport(chassis=ChassisPowerState.OFF.value, host=HostState.OFF.value)


@pytest.fixture
def powered_on() -> FakeTransport:
    return FakeTransport(chassis=ChassisPowerState.ON.value, host=HostState.RUNNING.value)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(output: io.StringIO) -> StatusReporter:
    return StatusReporter(stream=output)


@pytest.fixture
def transport_factory():
    return FakeTransport


@pytest.fixture
def config_factory():
    return make_config
