"""D-Bus transport for the remote state service, built on dbus-next."""

from typing import Any, Optional

import structlog
from dbus_next import BusType, Message, MessageType, Variant
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError

from ..config.defaults import BusParams
from ..errors import (
    BusConnectionError,
    PropertyAccessError,
    RemoteServiceError,
    ServiceNotFoundError,
)
from .base import PropertiesChangedCallback, Subscription, Transport

PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"
DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"

logger = structlog.get_logger(__name__)


def properties_changed_rule(path: str, interface: str) -> str:
    """Match rule for PropertiesChanged signals of one interface on one object."""
    return (
        "type='signal',"
        f"interface='{PROPERTIES_INTERFACE}',"
        "member='PropertiesChanged',"
        f"path='{path}',"
        f"arg0='{interface}'"
    )


def unwrap(value: Any) -> Any:
    """Strip D-Bus variant wrappers."""
    while isinstance(value, Variant):
        value = value.value
    return value


class DBusTransport(Transport):
    """Transport over the system (or session) message bus."""

    def __init__(self, params: BusParams):
        self.params = params
        self.logger = logger
        self._bus: Optional[MessageBus] = None

    @property
    def bus(self) -> MessageBus:
        if self._bus is None:
            raise BusConnectionError("Not connected", bus_type=self.params.bus_type)
        return self._bus

    async def connect(self) -> None:
        bus_type = BusType.SESSION if self.params.bus_type == "session" else BusType.SYSTEM
        try:
            self._bus = await MessageBus(bus_type=bus_type).connect()
        except Exception as e:
            raise BusConnectionError(
                f"Cannot connect to the {self.params.bus_type} bus: {e}",
                bus_type=self.params.bus_type
            ) from e
        self.logger.debug("Connected to message bus", bus_type=self.params.bus_type)

    async def disconnect(self) -> None:
        if self._bus is not None:
            self._bus.disconnect()
            self._bus = None

    async def _call(self, message: Message) -> Message:
        reply = await self.bus.call(message)
        if reply.message_type == MessageType.ERROR:
            text = reply.body[0] if reply.body else ""
            raise DBusError(reply.error_name, text)
        return reply

    async def resolve_service(self, path: str, interface: str) -> str:
        message = Message(
            destination=self.params.mapper_service,
            path=self.params.mapper_path,
            interface=self.params.mapper_interface,
            member="GetObject",
            signature="sas",
            body=[path, [interface]],
        )
        try:
            reply = await self._call(message)
        except DBusError as e:
            raise ServiceNotFoundError(
                f"Object mapper lookup failed: {e.text or e.type}",
                path=path,
                interface=interface,
                context={"dbus_error": e.type}
            ) from e

        services = reply.body[0] if reply.body else {}
        if not services:
            raise ServiceNotFoundError(
                "No service implements the interface",
                path=path,
                interface=interface
            )
        return next(iter(services))

    async def get_property(self, service: str, path: str, interface: str, name: str) -> Any:
        message = Message(
            destination=service,
            path=path,
            interface=PROPERTIES_INTERFACE,
            member="Get",
            signature="ss",
            body=[interface, name],
        )
        try:
            reply = await self._call(message)
        except DBusError as e:
            raise PropertyAccessError(
                f"Get property request failed: {e.text or e.type}",
                service=service,
                interface=interface,
                property_name=name,
                operation="get",
                context={"dbus_error": e.type}
            ) from e
        return unwrap(reply.body[0]) if reply.body else None

    async def set_property(self, service: str, path: str, interface: str, name: str, value: str) -> None:
        message = Message(
            destination=service,
            path=path,
            interface=PROPERTIES_INTERFACE,
            member="Set",
            signature="ssv",
            body=[interface, name, Variant("s", value)],
        )
        try:
            await self._call(message)
        except DBusError as e:
            raise PropertyAccessError(
                f"Set property request failed: {e.text or e.type}",
                service=service,
                interface=interface,
                property_name=name,
                operation="set",
                context={"dbus_error": e.type}
            ) from e

    async def _match(self, member: str, rule: str) -> None:
        await self._call(Message(
            destination=DBUS_SERVICE,
            path=DBUS_PATH,
            interface=DBUS_SERVICE,
            member=member,
            signature="s",
            body=[rule],
        ))

    async def subscribe(self, path: str, interface: str,
                        callback: PropertiesChangedCallback) -> Subscription:
        def handler(message: Message) -> None:
            if (message.message_type != MessageType.SIGNAL
                    or message.interface != PROPERTIES_INTERFACE
                    or message.member != "PropertiesChanged"
                    or message.path != path
                    or len(message.body) < 3
                    or message.body[0] != interface):
                return None
            changed = {name: unwrap(value) for name, value in message.body[1].items()}
            callback(message.body[0], changed, list(message.body[2]))
            return None

        rule = properties_changed_rule(path, interface)
        try:
            await self._match("AddMatch", rule)
        except DBusError as e:
            raise RemoteServiceError(
                f"Cannot subscribe to PropertiesChanged: {e.text or e.type}",
                context={"path": path, "interface": interface, "dbus_error": e.type}
            ) from e
        self.bus.add_message_handler(handler)
        self.logger.debug("Subscribed to PropertiesChanged", path=path, interface=interface)
        return Subscription(path=path, interface=interface, token=(rule, handler))

    async def unsubscribe(self, subscription: Subscription) -> None:
        rule, handler = subscription.token
        self.bus.remove_message_handler(handler)
        try:
            await self._match("RemoveMatch", rule)
        except DBusError as e:
            self.logger.warning("RemoveMatch failed", rule=rule, error=str(e))
