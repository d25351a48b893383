"""
PropertiesChanged decoding for the tracked entities.

The transport delivers every PropertiesChanged signal it matched; this
module picks out the single state property of the chassis or host
interface and turns it into a StateChanged event. Anything else on the
channel is dropped without complaint.
"""

from typing import Any, Callable, Optional

import structlog

from .client.base import Subscription, Transport
from .config.defaults import EntityParams
from .state.models import Entity, StateChanged

logger = structlog.get_logger(__name__)


class NotificationSource:
    """Turns PropertiesChanged payloads into tracker events."""

    def __init__(self, bindings: dict[Entity, EntityParams]):
        self.bindings = bindings
        self._by_interface = {params.interface: entity for entity, params in bindings.items()}
        self._subscriptions: list[Subscription] = []

    def decode(self, interface: str, changed: dict[str, Any],
               invalidated: Optional[list[str]] = None) -> Optional[StateChanged]:
        """Extract the tracked state property from one PropertiesChanged payload."""
        entity = self._by_interface.get(interface)
        if entity is None:
            return None

        value = changed.get(self.bindings[entity].state_property)
        if not isinstance(value, str):
            return None

        return StateChanged(entity=entity, token=value)

    async def subscribe(self, transport: Transport, sink: Callable[[StateChanged], None]) -> None:
        """Subscribe to both entities; decoded events are passed to sink."""
        def on_properties_changed(interface: str, changed: dict[str, Any], invalidated: list[str]) -> None:
            event = self.decode(interface, changed, invalidated)
            if event is None:
                logger.debug("Ignored PropertiesChanged", interface=interface, properties=sorted(changed))
                return
            sink(event)

        for params in self.bindings.values():
            subscription = await transport.subscribe(params.path, params.interface, on_properties_changed)
            self._subscriptions.append(subscription)

    async def close(self, transport: Transport) -> None:
        """Drop every subscription made by ``subscribe``."""
        while self._subscriptions:
            await transport.unsubscribe(self._subscriptions.pop())

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)
