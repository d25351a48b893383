"""
Single-property access to the remote state service.

Every call resolves the owning service and performs exactly one RPC.
Remote failures are logged and returned as ``CallResult.err``; they are
never raised to the caller and never retried.
"""

from typing import Any

from ..config.defaults import EntityParams, PowerControlConfig
from ..errors import PropertyAccessError, RemoteServiceError, ServiceNotFoundError
from ..logging.config import get_remote_logger, log_remote_failure
from ..state.models import Entity
from .base import CallResult, ErrorKind, Transport

remote_logger = get_remote_logger(__name__)


class StateClient:
    """Reads current state and requests transitions for chassis and host."""

    def __init__(self, transport: Transport, config: PowerControlConfig):
        self.transport = transport
        self.bindings: dict[Entity, EntityParams] = {
            Entity.CHASSIS: config.chassis,
            Entity.HOST: config.host,
        }
        self.logger = remote_logger

    async def read_state(self, entity: Entity) -> CallResult[str]:
        """Read the entity's current state token."""
        params = self.bindings[entity]
        try:
            service = await self.transport.resolve_service(params.path, params.interface)
            value = await self.transport.get_property(
                service, params.path, params.interface, params.state_property
            )
        except RemoteServiceError as e:
            return self._failure("get", entity, params.state_property, e)

        if not isinstance(value, str):
            error = PropertyAccessError(
                f"Unexpected value type {type(value).__name__}",
                interface=params.interface,
                property_name=params.state_property,
                operation="get"
            )
            return self._failure("get", entity, params.state_property, error)

        self.logger.debug("state_read", entity=entity.value, token=value)
        return CallResult.ok(value)

    async def current_state(self, entity: Entity) -> str:
        """Current state token, empty when it could not be read."""
        result = await self.read_state(entity)
        return result.value if result.is_ok else ""

    async def request_transition(self, entity: Entity, value: str) -> CallResult[None]:
        """Write the entity's requested-transition property."""
        params = self.bindings[entity]
        try:
            service = await self.transport.resolve_service(params.path, params.interface)
            await self.transport.set_property(
                service, params.path, params.interface, params.transition_property, value
            )
        except RemoteServiceError as e:
            return self._failure("set", entity, params.transition_property, e)

        self.logger.info(
            "transition_requested",
            entity=entity.value,
            property=params.transition_property,
            value=value,
        )
        return CallResult.ok()

    def _failure(self, operation: str, entity: Entity, property_name: str,
                 error: RemoteServiceError) -> CallResult[Any]:
        params = self.bindings[entity]
        log_remote_failure(self.logger, operation, error, context={
            "entity": entity.value,
            "path": params.path,
            "interface": params.interface,
            "property": property_name,
        })
        kind = ErrorKind.SERVICE_NOT_FOUND if isinstance(error, ServiceNotFoundError) else ErrorKind.CALL_FAILED
        return CallResult.err(kind, error)
