"""
Remote state service error classifications.

Resolution and call failures are recoverable: the state client reports them
as typed results and the protocol falls through to the timeout path. Losing
the bus connection itself is not.
"""

from typing import Optional, Dict, Any


class RemoteServiceError(Exception):
    """Base class for failures reported by the remote state service."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class ServiceNotFoundError(RemoteServiceError):
    """No service implements the interface at the object path."""

    def __init__(self, message: str, path: Optional[str] = None,
                 interface: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        self.interface = interface


class PropertyAccessError(RemoteServiceError):
    """A property Get or Set call failed on the resolved service."""

    def __init__(self, message: str, service: Optional[str] = None,
                 interface: Optional[str] = None, property_name: Optional[str] = None,
                 operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.service = service
        self.interface = interface
        self.property_name = property_name
        self.operation = operation


class BusConnectionError(Exception):
    """The message bus could not be reached at all."""

    def __init__(self, message: str, bus_type: Optional[str] = None):
        super().__init__(message)
        self.bus_type = bus_type
        self.recoverable = False
