"""Base classes for remote state service access."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

# (interface, changed properties, invalidated properties)
PropertiesChangedCallback = Callable[[str, dict[str, Any], list[str]], None]


class CallStatus(Enum):
    """Remote call status."""
    OK = "ok"
    ERR = "err"


class ErrorKind(Enum):
    """Why a remote call did not produce a value."""
    SERVICE_NOT_FOUND = "service_not_found"
    CALL_FAILED = "call_failed"


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Typed result of one remote call; errors are values, not exceptions."""
    status: CallStatus
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "CallResult[T]":
        return cls(status=CallStatus.OK, value=value)

    @classmethod
    def err(cls, kind: ErrorKind, error: Exception) -> "CallResult[T]":
        return cls(status=CallStatus.ERR, error_kind=kind, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is CallStatus.OK


@dataclass(frozen=True)
class Subscription:
    """Handle for a standing PropertiesChanged subscription."""
    path: str
    interface: str
    token: Any = None


class Transport(ABC):
    """
    Request/response plus publish/subscribe access to the remote state service.

    Implementations raise ServiceNotFoundError when no service owns an
    interface and PropertyAccessError when a call on a resolved service fails.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection; raise BusConnectionError on failure."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection."""

    @abstractmethod
    async def resolve_service(self, path: str, interface: str) -> str:
        """Return the name of the service implementing interface at path."""

    @abstractmethod
    async def get_property(self, service: str, path: str, interface: str, name: str) -> Any:
        """Read one property."""

    @abstractmethod
    async def set_property(self, service: str, path: str, interface: str, name: str, value: str) -> None:
        """Write one string property."""

    @abstractmethod
    async def subscribe(self, path: str, interface: str,
                        callback: PropertiesChangedCallback) -> Subscription:
        """Deliver PropertiesChanged signals for (path, interface) to callback."""

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """Drop a subscription made by ``subscribe``."""
