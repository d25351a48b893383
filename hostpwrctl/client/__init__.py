"""
Remote state service access.
"""
from .base import CallResult, CallStatus, ErrorKind, Subscription, Transport
from .state_client import StateClient

__all__ = ["CallResult", "CallStatus", "ErrorKind", "StateClient", "Subscription", "Transport"]
