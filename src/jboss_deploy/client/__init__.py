"""Management API clients and connection handling."""
from .base import CallbackDigestAuth, DomainClient, ManagementClient
from .connection import ConnectionState, ServerConnection

__all__ = [
    "CallbackDigestAuth",
    "ConnectionState",
    "DomainClient",
    "ManagementClient",
    "ServerConnection",
]
