"""
Remote Store Package

Provides the abstract backend interface and the HTTP implementation.
"""

from expense_sync.services.remote.interface import (
    RemoteStoreError,
    RemoteStoreInterface,
    Resource,
    TransportError,
)
from expense_sync.services.remote.http_store import HttpRemoteStore

__all__ = [
    # Interface
    "RemoteStoreInterface",
    "Resource",
    # Exceptions
    "RemoteStoreError",
    "TransportError",
    # HTTP implementation
    "HttpRemoteStore",
]
