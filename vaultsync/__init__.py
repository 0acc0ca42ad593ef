"""Remote store contract and client/server reconciliation."""

from .engine import SyncEngine, SyncEntry, SyncOutcome, SyncResult
from .transport import (
    AccessDenied,
    NetworkError,
    NotFound,
    RemoteStore,
    ServerError,
    TransportError,
    Unauthorized,
)

__all__ = [
    "SyncEngine",
    "SyncEntry",
    "SyncOutcome",
    "SyncResult",
    "AccessDenied",
    "NetworkError",
    "NotFound",
    "RemoteStore",
    "ServerError",
    "TransportError",
    "Unauthorized",
]
