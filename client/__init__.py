"""Vault client: session, HTTP transport, event loop and periodic sync."""

from .client import VaultClient
from .http_store import HttpRemoteStore
from .loop import EventLoop, SyncScheduler
from .session import Session

__all__ = ["VaultClient", "HttpRemoteStore", "EventLoop", "SyncScheduler", "Session"]
