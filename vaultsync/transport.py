"""
RemoteStore contract: the transport the sync engine and client talk to.

Implementations: client.http_store.HttpRemoteStore (over HTTP) and
backend.app.services.data_service.OwnerStore (over the database). Stores
only ever see ciphertext.
"""

from typing import List, Protocol, runtime_checkable

from records import SecretRecord


class TransportError(Exception):
    """Base class for remote store failures."""


class Unauthorized(TransportError):
    pass


class NotFound(TransportError):
    pass


class AccessDenied(TransportError):
    """Record belongs to a different owner."""


class NetworkError(TransportError):
    pass


class ServerError(TransportError):
    pass


@runtime_checkable
class RemoteStore(Protocol):
    def create(self, record: SecretRecord) -> int:
        """Persist a new record; return its server id. May stamp server timestamps on record."""
        ...

    def get_all(self, owner_id: int) -> List[SecretRecord]:
        ...

    def get_by_id(self, record_id: int) -> SecretRecord:
        ...

    def update(self, record: SecretRecord) -> None:
        ...

    def delete(self, record_id: int) -> None:
        ...
