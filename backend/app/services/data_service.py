"""
Encrypted record storage per owner, plus server-side sync.

The server stores opaque ciphertext only: there is no key here and no way to
decrypt. Ownership is checked on every id-based access.
"""
import logging
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from records import SecretRecord, as_utc, utcnow
from vaultsync import AccessDenied, NotFound, ServerError, SyncEngine, SyncResult

from ..config import MAX_RECORD_BYTES
from ..models import SecretRow

logger = logging.getLogger(__name__)


class EmptyCiphertext(ValueError):
    pass


class RecordTooLarge(ValueError):
    pass


def row_to_record(row: SecretRow) -> SecretRecord:
    return SecretRecord(
        id=row.id,
        owner_id=row.user_id,
        kind=row.data_type,
        name=row.name,
        ciphertext=bytes(row.encrypted_data),
        metadata=row.meta or "",
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _check_size(ciphertext: bytes) -> None:
    if len(ciphertext) > MAX_RECORD_BYTES:
        raise RecordTooLarge(f"Record exceeds {MAX_RECORD_BYTES} bytes")


class DataService:
    def __init__(self, db: Session):
        self._db = db

    def _commit(self) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("Database commit failed: %s", e)
            raise ServerError("Database error") from e

    def _row(self, owner_id: int, record_id: int) -> SecretRow:
        row = self._db.get(SecretRow, record_id)
        if row is None:
            raise NotFound(f"Record {record_id} not found")
        if row.user_id != owner_id:
            raise AccessDenied(f"Record {record_id} belongs to another user")
        return row

    def create(self, owner_id: int, record: SecretRecord) -> int:
        """Store a client-encrypted record; the server stamps both timestamps."""
        if not record.ciphertext:
            raise EmptyCiphertext("Encrypted data is required")
        _check_size(record.ciphertext)
        now = utcnow()
        row = SecretRow(
            user_id=owner_id,
            data_type=record.kind.value,
            name=record.name,
            encrypted_data=record.ciphertext,
            meta=record.metadata or "",
            created_at=now,
            updated_at=now,
        )
        self._db.add(row)
        self._commit()
        record.id = row.id
        record.owner_id = owner_id
        record.created_at = now
        record.updated_at = now
        logger.info("Created record %d for user %d", row.id, owner_id)
        return row.id

    def get(self, owner_id: int, record_id: int) -> SecretRecord:
        return row_to_record(self._row(owner_id, record_id))

    def list(self, owner_id: int) -> List[SecretRecord]:
        rows = self._db.query(SecretRow).filter(SecretRow.user_id == owner_id).order_by(SecretRow.id).all()
        return [row_to_record(r) for r in rows]

    def update(self, owner_id: int, record: SecretRecord, stamp: bool = True) -> SecretRecord:
        """
        Overwrite a record. stamp=True (interactive PUT) sets updated_at to
        server time; stamp=False (sync) keeps the client's newer timestamp.
        """
        row = self._row(owner_id, record.id)
        if record.ciphertext:
            _check_size(record.ciphertext)
            row.encrypted_data = record.ciphertext
        if record.name:
            row.name = record.name
        row.data_type = record.kind.value
        row.meta = record.metadata or ""
        current = as_utc(row.updated_at)
        updated_at = utcnow() if stamp else as_utc(record.updated_at)
        row.updated_at = max(current, updated_at)
        self._commit()
        logger.info("Updated record %d for user %d", row.id, owner_id)
        return row_to_record(row)

    def delete(self, owner_id: int, record_id: int) -> None:
        row = self._row(owner_id, record_id)
        self._db.delete(row)
        self._commit()
        logger.info("Deleted record %d for user %d", record_id, owner_id)

    def sync(self, owner_id: int, batch: Iterable[SecretRecord]) -> SyncResult:
        store = OwnerStore(self, owner_id)
        return SyncEngine(store).sync(owner_id, batch)


class OwnerStore:
    """RemoteStore over DataService, scoped to one owner."""

    def __init__(self, service: DataService, owner_id: int):
        self._service = service
        self._owner_id = owner_id

    def create(self, record: SecretRecord) -> int:
        try:
            return self._service.create(self._owner_id, record)
        except ValueError as e:
            raise ServerError(str(e)) from e

    def get_all(self, owner_id: int) -> List[SecretRecord]:
        if owner_id != self._owner_id:
            raise AccessDenied("Snapshot of another user requested")
        return self._service.list(owner_id)

    def get_by_id(self, record_id: int) -> SecretRecord:
        return self._service.get(self._owner_id, record_id)

    def update(self, record: SecretRecord) -> None:
        try:
            stored = self._service.update(self._owner_id, record, stamp=False)
        except ValueError as e:
            raise ServerError(str(e)) from e
        record.updated_at = stored.updated_at
        record.owner_id = self._owner_id

    def delete(self, record_id: int) -> None:
        self._service.delete(self._owner_id, record_id)
