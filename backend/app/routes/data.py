"""
Record routes: create, list, get (metadata only), get encrypted, update, delete.
Bodies carry base64 ciphertext produced by the client; nothing is decrypted here.
"""
import base64
import binascii
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from records import NAME_MAX_LENGTH, SecretKind, SecretRecord, utcnow
from vaultsync import AccessDenied, NotFound, TransportError

from ..database import get_db
from ..models import User
from ..routes.auth import get_current_user
from ..services.data_service import DataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/data", tags=["data"])


class RecordRequest(BaseModel):
    id: int = 0
    type: SecretKind | None = None
    name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    encrypted_data: str = ""
    metadata: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecordSummary(BaseModel):
    id: int
    type: SecretKind
    name: str
    metadata: str
    created_at: datetime
    updated_at: datetime


def decode_ciphertext(value: str) -> bytes:
    try:
        return base64.b64decode(value or "", validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="encrypted_data must be base64")


def request_to_record(body: RecordRequest, owner_id: int) -> SecretRecord:
    if body.type is None or not body.name:
        raise HTTPException(status_code=400, detail="type and name are required")
    now = utcnow()
    return SecretRecord(
        id=body.id,
        owner_id=owner_id,
        kind=body.type,
        name=body.name,
        ciphertext=decode_ciphertext(body.encrypted_data),
        metadata=body.metadata,
        created_at=body.created_at or now,
        updated_at=body.updated_at or now,
    )


def summary(record: SecretRecord) -> RecordSummary:
    return RecordSummary(
        id=record.id,
        type=record.kind,
        name=record.name,
        metadata=record.metadata,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail="Record not found")
    if isinstance(e, AccessDenied):
        return HTTPException(status_code=403, detail="Access to record denied")
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("/", status_code=201, response_model=RecordSummary)
def create_record(body: RecordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    record = request_to_record(body, user.id)
    try:
        DataService(db).create(user.id, record)
    except (TransportError, ValueError) as e:
        logger.error("Create failed for user %d: %s", user.id, e)
        raise http_error(e)
    return summary(record)


@router.get("/")
def list_records(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """All records of the current user, ciphertext included (sync snapshot)."""
    return [r.to_wire() for r in DataService(db).list(user.id)]


@router.get("/{record_id}", response_model=RecordSummary)
def get_record(record_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return summary(DataService(db).get(user.id, record_id))
    except TransportError as e:
        logger.error("Get %d failed for user %d: %s", record_id, user.id, e)
        raise http_error(e)


@router.get("/{record_id}/encrypted")
def get_encrypted_record(record_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        record = DataService(db).get(user.id, record_id)
    except TransportError as e:
        logger.error("Get encrypted %d failed for user %d: %s", record_id, user.id, e)
        raise http_error(e)
    return {**record.to_wire(), "user_id": record.owner_id}


@router.put("/{record_id}", response_model=RecordSummary)
def update_record(
    record_id: int,
    body: RecordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = DataService(db)
    try:
        existing = service.get(user.id, record_id)
        record = SecretRecord(
            id=record_id,
            owner_id=user.id,
            kind=body.type or existing.kind,
            name=body.name or existing.name,
            ciphertext=decode_ciphertext(body.encrypted_data),
            metadata=body.metadata,
            created_at=existing.created_at,
            updated_at=existing.updated_at,
        )
        return summary(service.update(user.id, record))
    except (TransportError, ValueError) as e:
        logger.error("Update %d failed for user %d: %s", record_id, user.id, e)
        raise http_error(e)


@router.delete("/{record_id}")
def delete_record(record_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        DataService(db).delete(user.id, record_id)
    except TransportError as e:
        logger.error("Delete %d failed for user %d: %s", record_id, user.id, e)
        raise http_error(e)
    return {"success": True, "message": "Record deleted"}
