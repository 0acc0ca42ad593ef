"""Sync route: reconcile the client batch with the stored snapshot (last writer wins)."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vaultsync import TransportError

from ..config import MAX_SYNC_BATCH
from ..database import get_db
from ..models import User
from ..routes.auth import get_current_user
from ..routes.data import RecordRequest, request_to_record
from ..services.data_service import DataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post("/")
def sync_records(
    body: list[RecordRequest],
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Response: {"data": merged records, "results": one entry per record with
    its outcome}. Failed records are reported, not silently dropped.
    """
    if len(body) > MAX_SYNC_BATCH:
        raise HTTPException(status_code=413, detail=f"At most {MAX_SYNC_BATCH} records per sync")
    batch = [request_to_record(item, user.id) for item in body]
    try:
        result = DataService(db).sync(user.id, batch)
    except TransportError as e:
        logger.error("Sync failed for user %d: %s", user.id, e)
        raise HTTPException(status_code=500, detail="Sync failed")
    return {
        "data": [r.to_wire() for r in result.records],
        "results": [
            {
                "id": e.record.id,
                "name": e.record.name,
                "outcome": e.outcome.value,
                "error": str(e.error) if e.error else None,
            }
            for e in result.entries
        ],
    }
