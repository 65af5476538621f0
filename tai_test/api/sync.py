"""
Sync ledger API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from tai_test.api.deps import get_current_user
from tai_test.database import get_db
from tai_test.models import User
from tai_test.schemas.sync import (
    LastSyncResponse,
    SyncEventCreate,
    SyncLogResponse,
    SyncStatusUpdate,
)
from tai_test.services.sync_log_service import sync_log_service

router = APIRouter(prefix="/api/sync", tags=["sync"])
logger = logging.getLogger(__name__)


@router.get("/log", response_model=List[SyncLogResponse])
async def get_sync_log(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's sync events, newest first"""
    return sync_log_service.get_user_sync_log(db, user.id)


@router.get("/last-sync", response_model=LastSyncResponse)
async def get_last_sync_time(
    device_id: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    last_synced_at = sync_log_service.get_last_sync_time(db, user.id, device_id)
    return LastSyncResponse(device_id=device_id, last_synced_at=last_synced_at)


@router.post("/events", response_model=SyncLogResponse, status_code=201)
async def record_sync_event(
    event: SyncEventCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Append a successful sync event to the ledger"""
    try:
        return sync_log_service.create_sync_log(db, user.id, event)
    except Exception as e:
        logger.error(f"Failed to record sync event: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to record sync event: {str(e)}")


@router.patch("/events/{log_id}", response_model=SyncLogResponse)
async def update_sync_event(
    log_id: str,
    update: SyncStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = sync_log_service.update_sync_log_status(
        db, user.id, log_id, update.status, update.last_synced_at
    )
    if entry is None:
        raise HTTPException(status_code=404, detail="Sync event not found")
    return entry
