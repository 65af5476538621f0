"""
Pydantic schemas for the sync ledger and reconciler state
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


SyncAction = Literal["upload", "download", "sync"]
SyncEntityType = Literal["testResult", "userStats"]
SyncStatus = Literal["pending", "success", "failed"]


class SyncEventCreate(BaseModel):
    """Schema for recording a sync event"""
    device_id: str = Field(..., min_length=1, max_length=255)
    action: SyncAction
    entity_type: SyncEntityType
    entity_id: Optional[str] = Field(None, max_length=36)


class SyncStatusUpdate(BaseModel):
    """Schema for updating the status of a logged event"""
    status: SyncStatus
    last_synced_at: Optional[datetime] = None


class SyncLogResponse(BaseModel):
    """Sync ledger entry"""
    id: str
    user_id: int
    device_id: str
    action: SyncAction
    entity_type: SyncEntityType
    entity_id: Optional[str] = None
    status: SyncStatus
    last_synced_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LastSyncResponse(BaseModel):
    """Last recorded sync time for a device"""
    device_id: str
    last_synced_at: Optional[datetime] = None


class SyncState(BaseModel):
    """Client-side sync status exposed to the UI"""
    is_syncing: bool = False
    last_sync_time: Optional[int] = None  # epoch ms
    sync_error: Optional[str] = None
    synced_count: int = 0


class SyncSummary(BaseModel):
    """Outcome of a single push/pull/bidirectional run"""
    action: SyncAction
    uploaded: int = 0
    downloaded: int = 0
    failed: int = 0
    skipped: bool = False
    error: Optional[str] = None
