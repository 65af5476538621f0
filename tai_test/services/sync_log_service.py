"""
Server-side sync ledger
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from tai_test.models import SyncLog
from tai_test.schemas.sync import SyncEventCreate
from tai_test.services.results_service import utcnow

logger = logging.getLogger(__name__)


class SyncLogService:
    """Append-only log of device sync events. Written by clients, never used to drive a merge."""

    def create_sync_log(
        self,
        db: Session,
        user_id: int,
        event: SyncEventCreate,
        status: str = "success"
    ) -> SyncLog:
        now = utcnow()
        entry = SyncLog(
            id=str(uuid4()),
            user_id=user_id,
            device_id=event.device_id,
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            status=status,
            last_synced_at=now,
            created_at=now,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        logger.info(f"Sync event {event.action}/{event.entity_type} recorded for device {event.device_id}")
        return entry

    def update_sync_log_status(
        self,
        db: Session,
        user_id: int,
        log_id: str,
        status: str,
        last_synced_at: Optional[datetime] = None
    ) -> Optional[SyncLog]:
        entry = (
            db.query(SyncLog)
            .filter(SyncLog.id == log_id, SyncLog.user_id == user_id)
            .first()
        )
        if entry is None:
            return None

        entry.status = status
        entry.last_synced_at = last_synced_at or utcnow()
        db.commit()
        db.refresh(entry)
        return entry

    def get_user_sync_log(self, db: Session, user_id: int) -> List[SyncLog]:
        return (
            db.query(SyncLog)
            .filter(SyncLog.user_id == user_id)
            .order_by(SyncLog.created_at.desc())
            .all()
        )

    def get_last_sync_time(self, db: Session, user_id: int, device_id: str) -> Optional[datetime]:
        entry = (
            db.query(SyncLog)
            .filter(SyncLog.user_id == user_id, SyncLog.device_id == device_id)
            .order_by(SyncLog.created_at.desc())
            .first()
        )
        return entry.last_synced_at if entry else None


# Global instance
sync_log_service = SyncLogService()
