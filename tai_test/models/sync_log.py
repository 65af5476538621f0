"""
SyncLog model - append-only ledger of device sync events
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, func
from tai_test.database import Base


class SyncLog(Base):
    """
    Sync log table - records uploads/downloads per device, never read back by the client
    """
    __tablename__ = "sync_log"

    id = Column(String(36), primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    device_id = Column(String(255), nullable=False)
    action = Column(String(10), nullable=False)  # upload | download | sync
    entity_type = Column(String(20), nullable=False)  # testResult | userStats
    entity_id = Column(String(36))
    status = Column(String(10), nullable=False, default="pending")  # pending | success | failed
    last_synced_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SyncLog(id={self.id}, device_id={self.device_id}, action={self.action}, status={self.status})>"
