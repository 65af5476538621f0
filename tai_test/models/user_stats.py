"""
UserStats model - aggregated statistics per user
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, func
from tai_test.database import Base


class UserStats(Base):
    """
    User stats table - recomputed from all of a user's results on every upload
    """
    __tablename__ = "user_stats"

    id = Column(String(64), primary_key=True)
    user_id = Column(Integer, unique=True, nullable=False)
    total_tests = Column(Integer, nullable=False, default=0)
    total_correct = Column(Integer, nullable=False, default=0)
    average_percentage = Column(Integer, nullable=False, default=0)
    last_test_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserStats(user_id={self.user_id}, total_tests={self.total_tests})>"
