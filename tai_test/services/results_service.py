"""
Server-side test result and user stats persistence
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from tai_test.models import TestResult, UserStats
from tai_test.schemas.result import TestResultCreate

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ResultsService:
    """Queries over the test_results and user_stats tables"""

    def create_test_result(self, db: Session, user_id: int, data: TestResultCreate) -> str:
        """
        Store an uploaded result and refresh the user's stats

        The client id is kept as the primary key. Re-uploading an id the user
        already owns is a no-op that returns the existing id, which makes
        repeated pushes idempotent.
        """
        result_id = data.id or str(uuid4())

        existing = db.query(TestResult).filter(TestResult.id == result_id).first()
        if existing:
            if existing.user_id == user_id:
                logger.info(f"Result {result_id} already stored for user {user_id}")
                return existing.id
            # Id taken by another account, assign a fresh one
            result_id = str(uuid4())

        now = utcnow()
        row = TestResult(
            id=result_id,
            user_id=user_id,
            type=data.type,
            block_id=data.block_id or None,
            block_name=data.block_name or None,
            score=data.score,
            total_questions=data.total_questions,
            percentage=round(data.percentage),
            duration=data.duration,
            user_answers=data.user_answers,
            questions=data.questions,
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        db.commit()
        logger.info(f"Test result created: {result_id} for user {user_id}")

        self.update_user_stats(db, user_id)
        return result_id

    def get_user_test_results(self, db: Session, user_id: int) -> List[TestResult]:
        return (
            db.query(TestResult)
            .filter(TestResult.user_id == user_id)
            .order_by(TestResult.created_at.desc())
            .all()
        )

    def get_test_result(self, db: Session, user_id: int, result_id: str) -> Optional[TestResult]:
        return (
            db.query(TestResult)
            .filter(TestResult.id == result_id, TestResult.user_id == user_id)
            .first()
        )

    def get_block_test_results(self, db: Session, user_id: int, block_id: str) -> List[TestResult]:
        return (
            db.query(TestResult)
            .filter(TestResult.user_id == user_id, TestResult.block_id == block_id)
            .order_by(TestResult.created_at.desc())
            .all()
        )

    def get_user_stats(self, db: Session, user_id: int) -> Optional[UserStats]:
        return db.query(UserStats).filter(UserStats.user_id == user_id).first()

    def update_user_stats(self, db: Session, user_id: int) -> Optional[UserStats]:
        """Recompute the stats row from every result the user has uploaded"""
        results = self.get_user_test_results(db, user_id)
        if not results:
            return None

        total_tests = len(results)
        total_correct = sum(r.score for r in results)
        average_percentage = sum(r.percentage for r in results) / total_tests
        last_test_at = results[0].created_at

        stats = self.get_user_stats(db, user_id)
        if stats is None:
            stats = UserStats(
                id=f"stats-{user_id}-{int(utcnow().timestamp() * 1000)}",
                user_id=user_id,
            )
            db.add(stats)

        stats.total_tests = total_tests
        stats.total_correct = total_correct
        stats.average_percentage = round(average_percentage)
        stats.last_test_at = last_test_at
        db.commit()
        db.refresh(stats)
        return stats


# Global instance
results_service = ResultsService()
