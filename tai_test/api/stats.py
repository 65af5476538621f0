"""
User statistics API endpoint
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from tai_test.api.deps import get_current_user
from tai_test.database import get_db
from tai_test.models import User
from tai_test.schemas.stats import UserStatsResponse
from tai_test.services.results_service import results_service

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=Optional[UserStatsResponse])
async def get_user_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Aggregated stats for the caller, or null before the first upload"""
    return results_service.get_user_stats(db, user.id)
