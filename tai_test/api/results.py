"""
Test result API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from tai_test.api.deps import get_current_user
from tai_test.database import get_db
from tai_test.models import User
from tai_test.schemas.result import TestResultCreate, TestResultCreated, TestResultResponse
from tai_test.services.results_service import results_service


router = APIRouter(prefix="/api/tests", tags=["tests"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[TestResultResponse])
async def list_test_results(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All results uploaded by the caller, newest first"""
    return results_service.get_user_test_results(db, user.id)


@router.post("", response_model=TestResultCreated, status_code=201)
async def create_test_result(
    payload: TestResultCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Upload a completed test result

    - Keeps the client-generated id when given
    - Re-uploading a known id returns it without inserting
    - Recomputes the caller's stats
    """
    try:
        result_id = results_service.create_test_result(db, user.id, payload)
        return TestResultCreated(id=result_id)
    except Exception as e:
        logger.error(f"Failed to store test result: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to store test result: {str(e)}")


@router.get("/blocks/{block_id}", response_model=List[TestResultResponse])
async def list_block_results(
    block_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's results for a single block, newest first"""
    return results_service.get_block_test_results(db, user.id, block_id)


@router.get("/{result_id}", response_model=TestResultResponse)
async def get_test_result(
    result_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = results_service.get_test_result(db, user.id, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Test result not found")
    return result
