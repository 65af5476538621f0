"""
Pydantic schemas for test results (local records and API payloads)
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from tai_test.schemas.question import BlockType, OptionLabel, Question
from tai_test.schemas.session import TestType


class TestResult(BaseModel):
    """Scored record of a completed attempt, as persisted on the device"""
    __test__ = False

    id: str
    type: TestType
    block_id: Optional[BlockType] = None
    block_name: Optional[str] = None
    start_time: int  # epoch ms
    end_time: int  # epoch ms
    questions: List[Question]
    user_answers: Dict[str, Optional[OptionLabel]]
    score: int
    total_questions: int
    percentage: float
    duration: int  # seconds
    created_at: int  # epoch ms


class TestResultCreate(BaseModel):
    """Upload payload for a result"""
    id: Optional[str] = Field(None, max_length=36, description="Client-generated result id")
    type: TestType
    block_id: Optional[str] = Field(None, max_length=10)
    block_name: Optional[str] = Field(None, max_length=255)
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0, le=100.0)
    duration: int = Field(..., ge=0, description="Duration in seconds")
    user_answers: Dict[str, str]
    questions: List[Dict[str, Any]]


class TestResultCreated(BaseModel):
    """Response after a result upload"""
    id: str


class TestResultResponse(BaseModel):
    """Server-side result row"""
    id: str
    user_id: int
    type: TestType
    block_id: Optional[str] = None
    block_name: Optional[str] = None
    score: int
    total_questions: int
    percentage: int
    duration: int
    user_answers: Dict[str, str]
    questions: List[Dict[str, Any]]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
