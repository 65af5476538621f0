"""
Pydantic schemas for aggregate statistics
"""
from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime


class BlockStats(BaseModel):
    """Per-block breakdown"""
    attempts: int = 0
    correct: int = 0
    percentage: float = 0.0
    last_attempt: Optional[int] = None  # epoch ms


def _default_block_stats() -> Dict[str, BlockStats]:
    return {block_id: BlockStats() for block_id in ("block1", "block2", "block3", "block4")}


class UserStats(BaseModel):
    """Device-local statistics derived from the stored results"""
    total_tests: int = 0
    total_correct: int = 0
    total_attempted: int = 0
    average_percentage: float = 0.0
    block_stats: Dict[str, BlockStats] = Field(default_factory=_default_block_stats)


class UserStatsResponse(BaseModel):
    """Server-side stats row"""
    user_id: int
    total_tests: int
    total_correct: int
    average_percentage: int
    last_test_at: Optional[datetime] = None

    class Config:
        from_attributes = True
