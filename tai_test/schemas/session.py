"""
Pydantic schema for an in-progress test attempt
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Set

from tai_test.schemas.question import BlockType, OptionLabel, Question


TestType = Literal["block", "general"]
SessionStatus = Literal["in-progress", "completed", "cancelled"]


class TestSession(BaseModel):
    """
    Ephemeral, in-memory quiz attempt

    The session is a handle owned by the caller and passed to every
    SessionEngine operation. Only an in-progress session is mutated.
    """
    __test__ = False

    id: str
    type: TestType
    block_id: Optional[BlockType] = None
    questions: List[Question]
    current_question_index: int = 0
    user_answers: Dict[str, Optional[OptionLabel]] = Field(default_factory=dict)
    skipped_questions: Set[str] = Field(default_factory=set)
    start_time: int  # epoch ms
    status: SessionStatus = "in-progress"

    @property
    def is_active(self) -> bool:
        return self.status == "in-progress"
