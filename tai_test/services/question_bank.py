"""
Static question bank loaded once from JSON
"""
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from tai_test.config import settings
from tai_test.schemas.question import BLOCKS, BlockInfo, Question

logger = logging.getLogger(__name__)


class QuestionBank:
    """Immutable ordered collection of questions"""

    def __init__(self, questions: Iterable[Question]):
        self._questions = tuple(questions)

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "QuestionBank":
        path = Path(path or settings.QUESTION_BANK_PATH)
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        bank = cls(Question(**item) for item in raw)
        logger.info(f"Loaded {len(bank)} questions from {path}")
        return bank

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def all(self) -> List[Question]:
        return list(self._questions)

    def by_block(self, block_id: str) -> List[Question]:
        return [q for q in self._questions if q.block == block_id]

    def get(self, question_id: str) -> Optional[Question]:
        for question in self._questions:
            if question.id == question_id:
                return question
        return None

    @staticmethod
    def blocks() -> List[BlockInfo]:
        return list(BLOCKS.values())
