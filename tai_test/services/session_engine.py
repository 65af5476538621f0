"""
Test session engine

Drives a single quiz attempt: question ordering, navigation, answer capture,
skip tracking and scoring. Sessions are plain handles owned by the caller;
every operation is a no-op on a session that is missing or no longer in
progress.
"""
import logging
import math
import random
import time
from typing import Callable, Optional, get_args
from uuid import uuid4

from tai_test.config import settings
from tai_test.schemas.question import BLOCK_SHORT_NAMES, OptionLabel, Question
from tai_test.schemas.result import TestResult
from tai_test.schemas.session import TestSession
from tai_test.services.question_bank import QuestionBank
from tai_test.services.result_store import ResultStore

logger = logging.getLogger(__name__)

ANSWER_OPTIONS = frozenset(get_args(OptionLabel))


def now_ms() -> int:
    return int(time.time() * 1000)


def _active(session: Optional[TestSession]) -> bool:
    return session is not None and session.is_active


class SessionEngine:
    """
    Session state machine: absent -> in-progress -> absent

    Finishing persists a TestResult through the ResultStore and marks the
    session completed. Cancelling marks it cancelled. Either way the handle
    is inert afterwards.
    """

    def __init__(
        self,
        bank: QuestionBank,
        result_store: ResultStore,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        self.bank = bank
        self.result_store = result_store
        self.rng = rng or random.Random()
        self.clock = clock or now_ms

    def _new_session(self, test_type: str, questions: list, block_id: Optional[str] = None) -> TestSession:
        started = self.clock()
        session = TestSession(
            id=f"session_{started}",
            type=test_type,
            block_id=block_id,
            questions=questions,
            start_time=started,
        )
        logger.info(f"Started {test_type} test {session.id} with {len(questions)} questions")
        return session

    def start_block_test(self, block_id: str) -> TestSession:
        questions = self.bank.by_block(block_id)
        self.rng.shuffle(questions)
        return self._new_session("block", questions, block_id=block_id)

    def start_general_test(self) -> TestSession:
        pool = self.bank.all()
        questions = self.rng.sample(pool, min(settings.GENERAL_TEST_SIZE, len(pool)))
        return self._new_session("general", questions)

    # ---- Answer capture and navigation ----

    def answer_question(self, session: Optional[TestSession], option: Optional[str]) -> None:
        """Record the answer for the current question; None clears it"""
        question = self.get_current_question(session)
        if question is None:
            return
        if option is not None and option not in ANSWER_OPTIONS:
            logger.warning(f"Ignoring invalid answer {option!r} for {question.id}")
            return
        session.user_answers[question.id] = option

    def next_question(self, session: Optional[TestSession]) -> None:
        if not _active(session):
            return
        if session.current_question_index < len(session.questions) - 1:
            session.current_question_index += 1

    def previous_question(self, session: Optional[TestSession]) -> None:
        if not _active(session):
            return
        if session.current_question_index > 0:
            session.current_question_index -= 1

    def skip_question(self, session: Optional[TestSession]) -> None:
        question = self.get_current_question(session)
        if question is None:
            return
        session.skipped_questions.add(question.id)
        self.next_question(session)

    def go_to_question(self, session: Optional[TestSession], index: int) -> None:
        if not _active(session):
            return
        if 0 <= index < len(session.questions):
            session.current_question_index = index

    # ---- Completion ----

    def finish_test(self, session: Optional[TestSession]) -> Optional[TestResult]:
        """
        Score the session and persist the result

        Returns the stored result, or None when there is no active session or
        the result could not be saved. On a failed save the session stays in
        progress so the caller can retry.
        """
        if not _active(session):
            return None

        score = sum(
            1 for q in session.questions
            if session.user_answers.get(q.id) == q.correct_answer
        )
        total = len(session.questions)
        end_time = self.clock()

        result = TestResult(
            id=str(uuid4()),
            type=session.type,
            block_id=session.block_id,
            block_name=BLOCK_SHORT_NAMES.get(session.block_id) if session.block_id else None,
            start_time=session.start_time,
            end_time=end_time,
            questions=session.questions,
            user_answers=dict(session.user_answers),
            score=score,
            total_questions=total,
            percentage=(score / total * 100) if total else 0.0,
            duration=math.floor((end_time - session.start_time) / 1000),
            created_at=end_time,
        )

        if not self.result_store.save(result):
            logger.warning(f"Finishing {session.id} failed, session kept for retry")
            return None

        session.status = "completed"
        logger.info(f"Finished {session.id}: {score}/{total} in {result.duration}s")
        return result

    def cancel_test(self, session: Optional[TestSession]) -> None:
        if _active(session):
            session.status = "cancelled"
            logger.info(f"Cancelled {session.id}")

    # ---- Read-only accessors ----

    def get_current_question(self, session: Optional[TestSession]) -> Optional[Question]:
        if not _active(session):
            return None
        if 0 <= session.current_question_index < len(session.questions):
            return session.questions[session.current_question_index]
        return None

    def get_current_answer(self, session: Optional[TestSession]) -> Optional[str]:
        question = self.get_current_question(session)
        if question is None:
            return None
        return session.user_answers.get(question.id) or None

    def get_progress(self, session: Optional[TestSession]) -> float:
        """Position-based progress; reads 0 on the first question"""
        if not _active(session) or not session.questions:
            return 0.0
        return session.current_question_index / len(session.questions) * 100

    def get_answered_count(self, session: Optional[TestSession]) -> int:
        """Size of the answer map, including entries cleared to None"""
        if not _active(session):
            return 0
        return len(session.user_answers)
