"""
Shared fixtures: in-memory database, API client, local storage and a
deterministic question bank.
"""
import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tai_test.models  # noqa: F401
from tai_test.database import Base, get_db
from tai_test.main import app
from tai_test.schemas.question import Question, QuestionOptions
from tai_test.schemas.result import TestResult as LocalResult
from tai_test.services.question_bank import QuestionBank
from tai_test.services.result_store import ResultStore
from tai_test.services.session_engine import SessionEngine
from tai_test.utils.local_storage import FileStorage
from tai_test.utils.rate_limiter import rate_limiter

START_MS = 1_700_000_000_000
USER_TOKEN = "open-id-alice"
OTHER_TOKEN = "open-id-bob"


def make_question(block: str, n: int, correct: str = "a") -> Question:
    return Question(
        id=f"{block}-q{n:02d}",
        block=block,
        theme=n % 5 + 1,
        text=f"Question {n} of {block}",
        options=QuestionOptions(a="Option A", b="Option B", c="Option C", d="Option D"),
        correct_answer=correct,
    )


class FakeClock:
    """Epoch-millisecond clock advanced by hand"""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    rate_limiter.reset()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {USER_TOKEN}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {OTHER_TOKEN}"}


@pytest.fixture
def bank():
    """4 blocks x 20 questions, every correct answer is 'a'"""
    return QuestionBank(
        make_question(f"block{b}", n) for b in range(1, 5) for n in range(20)
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "storage"))


@pytest.fixture
def store(storage):
    return ResultStore(storage)


@pytest.fixture
def engine(bank, store, clock):
    return SessionEngine(bank, store, rng=random.Random(1234), clock=clock)


@pytest.fixture
def result_factory():
    """Build local results without running a session"""

    def _make(result_id, score, total=20, block_id=None, created_at=START_MS, duration=60):
        questions = [make_question(block_id or "block1", n) for n in range(total)]
        answers = {q.id: ("a" if i < score else "b") for i, q in enumerate(questions)}
        return LocalResult(
            id=result_id,
            type="block" if block_id else "general",
            block_id=block_id,
            block_name=None,
            start_time=created_at - duration * 1000,
            end_time=created_at,
            questions=questions,
            user_answers=answers,
            score=score,
            total_questions=total,
            percentage=score / total * 100 if total else 0.0,
            duration=duration,
            created_at=created_at,
        )

    return _make
