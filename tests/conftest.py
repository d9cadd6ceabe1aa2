import os
import tempfile
import uuid
from pathlib import Path

# Point the app's default engine away from the working tree before import
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="examcore-tests-"))
os.environ.setdefault("DB_DIR", str(_TEST_DB_DIR))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB_DIR / 'default.db'}")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from examcore.app import app
from examcore.database import Base, get_db
from examcore.models.db.exam import Exam, ExamStatus, Question
from examcore.services import notification_service
from examcore.services.auth_service import ROLE_INSTRUCTOR, ROLE_STUDENT, create_access_token

DEFAULT_QUESTIONS = [
    {"type": "mcq", "marks": 2, "options": ["3", "4", "5"], "correct": "4"},
    {"type": "truefalse", "marks": 1, "options": [True, False], "correct": False},
    {"type": "short", "marks": 3},
    {"type": "long", "marks": 4},
]


@pytest.fixture
def engine(tmp_path: Path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_exam(db):
    """Create an exam; question IDs are ``<exam id>-<index>``."""

    def _make_exam(
        questions: list[dict] | None = None,
        status: str = ExamStatus.PUBLISHED.value,
        duration: int | None = 60,
        instructions: str | None = None,
    ) -> Exam:
        definitions = DEFAULT_QUESTIONS if questions is None else questions
        exam = Exam(
            id=uuid.uuid4().hex,
            title="Sample exam",
            subject="Mathematics",
            status=status,
            duration=duration,
            instructions=instructions,
        )
        for index, item in enumerate(definitions):
            question = Question(
                id=f"{exam.id}-{index}",
                position=index,
                question_text=item.get("text", f"Question {index + 1}"),
                type=item["type"],
                marks=item.get("marks", 1),
            )
            question.options = item.get("options")
            question.correct_answer = item.get("correct")
            exam.questions.append(question)
        exam.total_marks = sum(item.get("marks", 1) for item in definitions)
        db.add(exam)
        db.commit()
        db.refresh(exam)
        return exam

    return _make_exam


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_notification_sinks():
    notification_service.clear_sinks()
    yield
    notification_service.clear_sinks()


def auth_headers(user_id: str, role: str) -> dict[str, str]:
    token, _ = create_access_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers() -> dict[str, str]:
    return auth_headers("student-1", ROLE_STUDENT)


@pytest.fixture
def instructor_headers() -> dict[str, str]:
    return auth_headers("prof-1", ROLE_INSTRUCTOR)


@pytest.fixture
def make_headers():
    return auth_headers
