"""Read-only access to exams and their questions."""
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession, selectinload

from examcore.config import ATTEMPT_GRACE_SECONDS, DEFAULT_INSTRUCTIONS
from examcore.errors import ExamNotFound, QuestionUnresolvable
from examcore.models.db.exam import Exam, Question
from examcore.utils.time_utils import ensure_aware


def get_exam(db: DBSession, exam_id: str) -> Exam | None:
    """Get exam by ID with questions loaded."""
    return db.execute(
        select(Exam).options(selectinload(Exam.questions)).where(Exam.id == exam_id)
    ).scalar_one_or_none()


def require_exam(db: DBSession, exam_id: str) -> Exam:
    exam = get_exam(db, exam_id)
    if exam is None:
        raise ExamNotFound()
    return exam


def question_map(exam: Exam) -> dict[str, Question]:
    """Index the exam's questions by ID."""
    return {question.id: question for question in exam.questions}


def resolve_question(questions: dict[str, Question], question_id: str, exam_id: str) -> Question:
    """Look up a question snapshot, raising QuestionUnresolvable if it is gone."""
    question = questions.get(question_id)
    if question is None:
        raise QuestionUnresolvable(question_id, exam_id)
    return question


def exam_snapshot(exam: Exam) -> dict[str, object]:
    """
    Build the exam payload delivered to a student.
    Correct answers are never included.
    """
    return {
        "id": exam.id,
        "title": exam.title,
        "subject": exam.subject,
        "duration": exam.duration,
        "totalMarks": exam.total_marks,
        "instructions": exam.instructions or DEFAULT_INSTRUCTIONS,
        "questions": [
            {
                "id": question.id,
                "questionText": question.question_text,
                "type": question.type,
                "options": question.options,
                "marks": question.marks,
            }
            for question in exam.questions
        ],
    }


def attempt_deadline(started_at: datetime, exam: Exam) -> datetime | None:
    """
    Server-side deadline for an attempt: start + exam duration + grace.
    Exams without a duration have no deadline.
    """
    if not exam.duration or exam.duration <= 0:
        return None
    return ensure_aware(started_at) + timedelta(
        minutes=exam.duration, seconds=ATTEMPT_GRACE_SECONDS
    )
