"""Attempt lifecycle: start/resume, session lookup, answer saves and submission."""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession, selectinload
from sqlalchemy.orm.exc import StaleDataError

from examcore.config import ENFORCE_ATTEMPT_DEADLINE
from examcore.errors import (
    AlreadySubmitted,
    AttemptClosed,
    AttemptDeadlinePassed,
    ConcurrentModification,
    ExamUnavailable,
    NoActiveSession,
)
from examcore.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus, GradingStatus
from examcore.models.db.exam import Exam
from examcore.services import answer_service, grading_service
from examcore.services.exam_service import attempt_deadline, require_exam
from examcore.utils.time_utils import ensure_aware, utc_now

logger = logging.getLogger(__name__)


def find_attempt(db: DBSession, student_id: str, exam_id: str) -> Attempt | None:
    """Get the attempt for a (student, exam) pair with answers loaded."""
    return db.execute(
        select(Attempt)
        .options(selectinload(Attempt.answers))
        .where(Attempt.student_id == student_id, Attempt.exam_id == exam_id)
    ).scalar_one_or_none()


def get_attempt(db: DBSession, attempt_id: str) -> Attempt | None:
    """Get attempt by ID with answers loaded."""
    return db.execute(
        select(Attempt)
        .options(selectinload(Attempt.answers))
        .where(Attempt.id == attempt_id)
    ).scalar_one_or_none()


def require_attempt(db: DBSession, student_id: str, exam_id: str) -> Attempt:
    attempt = find_attempt(db, student_id, exam_id)
    if attempt is None:
        raise NoActiveSession()
    return attempt


def deadline_for(attempt: Attempt, exam: Exam) -> datetime | None:
    return attempt_deadline(attempt.started_at, exam)


def deadline_passed(attempt: Attempt, exam: Exam, now: datetime | None = None) -> bool:
    """Check the server-side deadline (always False when enforcement is off)."""
    if not ENFORCE_ATTEMPT_DEADLINE:
        return False
    deadline = deadline_for(attempt, exam)
    if deadline is None:
        return False
    return (now or utc_now()) > ensure_aware(deadline)


def commit_attempt(db: DBSession, attempt: Attempt) -> None:
    """Commit an attempt read-modify-write, mapping lost races to a 409."""
    attempt_id = attempt.id
    try:
        db.commit()
    except (StaleDataError, IntegrityError) as exc:
        db.rollback()
        logger.warning(f"Attempt {attempt_id} changed underneath this request")
        raise ConcurrentModification() from exc


def start_attempt(
    db: DBSession,
    student_id: str,
    exam_id: str,
    session_data: dict[str, Any] | None = None,
) -> tuple[Attempt, bool, Exam]:
    """
    Start a new attempt or resume the in-progress one.

    Returns:
        Tuple of (attempt, resumed, exam)
    """
    exam = require_exam(db, exam_id)
    if not exam.is_published:
        raise ExamUnavailable()

    attempt = find_attempt(db, student_id, exam_id)
    if attempt is not None:
        if attempt.is_completed:
            raise AlreadySubmitted()
        logger.info(f"Resuming attempt {attempt.id} for student {student_id}")
        return attempt, True, exam

    session_data = session_data or {}
    attempt = Attempt(
        student_id=student_id,
        exam_id=exam_id,
        status=AttemptStatus.IN_PROGRESS.value,
        started_at=utc_now(),
        time_spent=0,
        ip_address=session_data.get("ipAddress"),
        user_agent=session_data.get("userAgent"),
        browser_fingerprint=session_data.get("browserFingerprint"),
    )
    db.add(attempt)
    try:
        db.commit()
    except IntegrityError:
        # Lost a start race for the same (student, exam); use the winner's row
        db.rollback()
        attempt = require_attempt(db, student_id, exam_id)
        if attempt.is_completed:
            raise AlreadySubmitted()
        return attempt, True, exam

    db.refresh(attempt)
    logger.info(f"Started attempt {attempt.id} for student {student_id} on exam {exam_id}")
    return attempt, False, exam


def get_session(db: DBSession, student_id: str, exam_id: str) -> tuple[Attempt, Exam]:
    """Return the in-progress attempt and its exam."""
    attempt = require_attempt(db, student_id, exam_id)
    if attempt.is_completed:
        raise AlreadySubmitted()
    return attempt, require_exam(db, exam_id)


def save_answer(
    db: DBSession,
    student_id: str,
    exam_id: str,
    question_id: str,
    answer: Any,
    time_spent: int = 0,
    base_revision: int | None = None,
) -> tuple[AttemptAnswer, Attempt]:
    """Record an answer on the student's in-progress attempt."""
    attempt = require_attempt(db, student_id, exam_id)
    if attempt.is_completed:
        raise AttemptClosed()
    if deadline_passed(attempt, attempt.exam):
        raise AttemptDeadlinePassed()

    record = answer_service.save_answer(
        db, attempt, question_id, answer, time_spent, base_revision
    )
    db.refresh(attempt)
    return record, attempt


def submit_attempt(
    db: DBSession,
    student_id: str,
    exam_id: str,
    answers: list[dict[str, Any]] | None = None,
) -> Attempt:
    """
    Submit the attempt and grade it.

    A non-empty ``answers`` list replaces the ledger before grading; otherwise
    the saved ledger is graded. Submitting an already completed attempt does
    not grade again: the aggregate is recomputed from the stored ledger and
    the attempt returned unchanged.
    """
    attempt = require_attempt(db, student_id, exam_id)

    if attempt.is_completed:
        grading_service.recompute_aggregate(attempt)
        commit_attempt(db, attempt)
        logger.info(f"Re-submission of completed attempt {attempt.id}; returning stored result")
        return attempt

    exam = require_exam(db, exam_id)
    now = utc_now()

    if answers and deadline_passed(attempt, exam, now):
        logger.warning(
            f"Attempt {attempt.id} submitted after its deadline; grading saved answers only"
        )
        answers = None

    if answers:
        answer_service.replace_answers(attempt, answers, now)

    grading_service.grade_ledger(attempt, exam)
    grading_service.recompute_aggregate(attempt)

    attempt.status = AttemptStatus.COMPLETED.value
    attempt.submitted_at = now
    if attempt.grading_status == GradingStatus.COMPLETE.value:
        attempt.graded_at = now

    commit_attempt(db, attempt)
    db.refresh(attempt)
    logger.info(
        f"Submitted attempt {attempt.id}: score {attempt.score}/{attempt.total_marks} "
        f"({attempt.percentage}%), grading {attempt.grading_status}"
    )
    return attempt
