"""Instructor-side review: manual grading, reports and submission listings."""
import logging
import math
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession, selectinload

from examcore.errors import (
    AttemptNotFound,
    AttemptNotSubmitted,
    GradingIncomplete,
    InvalidGradeTarget,
)
from examcore.models.db.attempt import (
    AnswerGradingStatus,
    Attempt,
    AttemptStatus,
    GradingStatus,
)
from examcore.models.grading import ManualGrade
from examcore.services import grading_service, notification_service
from examcore.services.attempt_service import commit_attempt, get_attempt
from examcore.services.exam_service import require_exam
from examcore.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

MANUAL_STATUSES = frozenset({
    AnswerGradingStatus.PENDING_MANUAL_GRADING.value,
    AnswerGradingStatus.MANUALLY_GRADED.value,
})


def require_attempt_by_id(db: DBSession, attempt_id: str) -> Attempt:
    attempt = get_attempt(db, attempt_id)
    if attempt is None:
        raise AttemptNotFound()
    return attempt


def grade_manual_answers(
    db: DBSession,
    attempt_id: str,
    grades: Iterable[ManualGrade],
    instructor_feedback: str | None = None,
) -> Attempt:
    """
    Apply instructor scores to manual-only answers and recompute the grade.

    Answers already manually graded may be graded again. All grades are
    validated before any is applied.
    """
    attempt = require_attempt_by_id(db, attempt_id)
    if not attempt.is_completed:
        raise AttemptNotSubmitted()

    by_question = {answer.question_id: answer for answer in attempt.answers}
    grades = list(grades)
    for grade in grades:
        answer = by_question.get(grade.questionId)
        if answer is None or answer.grading_status not in MANUAL_STATUSES:
            raise InvalidGradeTarget(
                f"Question {grade.questionId} has no answer awaiting manual grading"
            )
        if grade.score > (answer.max_score or 0):
            raise InvalidGradeTarget(
                f"Score {grade.score} exceeds maximum {answer.max_score} "
                f"for question {grade.questionId}"
            )

    for grade in grades:
        answer = by_question[grade.questionId]
        answer.score = grade.score
        if grade.feedback:
            answer.feedback = grade.feedback
        answer.grading_status = AnswerGradingStatus.MANUALLY_GRADED.value

    if instructor_feedback is not None:
        attempt.instructor_feedback = instructor_feedback

    grading_service.recompute_aggregate(attempt)
    if attempt.grading_status == GradingStatus.COMPLETE.value:
        attempt.graded_at = utc_now()

    commit_attempt(db, attempt)
    db.refresh(attempt)
    logger.info(
        f"Manually graded {len(grades)} answer(s) on attempt {attempt.id}: "
        f"score {attempt.score}/{attempt.total_marks}, grading {attempt.grading_status}"
    )
    return attempt


def send_report(db: DBSession, attempt_id: str, message: str | None = None) -> Attempt:
    """Mark the graded report as sent and hand it to the notification sinks."""
    attempt = require_attempt_by_id(db, attempt_id)
    if attempt.grading_status != GradingStatus.COMPLETE.value:
        raise GradingIncomplete()

    exam = attempt.exam
    if not message:
        message = (
            f'Your exam "{exam.title}" has been graded. '
            f"Score: {attempt.score}/{attempt.total_marks} ({attempt.percentage}%)"
        )

    attempt.report_sent = True
    attempt.report_sent_at = utc_now()
    commit_attempt(db, attempt)
    db.refresh(attempt)

    notification_service.dispatch_exam_report({
        "type": "exam_result",
        "attemptId": attempt.id,
        "studentId": attempt.student_id,
        "examId": exam.id,
        "title": f"Exam Results: {exam.title}",
        "message": message,
        "score": attempt.score,
        "totalMarks": attempt.total_marks,
        "percentage": attempt.percentage,
        "grade": attempt.grade,
    })
    return attempt


def _completed_for_exam(exam_id: str):
    return select(Attempt).where(
        Attempt.exam_id == exam_id,
        Attempt.status == AttemptStatus.COMPLETED.value,
    )


def list_submissions(
    db: DBSession,
    exam_id: str,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Attempt], int]:
    """
    Get submitted attempts for an exam, newest first.

    Returns:
        Tuple of (attempts on this page, total submitted attempts)
    """
    require_exam(db, exam_id)
    total = db.execute(
        select(func.count()).select_from(_completed_for_exam(exam_id).subquery())
    ).scalar() or 0
    attempts = db.execute(
        _completed_for_exam(exam_id)
        .options(selectinload(Attempt.answers))
        .order_by(Attempt.submitted_at.desc(), Attempt.id)
        .limit(limit)
        .offset((page - 1) * limit)
    ).scalars().all()
    return list(attempts), total


def submission_stats(db: DBSession, exam_id: str) -> dict[str, int]:
    """Grading progress over all submitted attempts of an exam."""
    rows = db.execute(
        select(Attempt.grading_status, Attempt.score).where(
            Attempt.exam_id == exam_id,
            Attempt.status == AttemptStatus.COMPLETED.value,
        )
    ).all()
    total = len(rows)
    total_score = sum(score or 0 for _, score in rows)
    return {
        "total": total,
        "fullyGraded": sum(1 for status, _ in rows if status == GradingStatus.COMPLETE.value),
        "pendingGrading": sum(1 for status, _ in rows if status == GradingStatus.PARTIAL.value),
        "averageScore": grading_service.round_div(total_score, total),
    }


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
