"""Instructor grading endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from examcore.config import SUBMISSIONS_PAGE_LIMIT
from examcore.database import get_db
from examcore.dependencies.auth import Principal, require_instructor
from examcore.models.db.attempt import GradingStatus
from examcore.models.grading import (
    GradeRequest,
    GradeResponse,
    GradingBreakdown,
    Pagination,
    SendReportRequest,
    SendReportResponse,
    SubmissionListResponse,
    SubmissionStats,
)
from examcore.models.sessions import AttemptView, ViolationView
from examcore.routes.sessions import attempt_view
from examcore.services import grading_service, review_service, violation_service
from examcore.utils import ensure_aware, validate_id

router = APIRouter(prefix="/api/grading", tags=["grading"])


@router.get("/exams/{exam_id}/submissions", response_model=SubmissionListResponse)
def list_submissions(
    exam_id: str,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = SUBMISSIONS_PAGE_LIMIT,
) -> SubmissionListResponse:
    """List submitted attempts for an exam with grading progress."""
    exam_id = validate_id("examId", exam_id)
    attempts, total = review_service.list_submissions(db, exam_id, page, limit)
    submissions = [
        attempt_view(attempt, attempt.exam, violation_service.count_violations(db, attempt.id))
        for attempt in attempts
    ]
    return SubmissionListResponse(
        examId=exam_id,
        submissions=submissions,
        stats=SubmissionStats(**review_service.submission_stats(db, exam_id)),
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=review_service.page_count(total, limit),
        ),
    )


@router.get("/attempts/{attempt_id}", response_model=AttemptView)
def get_submission(
    attempt_id: str,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
) -> AttemptView:
    """Get one attempt with its graded answers."""
    attempt = review_service.require_attempt_by_id(db, validate_id("attemptId", attempt_id))
    return attempt_view(attempt, attempt.exam, violation_service.count_violations(db, attempt.id))


@router.get("/attempts/{attempt_id}/breakdown", response_model=GradingBreakdown)
def get_breakdown(
    attempt_id: str,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
) -> GradingBreakdown:
    attempt = review_service.require_attempt_by_id(db, validate_id("attemptId", attempt_id))
    return GradingBreakdown(**grading_service.grading_breakdown(attempt))


@router.get("/attempts/{attempt_id}/violations", response_model=list[ViolationView])
def list_violations(
    attempt_id: str,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[ViolationView]:
    """Get the violation log of an attempt in timestamp order."""
    attempt = review_service.require_attempt_by_id(db, validate_id("attemptId", attempt_id))
    return [
        ViolationView(
            id=violation.id,
            type=violation.type,
            description=violation.description,
            severity=violation.severity,
            timestamp=ensure_aware(violation.timestamp),
        )
        for violation in violation_service.list_violations(db, attempt.id)
    ]


@router.post("/attempts/{attempt_id}/grade", response_model=GradeResponse)
def grade_submission(
    attempt_id: str,
    payload: GradeRequest,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
) -> GradeResponse:
    """Grade manual-only answers (short/long)."""
    attempt = review_service.grade_manual_answers(
        db,
        validate_id("attemptId", attempt_id),
        payload.gradedAnswers,
        payload.feedback,
    )
    return GradeResponse(
        message="Grading completed successfully"
        if attempt.grading_status == GradingStatus.COMPLETE.value
        else "Grades saved; some answers still await grading",
        score=attempt.score or 0,
        totalMarks=attempt.total_marks or 0,
        percentage=attempt.percentage or 0,
        autoGradedScore=attempt.auto_graded_score or 0,
        manuallyGradedScore=attempt.manually_graded_score or 0,
        gradingStatus=attempt.grading_status,
        grade=attempt.grade,
        breakdown=GradingBreakdown(**grading_service.grading_breakdown(attempt)),
    )


@router.post("/attempts/{attempt_id}/report", response_model=SendReportResponse)
def send_report(
    attempt_id: str,
    _: Annotated[Principal, Depends(require_instructor)],
    db: Annotated[DbSession, Depends(get_db)],
    payload: SendReportRequest | None = None,
) -> SendReportResponse:
    """Send the graded report to the student."""
    attempt = review_service.send_report(
        db,
        validate_id("attemptId", attempt_id),
        payload.message if payload else None,
    )
    return SendReportResponse(
        message="Report sent successfully to student",
        attemptId=attempt.id,
        studentId=attempt.student_id,
        score=attempt.score or 0,
        totalMarks=attempt.total_marks or 0,
        percentage=attempt.percentage or 0,
        reportSentAt=ensure_aware(attempt.report_sent_at),
    )
