"""Student exam-session endpoints: start, session, answer, submit, violation."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session as DbSession

from examcore.database import get_db
from examcore.dependencies.auth import Principal, require_student
from examcore.models.db.attempt import Attempt
from examcore.models.db.exam import Exam
from examcore.models.sessions import (
    AnswerView,
    AttemptView,
    SaveAnswerRequest,
    SaveAnswerResponse,
    SessionResponse,
    StartSessionRequest,
    StartSessionResponse,
    SubmitRequest,
    SubmitResponse,
    ViolationReport,
    ViolationResponse,
)
from examcore.services import attempt_service, grading_service, violation_service
from examcore.services.exam_service import exam_snapshot
from examcore.utils import ensure_aware, validate_id

router = APIRouter(prefix="/api/exams/{exam_id}/session", tags=["sessions"])


def attempt_view(attempt: Attempt, exam: Exam, violation_count: int) -> AttemptView:
    """Convert an Attempt with its ledger to the API view."""
    return AttemptView(
        id=attempt.id,
        studentId=attempt.student_id,
        examId=attempt.exam_id,
        status=attempt.status,
        startedAt=ensure_aware(attempt.started_at),
        submittedAt=ensure_aware(attempt.submitted_at),
        gradedAt=ensure_aware(attempt.graded_at),
        deadline=attempt_service.deadline_for(attempt, exam),
        timeSpent=attempt.time_spent,
        answers=[
            AnswerView(
                questionId=answer.question_id,
                answer=answer.answer,
                timeSpent=answer.time_spent,
                answeredAt=ensure_aware(answer.answered_at),
                revision=answer.revision,
                questionType=answer.question_type,
                correctAnswer=answer.correct_answer if answer.is_graded else None,
                score=answer.score,
                maxScore=answer.max_score,
                gradingStatus=answer.grading_status,
                feedback=answer.feedback,
            )
            for answer in attempt.answers
        ],
        violationCount=violation_count,
        score=attempt.score,
        totalMarks=attempt.total_marks,
        percentage=attempt.percentage,
        autoGradedScore=attempt.auto_graded_score,
        pendingManualMarks=attempt.pending_manual_marks,
        gradingStatus=attempt.grading_status,
        grade=attempt.grade,
    )


@router.post("/start", response_model=StartSessionResponse)
def start_session(
    exam_id: str,
    request: Request,
    principal: Annotated[Principal, Depends(require_student)],
    db: Annotated[DbSession, Depends(get_db)],
    payload: StartSessionRequest | None = None,
) -> StartSessionResponse:
    """Start the exam, or resume the session already in progress."""
    exam_id = validate_id("examId", exam_id)

    session_data = {}
    if payload and payload.sessionData:
        session_data = payload.sessionData.model_dump(exclude_none=True)
    if request.client and "ipAddress" not in session_data:
        session_data["ipAddress"] = request.client.host
    if "userAgent" not in session_data and request.headers.get("user-agent"):
        session_data["userAgent"] = request.headers["user-agent"][:512]

    attempt, resumed, exam = attempt_service.start_attempt(
        db, principal.user_id, exam_id, session_data
    )
    violation_count = violation_service.count_violations(db, attempt.id)

    return StartSessionResponse(
        message="Resuming existing session" if resumed else "Exam session started",
        resumed=resumed,
        session=attempt_view(attempt, exam, violation_count),
        exam=exam_snapshot(exam),
    )


@router.get("", response_model=SessionResponse)
def get_session(
    exam_id: str,
    principal: Annotated[Principal, Depends(require_student)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SessionResponse:
    """Get the in-progress session with the exam's questions."""
    exam_id = validate_id("examId", exam_id)
    attempt, exam = attempt_service.get_session(db, principal.user_id, exam_id)
    violation_count = violation_service.count_violations(db, attempt.id)
    return SessionResponse(
        session=attempt_view(attempt, exam, violation_count),
        exam=exam_snapshot(exam),
    )


@router.patch("/answer", response_model=SaveAnswerResponse)
def save_answer(
    exam_id: str,
    payload: SaveAnswerRequest,
    principal: Annotated[Principal, Depends(require_student)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SaveAnswerResponse:
    """Save or overwrite the answer to one question."""
    exam_id = validate_id("examId", exam_id)
    question_id = validate_id("questionId", payload.questionId)

    record, attempt = attempt_service.save_answer(
        db,
        principal.user_id,
        exam_id,
        question_id,
        payload.answer,
        payload.timeSpent,
        payload.baseRevision,
    )
    return SaveAnswerResponse(
        message="Answer saved successfully",
        questionId=record.question_id,
        revision=record.revision,
        totalTimeSpent=attempt.time_spent,
    )


@router.post("/submit", response_model=SubmitResponse)
def submit_exam(
    exam_id: str,
    principal: Annotated[Principal, Depends(require_student)],
    db: Annotated[DbSession, Depends(get_db)],
    payload: SubmitRequest | None = None,
) -> SubmitResponse:
    """Submit the attempt and return the (possibly partial) score."""
    exam_id = validate_id("examId", exam_id)

    answers = None
    if payload and payload.answers:
        answers = [item.model_dump() for item in payload.answers]

    attempt = attempt_service.submit_attempt(db, principal.user_id, exam_id, answers)
    violation_count = violation_service.count_violations(db, attempt.id)

    return SubmitResponse(
        message=grading_service.submission_message(attempt, violation_count),
        result=grading_service.submission_result(attempt, violation_count),
    )


@router.post("/violation", response_model=ViolationResponse)
def report_violation(
    exam_id: str,
    payload: ViolationReport,
    principal: Annotated[Principal, Depends(require_student)],
    db: Annotated[DbSession, Depends(get_db)],
) -> ViolationResponse:
    """Record a proctoring violation against the student's attempt."""
    exam_id = validate_id("examId", exam_id)
    _, count = violation_service.report_violation(
        db,
        principal.user_id,
        exam_id,
        payload.violationType,
        payload.description,
        payload.severity.value if payload.severity else None,
        payload.timestamp,
    )
    return ViolationResponse(message="Violation reported successfully", violationCount=count)
