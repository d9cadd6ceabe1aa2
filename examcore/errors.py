"""Domain errors for the attempt lifecycle and grading engine.

User-facing state violations are ``HTTPException`` subclasses so services can
raise them directly and FastAPI renders them without extra plumbing. Each one
carries a stable ``code`` that clients can switch on instead of parsing the
message.
"""
from fastapi import HTTPException, status


class ExamError(HTTPException):
    """Base class for exam-attempt errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "exam_error"
    message: str = "Exam request failed"
    retryable: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(
            status_code=self.status_code,
            detail={
                "code": self.code,
                "message": self.message,
                "retryable": self.retryable,
            },
        )


class ExamNotFound(ExamError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "exam_not_found"
    message = "Exam not found"


class ExamUnavailable(ExamError):
    """Start called against an exam that is not published."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "exam_unavailable"
    message = "Exam is not available"


class AlreadySubmitted(ExamError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_submitted"
    message = "Exam has already been submitted"


class NoActiveSession(ExamError):
    """No attempt on record for the (student, exam) pair."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "no_active_session"
    message = "No active session found. Please restart the exam."


class AttemptClosed(ExamError):
    """Answer saved after the attempt was submitted."""

    status_code = status.HTTP_409_CONFLICT
    code = "attempt_closed"
    message = "Attempt is closed; answers can no longer be changed"


class AttemptDeadlinePassed(ExamError):
    status_code = status.HTTP_409_CONFLICT
    code = "attempt_deadline_passed"
    message = "Time for this exam has run out. Please submit your attempt."


class AnswerConflict(ExamError):
    """Per-question revision check failed (answer edited elsewhere)."""

    status_code = status.HTTP_409_CONFLICT
    code = "answer_conflict"
    message = "Answer was changed in another session"


class ConcurrentModification(ExamError):
    """Attempt row changed between read and write."""

    status_code = status.HTTP_409_CONFLICT
    code = "concurrent_modification"
    message = "Attempt was modified concurrently, please retry"
    retryable = True


class AttemptNotFound(ExamError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "attempt_not_found"
    message = "Submission not found"


class AttemptNotSubmitted(ExamError):
    status_code = status.HTTP_409_CONFLICT
    code = "attempt_not_submitted"
    message = "Attempt has not been submitted yet"


class InvalidGradeTarget(ExamError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_grade_target"
    message = "Grade does not target a manually graded answer"


class GradingIncomplete(ExamError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "grading_incomplete"
    message = "Cannot send report for incomplete grading. Please complete grading first."


class QuestionUnresolvable(Exception):
    """A stored answer refers to a question the exam no longer has.

    Internal and non-fatal: grading logs it and excludes the answer.
    """

    def __init__(self, question_id: str, exam_id: str) -> None:
        self.question_id = question_id
        self.exam_id = exam_id
        super().__init__(f"Question {question_id} not found in exam {exam_id}")
