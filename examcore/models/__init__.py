"""Pydantic models."""
from examcore.models.grading import (
    GradeRequest,
    GradeResponse,
    GradingBreakdown,
    ManualGrade,
    Pagination,
    SendReportRequest,
    SendReportResponse,
    SubmissionListResponse,
    SubmissionStats,
)
from examcore.models.sessions import (
    AnswersSummary,
    AnswerView,
    AttemptView,
    ExamSnapshot,
    QuestionSnapshot,
    SaveAnswerRequest,
    SaveAnswerResponse,
    SessionData,
    SessionResponse,
    StartSessionRequest,
    StartSessionResponse,
    SubmissionResult,
    SubmitRequest,
    SubmitResponse,
    SubmittedAnswer,
    ViolationReport,
    ViolationResponse,
    ViolationView,
)

__all__ = [
    "GradeRequest",
    "GradeResponse",
    "GradingBreakdown",
    "ManualGrade",
    "Pagination",
    "SendReportRequest",
    "SendReportResponse",
    "SubmissionListResponse",
    "SubmissionStats",
    "AnswersSummary",
    "AnswerView",
    "AttemptView",
    "ExamSnapshot",
    "QuestionSnapshot",
    "SaveAnswerRequest",
    "SaveAnswerResponse",
    "SessionData",
    "SessionResponse",
    "StartSessionRequest",
    "StartSessionResponse",
    "SubmissionResult",
    "SubmitRequest",
    "SubmitResponse",
    "SubmittedAnswer",
    "ViolationReport",
    "ViolationResponse",
    "ViolationView",
]
