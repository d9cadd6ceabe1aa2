"""Pydantic models for instructor grading endpoints."""
from datetime import datetime

from pydantic import BaseModel, Field

from examcore.models.sessions import AttemptView


class ManualGrade(BaseModel):
    """Score for one manually graded answer."""

    questionId: str = Field(..., min_length=1)
    score: int = Field(..., ge=0)
    feedback: str | None = None


class GradeRequest(BaseModel):
    gradedAnswers: list[ManualGrade] = Field(..., min_length=1)
    feedback: str | None = None


class GradingBreakdown(BaseModel):
    autoGraded: int
    manuallyGraded: int
    pendingManualGrading: int
    gradingStatus: str | None


class GradeResponse(BaseModel):
    message: str
    score: int
    totalMarks: int
    percentage: int
    autoGradedScore: int
    manuallyGradedScore: int
    gradingStatus: str
    grade: str | None
    breakdown: GradingBreakdown


class SendReportRequest(BaseModel):
    message: str | None = Field(None, max_length=2000)


class SendReportResponse(BaseModel):
    message: str
    attemptId: str
    studentId: str
    score: int
    totalMarks: int
    percentage: int
    reportSentAt: datetime


class SubmissionStats(BaseModel):
    total: int
    fullyGraded: int
    pendingGrading: int
    averageScore: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SubmissionListResponse(BaseModel):
    examId: str
    submissions: list[AttemptView]
    stats: SubmissionStats
    pagination: Pagination
