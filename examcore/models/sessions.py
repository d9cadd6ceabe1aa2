"""Pydantic models for the student exam-session endpoints."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from examcore.models.db.attempt import ViolationSeverity


class SessionData(BaseModel):
    """Client metadata captured when a session starts."""

    ipAddress: str | None = Field(None, max_length=64)
    userAgent: str | None = Field(None, max_length=512)
    browserFingerprint: str | None = Field(None, max_length=255)


class StartSessionRequest(BaseModel):
    """Start (or resume) an exam session."""

    sessionData: SessionData | None = None


class QuestionSnapshot(BaseModel):
    """Question as shown to a student (no correct answer)."""

    id: str
    questionText: str
    type: str
    options: list[Any]
    marks: int


class ExamSnapshot(BaseModel):
    """Exam data delivered with a session."""

    id: str
    title: str
    subject: str | None
    duration: int | None
    totalMarks: int
    instructions: str
    questions: list[QuestionSnapshot]


class AnswerView(BaseModel):
    """Answer ledger entry, with grading decoration once submitted."""

    questionId: str
    answer: Any
    timeSpent: int
    answeredAt: datetime | None
    revision: int
    questionType: str | None = None
    correctAnswer: Any = None
    score: int | None = None
    maxScore: int | None = None
    gradingStatus: str | None = None
    feedback: str | None = None


class AttemptView(BaseModel):
    """Attempt state returned to clients."""

    id: str
    studentId: str
    examId: str
    status: str
    startedAt: datetime
    submittedAt: datetime | None
    gradedAt: datetime | None
    deadline: datetime | None
    timeSpent: int
    answers: list[AnswerView]
    violationCount: int
    score: int | None
    totalMarks: int | None
    percentage: int | None
    autoGradedScore: int | None
    pendingManualMarks: int | None
    gradingStatus: str | None
    grade: str | None


class StartSessionResponse(BaseModel):
    message: str
    resumed: bool
    session: AttemptView
    exam: ExamSnapshot


class SessionResponse(BaseModel):
    session: AttemptView
    exam: ExamSnapshot


class SaveAnswerRequest(BaseModel):
    """Save (or overwrite) the answer for one question."""

    questionId: str = Field(..., min_length=1)
    answer: Any = None
    timeSpent: int = Field(0, ge=0)
    baseRevision: int | None = Field(None, ge=0)


class SaveAnswerResponse(BaseModel):
    message: str
    questionId: str
    revision: int
    totalTimeSpent: int


class SubmittedAnswer(BaseModel):
    questionId: str = Field(..., min_length=1)
    answer: Any = None
    timeSpent: int = Field(0, ge=0)


class SubmitRequest(BaseModel):
    """Submit the attempt; omit ``answers`` to finalize what is saved."""

    answers: list[SubmittedAnswer] | None = None


class AnswersSummary(BaseModel):
    total: int
    autoGraded: int
    pendingGrading: int


class SubmissionResult(BaseModel):
    score: int
    totalMarks: int
    percentage: int
    autoGradedScore: int
    autoGradedPercentage: int
    pendingManualMarks: int
    status: str
    gradingStatus: str
    grade: str | None
    violations: int
    answersSummary: AnswersSummary


class SubmitResponse(BaseModel):
    message: str
    result: SubmissionResult


class ViolationReport(BaseModel):
    """Integrity event from the proctoring detector."""

    violationType: str = Field(..., min_length=1, max_length=64)
    description: str | None = None
    severity: ViolationSeverity | None = None
    timestamp: datetime | None = None


class ViolationResponse(BaseModel):
    message: str
    violationCount: int


class ViolationView(BaseModel):
    id: int
    type: str
    description: str
    severity: str
    timestamp: datetime
