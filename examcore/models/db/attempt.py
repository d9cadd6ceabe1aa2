"""
Attempt, AttemptAnswer and AttemptViolation database models.

One Attempt row exists per (student, exam). Answers and violations are child
rows owned exclusively by their attempt.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examcore.database import Base
from examcore.utils.json_utils import json_dump, json_load

if TYPE_CHECKING:
    from examcore.models.db.exam import Exam


class AttemptStatus(str, enum.Enum):
    """Lifecycle of an attempt. ``not_started`` means no row exists yet."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class GradingStatus(str, enum.Enum):
    """Attempt-level grading status."""

    COMPLETE = "complete"
    PARTIAL = "partial"


class AnswerGradingStatus(str, enum.Enum):
    """Per-answer grading status."""

    AUTO_GRADED = "auto_graded"
    PENDING_MANUAL_GRADING = "pending_manual_grading"
    MANUALLY_GRADED = "manually_graded"


class ViolationSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Attempt(Base):
    """
    A student's single attempt at an exam.
    Holds lifecycle state, timing and the aggregate grade.
    """

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )

    # References
    student_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    exam_id: Mapped[str] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20), default=AttemptStatus.IN_PROGRESS.value, nullable=False, index=True
    )
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, nullable=False
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    graded_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    last_saved_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    time_spent: Mapped[int] = mapped_column(default=0, nullable=False)  # seconds

    # Results (populated at submission)
    score: Mapped[int | None] = mapped_column(nullable=True)
    total_marks: Mapped[int | None] = mapped_column(nullable=True)
    percentage: Mapped[int | None] = mapped_column(nullable=True)
    auto_graded_score: Mapped[int | None] = mapped_column(nullable=True)
    auto_graded_percentage: Mapped[int | None] = mapped_column(nullable=True)
    manually_graded_score: Mapped[int | None] = mapped_column(nullable=True)
    pending_manual_marks: Mapped[int | None] = mapped_column(nullable=True)
    grading_status: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    grade: Mapped[str | None] = mapped_column(String(4), nullable=True)

    # Manual grading and reporting
    instructor_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    report_sent: Mapped[bool] = mapped_column(default=False, nullable=False)
    report_sent_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # Session metadata captured at start
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    browser_fingerprint: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Optimistic lock; every UPDATE of this row checks and bumps it
    version: Mapped[int] = mapped_column(default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("student_id", "exam_id", name="uq_attempt_student_exam"),
    )
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    exam: Mapped["Exam"] = relationship("Exam")
    answers: Mapped[list["AttemptAnswer"]] = relationship(
        "AttemptAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by=lambda: [AttemptAnswer.position, AttemptAnswer.id],
    )
    violations: Mapped[list["AttemptViolation"]] = relationship(
        "AttemptViolation",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by=lambda: [AttemptViolation.timestamp, AttemptViolation.id],
    )

    @property
    def is_completed(self) -> bool:
        """Check if attempt is completed."""
        return self.status == AttemptStatus.COMPLETED.value


class AttemptAnswer(Base):
    """
    One answer in the ledger of an attempt, unique per question.
    Grading fields stay empty until the attempt is submitted.
    """

    __tablename__ = "attempt_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[int] = mapped_column(default=0, nullable=False)  # First-save order

    answer_json: Mapped[str] = mapped_column(Text, default="null", nullable=False)
    time_spent: Mapped[int] = mapped_column(default=0, nullable=False)  # seconds
    answered_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    # Per-question write counter, also the optimistic lock for this row
    revision: Mapped[int] = mapped_column(nullable=False)

    # Grading decoration
    question_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    correct_answer_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[int | None] = mapped_column(nullable=True)
    max_score: Mapped[int | None] = mapped_column(nullable=True)
    grading_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_answer_question"),
    )
    __mapper_args__ = {"version_id_col": revision}

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="answers")

    @property
    def answer(self) -> Any:
        """Parse the stored answer (option, boolean or text)."""
        return json_load(self.answer_json)

    @answer.setter
    def answer(self, value: Any) -> None:
        self.answer_json = json_dump(value)

    @property
    def correct_answer(self) -> Any:
        return json_load(self.correct_answer_json)

    @correct_answer.setter
    def correct_answer(self, value: Any) -> None:
        self.correct_answer_json = json_dump(value)

    @property
    def is_graded(self) -> bool:
        return self.grading_status is not None

    def clear_grading(self) -> None:
        """Drop any grading decoration (answer excluded from scoring)."""
        self.question_type = None
        self.correct_answer_json = None
        self.score = None
        self.max_score = None
        self.grading_status = None
        self.feedback = None


class AttemptViolation(Base):
    """
    Proctoring integrity event. Rows are only ever inserted.
    """

    __tablename__ = "attempt_violations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(
        String(10), default=ViolationSeverity.MEDIUM.value, nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, nullable=False
    )
    recorded_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, nullable=False
    )

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="violations")
