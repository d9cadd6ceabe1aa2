"""
Exam and Question database models.

These rows are owned by the exam-authoring side of the product; the attempt
engine only reads them as snapshots at start and submit time.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examcore.database import Base
from examcore.utils.json_utils import json_dump, json_load


class ExamStatus(str, enum.Enum):
    """Publishing state of an exam."""

    DRAFT = "draft"
    PUBLISHED = "published"  # Only published exams can be started
    ARCHIVED = "archived"


class QuestionType(str, enum.Enum):
    """Known question types."""

    MCQ = "mcq"
    TRUE_FALSE = "truefalse"
    SHORT = "short"
    LONG = "long"


AUTO_GRADED_TYPES = frozenset({QuestionType.MCQ.value, QuestionType.TRUE_FALSE.value})


def _new_id() -> str:
    return uuid.uuid4().hex


class Exam(Base):
    """Exam definition (read-only for the attempt engine)."""

    __tablename__ = "exams"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ExamStatus.DRAFT.value, nullable=False, index=True
    )
    duration: Mapped[int | None] = mapped_column(nullable=True)  # minutes
    total_marks: Mapped[int] = mapped_column(default=0, nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )

    @property
    def is_published(self) -> bool:
        return self.status == ExamStatus.PUBLISHED.value


class Question(Base):
    """Question belonging to an exam."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    exam_id: Mapped[str] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    marks: Mapped[int] = mapped_column(default=1, nullable=False)

    # Stored as JSON: options list, and the correct answer as the client sends it
    options_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_answer_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="questions")

    @property
    def options(self) -> list[Any]:
        """Parse options from JSON."""
        value = json_load(self.options_json, [])
        return value if isinstance(value, list) else []

    @options.setter
    def options(self, value: list[Any] | None) -> None:
        self.options_json = json_dump(value) if value else None

    @property
    def correct_answer(self) -> Any:
        return json_load(self.correct_answer_json)

    @correct_answer.setter
    def correct_answer(self, value: Any) -> None:
        # False and "" are legitimate correct answers, so always serialize
        self.correct_answer_json = json_dump(value)

    @property
    def is_auto_graded(self) -> bool:
        return self.type in AUTO_GRADED_TYPES
