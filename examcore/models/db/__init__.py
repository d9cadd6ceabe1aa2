"""Database models."""
from examcore.models.db.exam import AUTO_GRADED_TYPES, Exam, ExamStatus, Question, QuestionType
from examcore.models.db.attempt import (
    AnswerGradingStatus,
    Attempt,
    AttemptAnswer,
    AttemptStatus,
    AttemptViolation,
    GradingStatus,
    ViolationSeverity,
)

__all__ = [
    "AUTO_GRADED_TYPES",
    "Exam",
    "ExamStatus",
    "Question",
    "QuestionType",
    "AnswerGradingStatus",
    "Attempt",
    "AttemptAnswer",
    "AttemptStatus",
    "AttemptViolation",
    "GradingStatus",
    "ViolationSeverity",
]
