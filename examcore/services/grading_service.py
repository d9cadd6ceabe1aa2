"""
Grading engine and grading-status aggregation.

Submission grades every answer in the ledger once; the aggregate formulas in
``recompute_aggregate`` are shared by submission, re-submission and the
manual-grading path so their results never diverge.
"""
import logging
from typing import Any

from examcore.errors import QuestionUnresolvable
from examcore.models.db.attempt import (
    AnswerGradingStatus,
    Attempt,
    AttemptAnswer,
    GradingStatus,
)
from examcore.models.db.exam import Exam, Question
from examcore.services.exam_service import question_map, resolve_question
from examcore.utils.json_utils import json_dump

logger = logging.getLogger(__name__)

FEEDBACK_CORRECT = "Correct answer!"
FEEDBACK_PENDING = "Answer submitted. Awaiting instructor review."

# Lower bound of each letter band, highest first
GRADE_BANDS = (
    (95, "A+"),
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D+"),
    (40, "D"),
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def answers_match(given: Any, expected: Any) -> bool:
    """
    Exact, type-strict comparison: "true" does not match True, 1 does not match "1".
    Numbers compare by value, so 1.0 matches 1.
    """
    if _is_number(given) and _is_number(expected):
        return given == expected
    return type(given) is type(expected) and given == expected


def round_div(numerator: int, denominator: int) -> int:
    """Integer division rounded half up; 0 when ``denominator`` is 0."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def percentage_of(part: int, whole: int) -> int:
    """Whole-number percentage of ``part`` in ``whole``, rounded half up."""
    return round_div(part * 100, whole)


def letter_grade(percentage: int) -> str:
    for lower_bound, letter in GRADE_BANDS:
        if percentage >= lower_bound:
            return letter
    return "F"


def _display(value: Any) -> str:
    return value if isinstance(value, str) else json_dump(value)


def grade_answer(answer: AttemptAnswer, question: Question) -> AttemptAnswer:
    """Decorate one answer with its question snapshot and score."""
    answer.question_type = question.type
    answer.correct_answer = question.correct_answer
    answer.max_score = question.marks

    if question.is_auto_graded:
        if answers_match(answer.answer, question.correct_answer):
            answer.score = question.marks
            answer.feedback = FEEDBACK_CORRECT
        else:
            answer.score = 0
            answer.feedback = f"Incorrect. Correct answer: {_display(question.correct_answer)}"
        answer.grading_status = AnswerGradingStatus.AUTO_GRADED.value
    else:
        # short, long and any unknown type wait for a human
        answer.score = 0
        answer.feedback = FEEDBACK_PENDING
        answer.grading_status = AnswerGradingStatus.PENDING_MANUAL_GRADING.value
    return answer


def grade_ledger(attempt: Attempt, exam: Exam) -> list[AttemptAnswer]:
    """
    Grade every answer in the attempt's ledger against the exam.

    Answers whose question cannot be resolved are excluded from scoring and
    left undecorated; the rest of the submission still goes through.

    Returns:
        The answers that were graded.
    """
    questions = question_map(exam)
    graded = []
    for answer in attempt.answers:
        try:
            question = resolve_question(questions, answer.question_id, exam.id)
        except QuestionUnresolvable as exc:
            logger.warning(f"Excluding answer from attempt {attempt.id} scoring: {exc}")
            answer.clear_grading()
            continue
        graded.append(grade_answer(answer, question))
    return graded


def recompute_aggregate(attempt: Attempt) -> Attempt:
    """
    Recompute score, totals, percentage and grading status from the ledger.

    Only decorated answers count. Manual-only answers contribute their marks
    to ``pending_manual_marks`` until graded, then their score to ``score``.
    """
    total_marks = 0
    auto_score = 0
    manual_score = 0
    pending_marks = 0

    for answer in attempt.answers:
        if not answer.is_graded:
            continue
        max_score = answer.max_score or 0
        total_marks += max_score
        if answer.grading_status == AnswerGradingStatus.AUTO_GRADED.value:
            auto_score += answer.score or 0
        elif answer.grading_status == AnswerGradingStatus.MANUALLY_GRADED.value:
            manual_score += answer.score or 0
        else:
            pending_marks += max_score

    score = auto_score + manual_score
    attempt.total_marks = total_marks
    attempt.auto_graded_score = auto_score
    attempt.manually_graded_score = manual_score
    attempt.pending_manual_marks = pending_marks
    attempt.score = score
    attempt.percentage = percentage_of(score, total_marks)
    attempt.auto_graded_percentage = percentage_of(auto_score, total_marks)

    if pending_marks > 0:
        attempt.grading_status = GradingStatus.PARTIAL.value
        attempt.grade = None
    else:
        attempt.grading_status = GradingStatus.COMPLETE.value
        attempt.grade = letter_grade(attempt.percentage)
    return attempt


def grading_breakdown(attempt: Attempt) -> dict[str, Any]:
    """Count answers by per-answer grading status."""
    counts = {status.value: 0 for status in AnswerGradingStatus}
    for answer in attempt.answers:
        if answer.grading_status in counts:
            counts[answer.grading_status] += 1
    return {
        "autoGraded": counts[AnswerGradingStatus.AUTO_GRADED.value],
        "manuallyGraded": counts[AnswerGradingStatus.MANUALLY_GRADED.value],
        "pendingManualGrading": counts[AnswerGradingStatus.PENDING_MANUAL_GRADING.value],
        "gradingStatus": attempt.grading_status,
    }


def submission_message(attempt: Attempt, violation_count: int) -> str:
    message = "Exam submitted successfully!"
    if attempt.pending_manual_marks:
        message += (
            f" {attempt.pending_manual_marks} marks pending manual grading by instructor."
        )
    if violation_count > 0:
        message += f" {violation_count} violation(s) detected and reported to instructor."
    return message


def submission_result(attempt: Attempt, violation_count: int) -> dict[str, Any]:
    """Score summary returned by submit."""
    breakdown = grading_breakdown(attempt)
    return {
        "score": attempt.score or 0,
        "totalMarks": attempt.total_marks or 0,
        "percentage": attempt.percentage or 0,
        "autoGradedScore": attempt.auto_graded_score or 0,
        "autoGradedPercentage": attempt.auto_graded_percentage or 0,
        "pendingManualMarks": attempt.pending_manual_marks or 0,
        "status": attempt.status,
        "gradingStatus": attempt.grading_status,
        "grade": attempt.grade,
        "violations": violation_count,
        "answersSummary": {
            "total": sum(1 for answer in attempt.answers if answer.is_graded),
            "autoGraded": breakdown["autoGraded"],
            "pendingGrading": breakdown["pendingManualGrading"],
        },
    }
