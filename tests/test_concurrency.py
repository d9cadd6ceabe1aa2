import pytest

from examcore.errors import AttemptClosed, ConcurrentModification
from examcore.models.db.attempt import AttemptStatus
from examcore.services import answer_service, attempt_service, grading_service, violation_service


@pytest.fixture
def two_sessions(session_factory):
    first, second = session_factory(), session_factory()
    yield first, second
    first.close()
    second.close()


def test_saves_for_different_questions_commute(two_sessions, make_exam) -> None:
    exam = make_exam()
    mcq, tf = exam.questions[0].id, exam.questions[1].id
    first, second = two_sessions
    attempt_service.start_attempt(first, "student-1", exam.id)

    attempt_a = attempt_service.require_attempt(first, "student-1", exam.id)
    attempt_b = attempt_service.require_attempt(second, "student-1", exam.id)
    answer_service.save_answer(first, attempt_a, mcq, "4", 10)
    answer_service.save_answer(second, attempt_b, tf, False, 15)

    first.expire_all()
    attempt = attempt_service.require_attempt(first, "student-1", exam.id)
    assert {a.question_id: a.answer for a in attempt.answers} == {mcq: "4", tf: False}
    assert attempt.time_spent == 25


def test_save_landing_during_submit_fails_the_submit(two_sessions, make_exam, monkeypatch) -> None:
    exam = make_exam()
    mcq, tf = exam.questions[0].id, exam.questions[1].id
    first, second = two_sessions
    attempt_service.start_attempt(first, "student-1", exam.id)
    attempt_service.save_answer(first, "student-1", exam.id, mcq, "4")

    real_grade_ledger = grading_service.grade_ledger

    def grade_after_concurrent_save(attempt, exam_):
        # Another tab saves between the submit's read and its write
        attempt_service.save_answer(second, "student-1", exam.id, tf, False)
        return real_grade_ledger(attempt, exam_)

    monkeypatch.setattr(grading_service, "grade_ledger", grade_after_concurrent_save)
    with pytest.raises(ConcurrentModification) as excinfo:
        attempt_service.submit_attempt(first, "student-1", exam.id)
    assert excinfo.value.retryable is True
    assert excinfo.value.status_code == 409

    monkeypatch.setattr(grading_service, "grade_ledger", real_grade_ledger)
    first.expire_all()
    assert attempt_service.require_attempt(first, "student-1", exam.id).status == (
        AttemptStatus.IN_PROGRESS.value
    )

    # Retrying the submit grades both answers
    submitted = attempt_service.submit_attempt(first, "student-1", exam.id)
    assert submitted.status == AttemptStatus.COMPLETED.value
    assert submitted.score == 3


def test_stale_attempt_write_is_rejected(two_sessions, make_exam) -> None:
    exam = make_exam()
    first, second = two_sessions
    attempt_service.start_attempt(first, "student-1", exam.id)

    stale = attempt_service.require_attempt(first, "student-1", exam.id)
    fresh = attempt_service.require_attempt(second, "student-1", exam.id)
    fresh.instructor_feedback = "written elsewhere"
    attempt_service.commit_attempt(second, fresh)

    stale.instructor_feedback = "overwrites"
    with pytest.raises(ConcurrentModification):
        attempt_service.commit_attempt(first, stale)


def test_save_after_concurrent_submit_is_closed(two_sessions, make_exam) -> None:
    exam = make_exam()
    mcq = exam.questions[0].id
    first, second = two_sessions
    attempt_service.start_attempt(first, "student-1", exam.id)

    # Second tab read the attempt while it was still open
    stale = attempt_service.require_attempt(second, "student-1", exam.id)
    attempt_service.submit_attempt(first, "student-1", exam.id)

    with pytest.raises(AttemptClosed):
        answer_service.save_answer(second, stale, mcq, "4")


def test_violation_during_submit_does_not_conflict(two_sessions, make_exam, monkeypatch) -> None:
    exam = make_exam()
    first, second = two_sessions
    attempt, _, _ = attempt_service.start_attempt(first, "student-1", exam.id)
    attempt_id = attempt.id

    real_grade_ledger = grading_service.grade_ledger

    def grade_after_violation(attempt_, exam_):
        violation_service.report_violation(second, "student-1", exam.id, "tab_switch")
        return real_grade_ledger(attempt_, exam_)

    monkeypatch.setattr(grading_service, "grade_ledger", grade_after_violation)
    submitted = attempt_service.submit_attempt(first, "student-1", exam.id)

    assert submitted.status == AttemptStatus.COMPLETED.value
    assert violation_service.count_violations(first, attempt_id) == 1
