from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from examcore.routes import sessions as session_routes
from examcore.services.auth_service import ROLE_ADMIN, ROLE_STUDENT


def _session_url(exam_id: str, suffix: str = "") -> str:
    return f"/api/exams/{exam_id}/session{suffix}"


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requires_token(client, make_exam) -> None:
    exam = make_exam()
    assert client.post(_session_url(exam.id, "/start")).status_code == 401

    response = client.post(
        _session_url(exam.id, "/start"), headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_role_checks(client, make_exam, student_headers, instructor_headers) -> None:
    exam = make_exam()
    assert client.post(_session_url(exam.id, "/start"), headers=instructor_headers).status_code == 403
    assert client.get(
        f"/api/grading/exams/{exam.id}/submissions", headers=student_headers
    ).status_code == 403


def test_start_and_resume(client, make_exam, student_headers) -> None:
    exam = make_exam(instructions=None)

    response = client.post(
        _session_url(exam.id, "/start"),
        json={"sessionData": {"browserFingerprint": "fp-123"}},
        headers=student_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["resumed"] is False
    assert body["message"] == "Exam session started"
    assert body["session"]["status"] == "in_progress"
    assert body["session"]["deadline"] is not None
    assert body["exam"]["instructions"] == "Please read all questions carefully before answering."
    assert [q["type"] for q in body["exam"]["questions"]] == ["mcq", "truefalse", "short", "long"]
    assert all("correctAnswer" not in q for q in body["exam"]["questions"])

    again = client.post(_session_url(exam.id, "/start"), headers=student_headers).json()
    assert again["resumed"] is True
    assert again["session"]["id"] == body["session"]["id"]
    assert again["session"]["startedAt"] == body["session"]["startedAt"]


def test_start_errors(client, make_exam, student_headers) -> None:
    response = client.post(_session_url("missing", "/start"), headers=student_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "exam_not_found"

    draft = make_exam(status="draft")
    response = client.post(_session_url(draft.id, "/start"), headers=student_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "exam_unavailable"

    response = client.post(_session_url("x" * 65, "/start"), headers=student_headers)
    assert response.status_code == 400


def test_get_session_without_start(client, make_exam, student_headers) -> None:
    exam = make_exam()
    response = client.get(_session_url(exam.id), headers=student_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "no_active_session"


def test_save_answer_flow(client, make_exam, student_headers) -> None:
    exam = make_exam()
    mcq = exam.questions[0].id
    client.post(_session_url(exam.id, "/start"), headers=student_headers)

    saved = client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": mcq, "answer": "3", "timeSpent": 20},
        headers=student_headers,
    )
    assert saved.status_code == 200
    assert saved.json() == {
        "message": "Answer saved successfully",
        "questionId": mcq,
        "revision": 1,
        "totalTimeSpent": 20,
    }

    overwritten = client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": mcq, "answer": "4", "timeSpent": 5, "baseRevision": 1},
        headers=student_headers,
    ).json()
    assert overwritten["revision"] == 2
    assert overwritten["totalTimeSpent"] == 25

    stale = client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": mcq, "answer": "5", "baseRevision": 1},
        headers=student_headers,
    )
    assert stale.status_code == 409
    assert stale.json()["detail"]["code"] == "answer_conflict"

    session = client.get(_session_url(exam.id), headers=student_headers).json()["session"]
    assert len(session["answers"]) == 1
    assert session["answers"][0]["answer"] == "4"
    assert session["answers"][0]["correctAnswer"] is None


def test_save_answer_validation(client, make_exam, student_headers) -> None:
    exam = make_exam()
    client.post(_session_url(exam.id, "/start"), headers=student_headers)

    response = client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": exam.questions[0].id, "answer": "4", "timeSpent": -1},
        headers=student_headers,
    )
    assert response.status_code == 422


def test_submit_flow(client, make_exam, student_headers) -> None:
    exam = make_exam()
    mcq, tf, short, _ = (q.id for q in exam.questions)
    client.post(_session_url(exam.id, "/start"), headers=student_headers)
    client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": mcq, "answer": "4"},
        headers=student_headers,
    )
    client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "tab_switch", "severity": "high"},
        headers=student_headers,
    )

    response = client.post(
        _session_url(exam.id, "/submit"),
        json={
            "answers": [
                {"questionId": mcq, "answer": "4"},
                {"questionId": tf, "answer": False},
                {"questionId": short, "answer": "An explanation"},
            ]
        },
        headers=student_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["result"] == {
        "score": 3,
        "totalMarks": 6,
        "percentage": 50,
        "autoGradedScore": 3,
        "autoGradedPercentage": 50,
        "pendingManualMarks": 3,
        "status": "completed",
        "gradingStatus": "partial",
        "grade": None,
        "violations": 1,
        "answersSummary": {"total": 3, "autoGraded": 2, "pendingGrading": 1},
    }
    assert "1 violation(s)" in body["message"]

    again = client.post(_session_url(exam.id, "/submit"), headers=student_headers).json()
    assert again["result"] == body["result"]

    closed = client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": mcq, "answer": "5"},
        headers=student_headers,
    )
    assert closed.status_code == 409
    assert closed.json()["detail"]["code"] == "attempt_closed"

    assert client.get(_session_url(exam.id), headers=student_headers).status_code == 409


def test_violation_report(client, make_exam, student_headers) -> None:
    exam = make_exam()
    response = client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "tab_switch"},
        headers=student_headers,
    )
    assert response.status_code == 404

    client.post(_session_url(exam.id, "/start"), headers=student_headers)
    for expected in (1, 2):
        response = client.post(
            _session_url(exam.id, "/violation"),
            json={"violationType": "tab_switch", "description": "Left the page"},
            headers=student_headers,
        )
        assert response.status_code == 200
        assert response.json() == {
            "message": "Violation reported successfully",
            "violationCount": expected,
        }

    bad = client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "tab_switch", "severity": "extreme"},
        headers=student_headers,
    )
    assert bad.status_code == 422


def test_instructor_grading_flow(client, make_exam, student_headers, instructor_headers) -> None:
    exam = make_exam()
    mcq, _, short, long_ = (q.id for q in exam.questions)
    client.post(_session_url(exam.id, "/start"), headers=student_headers)
    for question_id, answer in ((mcq, "4"), (short, "short"), (long_, "long")):
        client.patch(
            _session_url(exam.id, "/answer"),
            json={"questionId": question_id, "answer": answer},
            headers=student_headers,
        )
    client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "copy_paste"},
        headers=student_headers,
    )
    client.post(_session_url(exam.id, "/submit"), headers=student_headers)

    listing = client.get(
        f"/api/grading/exams/{exam.id}/submissions", headers=instructor_headers
    ).json()
    assert listing["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert listing["stats"]["pendingGrading"] == 1
    attempt_id = listing["submissions"][0]["id"]

    detail = client.get(f"/api/grading/attempts/{attempt_id}", headers=instructor_headers).json()
    assert detail["answers"][0]["correctAnswer"] == "4"
    assert detail["violationCount"] == 1

    breakdown = client.get(
        f"/api/grading/attempts/{attempt_id}/breakdown", headers=instructor_headers
    ).json()
    assert breakdown == {
        "autoGraded": 1,
        "manuallyGraded": 0,
        "pendingManualGrading": 2,
        "gradingStatus": "partial",
    }

    violations = client.get(
        f"/api/grading/attempts/{attempt_id}/violations", headers=instructor_headers
    ).json()
    assert [v["type"] for v in violations] == ["copy_paste"]
    assert violations[0]["severity"] == "medium"

    early_report = client.post(
        f"/api/grading/attempts/{attempt_id}/report", headers=instructor_headers
    )
    assert early_report.status_code == 400
    assert early_report.json()["detail"]["code"] == "grading_incomplete"

    over_max = client.post(
        f"/api/grading/attempts/{attempt_id}/grade",
        json={"gradedAnswers": [{"questionId": short, "score": 4}]},
        headers=instructor_headers,
    )
    assert over_max.status_code == 400
    assert over_max.json()["detail"]["code"] == "invalid_grade_target"

    graded = client.post(
        f"/api/grading/attempts/{attempt_id}/grade",
        json={
            "gradedAnswers": [
                {"questionId": short, "score": 3, "feedback": "Good"},
                {"questionId": long_, "score": 2},
            ],
            "feedback": "Solid attempt",
        },
        headers=instructor_headers,
    )
    assert graded.status_code == 200
    body = graded.json()
    assert body["message"] == "Grading completed successfully"
    assert body["score"] == 7
    assert body["totalMarks"] == 9
    assert body["percentage"] == 78
    assert body["grade"] == "B"
    assert body["gradingStatus"] == "complete"

    report = client.post(
        f"/api/grading/attempts/{attempt_id}/report",
        json={"message": "See feedback"},
        headers=instructor_headers,
    )
    assert report.status_code == 200
    assert report.json()["studentId"] == "student-1"
    assert report.json()["reportSentAt"] is not None


def test_admin_can_read_grading(client, make_exam, make_headers) -> None:
    exam = make_exam()
    response = client.get(
        f"/api/grading/exams/{exam.id}/submissions", headers=make_headers("root", ROLE_ADMIN)
    )
    assert response.status_code == 200
    assert response.json()["submissions"] == []


def test_unknown_attempt(client, instructor_headers) -> None:
    response = client.get("/api/grading/attempts/missing", headers=instructor_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "attempt_not_found"


def test_storage_failure_maps_to_503(client, make_exam, make_headers, monkeypatch) -> None:
    exam = make_exam()

    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session_routes.attempt_service, "get_session", unavailable)
    response = client.get(_session_url(exam.id), headers=make_headers("student-9", ROLE_STUDENT))

    assert response.status_code == 503
    assert response.json()["detail"]["retryable"] is True
    assert "disk" not in response.text


@pytest.mark.parametrize("path", ["/submit", "/violation"])
def test_student_routes_validate_exam_id(client, student_headers, path) -> None:
    response = client.post(
        _session_url("x" * 80, path), json={"violationType": "t"}, headers=student_headers
    )
    assert response.status_code == 400


def _instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_violation_timestamps_keep_their_instant(
    client, make_exam, student_headers, instructor_headers
) -> None:
    exam = make_exam()
    attempt_id = client.post(
        _session_url(exam.id, "/start"), headers=student_headers
    ).json()["session"]["id"]
    client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "later", "timestamp": "2026-01-01T06:00:00Z"},
        headers=student_headers,
    )
    client.post(
        _session_url(exam.id, "/violation"),
        json={"violationType": "earlier", "timestamp": "2026-01-01T10:00:00+05:00"},
        headers=student_headers,
    )

    violations = client.get(
        f"/api/grading/attempts/{attempt_id}/violations", headers=instructor_headers
    ).json()

    assert [v["type"] for v in violations] == ["earlier", "later"]
    assert _instant(violations[0]["timestamp"]) == datetime(2026, 1, 1, 5, 0, tzinfo=timezone.utc)
    assert _instant(violations[1]["timestamp"]) == datetime(2026, 1, 1, 6, 0, tzinfo=timezone.utc)


def test_session_timestamps_are_explicit_utc(client, make_exam, student_headers) -> None:
    exam = make_exam()
    client.post(_session_url(exam.id, "/start"), headers=student_headers)
    client.patch(
        _session_url(exam.id, "/answer"),
        json={"questionId": exam.questions[0].id, "answer": "4"},
        headers=student_headers,
    )

    session = client.get(_session_url(exam.id), headers=student_headers).json()["session"]

    started_at = _instant(session["startedAt"])
    assert started_at.utcoffset() == timedelta(0)
    assert _instant(session["answers"][0]["answeredAt"]).utcoffset() == timedelta(0)
    assert _instant(session["deadline"]) - started_at == timedelta(minutes=60, seconds=60)
