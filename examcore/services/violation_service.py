"""Append-only log of proctoring integrity events."""
import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession

from examcore.errors import NoActiveSession
from examcore.models.db.attempt import Attempt, AttemptViolation, ViolationSeverity
from examcore.utils.time_utils import ensure_aware, utc_now

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Proctoring violation detected"


def _attempt_id_for(db: DBSession, student_id: str, exam_id: str) -> str | None:
    return db.execute(
        select(Attempt.id).where(
            Attempt.student_id == student_id, Attempt.exam_id == exam_id
        )
    ).scalar_one_or_none()


def report_violation(
    db: DBSession,
    student_id: str,
    exam_id: str,
    violation_type: str,
    description: str | None = None,
    severity: str | None = None,
    timestamp: datetime | None = None,
) -> tuple[AttemptViolation, int]:
    """
    Append a violation to the student's attempt.

    Accepted for in-progress and completed attempts alike, since reports can
    race the submission. Only inserts a child row, so it never conflicts with
    a concurrent submit.

    Returns:
        Tuple of (violation, running violation count)
    """
    attempt_id = _attempt_id_for(db, student_id, exam_id)
    if attempt_id is None:
        raise NoActiveSession()

    now = utc_now()
    violation = AttemptViolation(
        attempt_id=attempt_id,
        type=violation_type,
        description=description or DEFAULT_DESCRIPTION,
        severity=ViolationSeverity(severity or ViolationSeverity.MEDIUM).value,
        timestamp=ensure_aware(timestamp) or now,
        recorded_at=now,
    )
    db.add(violation)
    db.commit()
    db.refresh(violation)

    count = count_violations(db, attempt_id)
    logger.info(
        f"Violation '{violation_type}' ({violation.severity}) on attempt {attempt_id}; "
        f"{count} total"
    )
    return violation, count


def list_violations(db: DBSession, attempt_id: str) -> list[AttemptViolation]:
    """Get all violations for an attempt in timestamp order."""
    return list(
        db.execute(
            select(AttemptViolation)
            .where(AttemptViolation.attempt_id == attempt_id)
            .order_by(AttemptViolation.timestamp, AttemptViolation.id)
        ).scalars().all()
    )


def count_violations(db: DBSession, attempt_id: str) -> int:
    return db.execute(
        select(func.count(AttemptViolation.id)).where(
            AttemptViolation.attempt_id == attempt_id
        )
    ).scalar() or 0
