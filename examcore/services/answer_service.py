"""Answer ledger: per-question answers of an attempt, keyed by question ID."""
import logging
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.orm.exc import StaleDataError

from examcore.errors import AnswerConflict, AttemptClosed, ConcurrentModification
from examcore.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus
from examcore.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def get_answer(db: DBSession, attempt_id: str, question_id: str) -> AttemptAnswer | None:
    return db.execute(
        select(AttemptAnswer).where(
            AttemptAnswer.attempt_id == attempt_id,
            AttemptAnswer.question_id == question_id,
        )
    ).scalar_one_or_none()


def list_answers(db: DBSession, attempt_id: str) -> list[AttemptAnswer]:
    """Get all answers for an attempt in first-save order."""
    return list(
        db.execute(
            select(AttemptAnswer)
            .where(AttemptAnswer.attempt_id == attempt_id)
            .order_by(AttemptAnswer.position, AttemptAnswer.id)
        ).scalars().all()
    )


def _next_position(db: DBSession, attempt_id: str) -> int:
    positions = db.execute(
        select(AttemptAnswer.position).where(AttemptAnswer.attempt_id == attempt_id)
    ).scalars().all()
    return max(positions) + 1 if positions else 0


def save_answer(
    db: DBSession,
    attempt: Attempt,
    question_id: str,
    answer: Any,
    time_spent: int = 0,
    base_revision: int | None = None,
) -> AttemptAnswer:
    """
    Upsert the answer for one question (last write wins).

    The attempt row is touched with a conditional UPDATE so that a save racing
    a submission either lands before the status flip (and makes the submit's
    version check fail) or is rejected with AttemptClosed. Saves for different
    questions never conflict with each other.

    Args:
        db: Database session
        attempt: Attempt being answered (any status; checked atomically here)
        question_id: Question being answered; not validated against the exam
        answer: Free-form answer value
        time_spent: Seconds spent since the previous save, accumulated
        base_revision: Revision the client last saw; mismatch raises AnswerConflict
    """
    now = utc_now()
    attempt_id = attempt.id

    result = db.execute(
        update(Attempt)
        .where(
            Attempt.id == attempt_id,
            Attempt.status == AttemptStatus.IN_PROGRESS.value,
        )
        .values(
            time_spent=Attempt.time_spent + time_spent,
            last_saved_at=now,
            version=Attempt.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise AttemptClosed()

    existing = get_answer(db, attempt_id, question_id)
    if existing is not None:
        if base_revision is not None and base_revision != existing.revision:
            db.rollback()
            raise AnswerConflict(
                f"Answer for question {question_id} is at revision "
                f"{existing.revision}, not {base_revision}"
            )
        existing.answer = answer
        existing.time_spent = existing.time_spent + time_spent
        existing.answered_at = now
        record = existing
    else:
        if base_revision:
            db.rollback()
            raise AnswerConflict(
                f"Answer for question {question_id} has not been saved yet"
            )
        record = AttemptAnswer(
            attempt_id=attempt_id,
            question_id=question_id,
            position=_next_position(db, attempt_id),
            time_spent=time_spent,
            answered_at=now,
        )
        record.answer = answer
        db.add(record)

    try:
        db.commit()
    except (IntegrityError, StaleDataError) as exc:
        # Another request saved the same question first
        db.rollback()
        logger.info(f"Concurrent save for attempt {attempt_id} question {question_id}: {exc}")
        raise ConcurrentModification() from exc

    db.refresh(record)
    return record


def replace_answers(
    attempt: Attempt,
    answers: Iterable[dict[str, Any]],
    answered_at: datetime,
) -> None:
    """
    Make the ledger match an explicit answer list (used by submit).

    Duplicate question IDs in the list: the last entry wins. Answers not in the
    list are removed. Nothing is committed here.
    """
    incoming: dict[str, dict[str, Any]] = {}
    for item in answers:
        incoming[item["questionId"]] = item

    existing = {record.question_id: record for record in attempt.answers}
    for question_id, record in existing.items():
        if question_id not in incoming:
            attempt.answers.remove(record)

    position = max((record.position for record in existing.values()), default=-1) + 1
    for question_id, item in incoming.items():
        time_spent = int(item.get("timeSpent") or 0)
        record = existing.get(question_id)
        if record is None:
            record = AttemptAnswer(
                question_id=question_id,
                position=position,
                time_spent=time_spent,
            )
            position += 1
            attempt.answers.append(record)
        else:
            # Client totals never shrink what the ledger already recorded
            record.time_spent = max(record.time_spent, time_spent)
        record.answer = item.get("answer")
        record.answered_at = answered_at
