"""Quiz reconciliation job: closes attempts nobody closed in time.

Three idempotent sweeps, each row in its own transaction:

1. ``in_progress`` attempts past their deadline on auto-submit quizzes are
   auto-submitted from their autosaved draft and graded.
2. ``not_started`` attempts on auto-submit quizzes whose window closed are
   graded with a zero score.
3. ``submitted``/``auto_submitted`` attempts missing their aggregate are graded.

A failing row is logged and counted; the rest of the batch carries on.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from lms_quiz.core.clock import Clock
from lms_quiz.jobs.registry import fail_job_run, finish_job_run, start_job_run
from lms_quiz.models.quiz import Quiz, QuizStatus
from lms_quiz.models.submission import (
    AWAITING_GRADING_STATUSES,
    QuizSubmission,
    SubmissionStatus,
)
from lms_quiz.services.quiz_session import apply_grading, finalize_if_expired

logger = logging.getLogger(__name__)

JOB_KEY = "quiz_reconcile"


def _open_auto_submit_quizzes():
    return (Quiz.status == QuizStatus.PUBLISHED, Quiz.auto_submit.is_(True))


def _load(db: Session, submission_id: UUID) -> QuizSubmission | None:
    return db.get(QuizSubmission, submission_id, populate_existing=True)


def _run_per_row(
    db: Session,
    sweep: str,
    submission_ids: list[UUID],
    handle: Callable[[QuizSubmission], bool],
    stats: dict[str, int],
) -> None:
    for submission_id in submission_ids:
        try:
            submission = _load(db, submission_id)
            if submission is not None and handle(submission):
                stats[sweep] += 1
        except Exception as e:
            db.rollback()
            stats["failed"] += 1
            logger.error(
                f"Reconcile sweep {sweep} failed for submission {submission_id}: {e}",
                extra={"sweep": sweep, "submission_id": str(submission_id)},
                exc_info=True,
            )


def sweep_overdue_attempts(db: Session, now: datetime, stats: dict[str, int]) -> None:
    """Auto-submit timed-out in-progress attempts."""
    stmt = (
        select(QuizSubmission.id)
        .join(Quiz, Quiz.id == QuizSubmission.quiz_id)
        .where(
            QuizSubmission.status == SubmissionStatus.IN_PROGRESS,
            *_open_auto_submit_quizzes(),
            # Deadline needs a duration or an end date
            or_(Quiz.duration_minutes.isnot(None), Quiz.end_date.isnot(None)),
        )
    )
    ids = list(db.execute(stmt).scalars().all())
    _run_per_row(db, "auto_submitted", ids, lambda s: finalize_if_expired(db, s, now), stats)


def close_unstarted(db: Session, submission: QuizSubmission, now: datetime) -> bool:
    """Grade a never-started attempt as zero once its quiz has ended."""
    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status == SubmissionStatus.NOT_STARTED,
        )
        .values(
            status=SubmissionStatus.AUTO_SUBMITTED,
            submitted_at=now,
            time_taken_minutes=0,
            was_auto_submitted=True,
        )
    )
    if moved.rowcount != 1:
        db.rollback()
        return False
    if apply_grading(db, submission, now) is None:
        db.rollback()
        return False
    db.commit()
    logger.info(
        f"Closed never-started submission {submission.id} with zero score",
        extra={"submission_id": str(submission.id), "quiz_id": str(submission.quiz_id)},
    )
    return True


def sweep_unstarted_attempts(db: Session, now: datetime, stats: dict[str, int]) -> None:
    stmt = (
        select(QuizSubmission.id)
        .join(Quiz, Quiz.id == QuizSubmission.quiz_id)
        .where(
            QuizSubmission.status == SubmissionStatus.NOT_STARTED,
            *_open_auto_submit_quizzes(),
            Quiz.end_date.isnot(None),
            Quiz.end_date <= now,
        )
    )
    ids = list(db.execute(stmt).scalars().all())
    _run_per_row(db, "closed_unstarted", ids, lambda s: close_unstarted(db, s, now), stats)


def regrade(db: Session, submission: QuizSubmission, now: datetime) -> bool:
    if apply_grading(db, submission, now) is None:
        db.rollback()
        return False
    db.commit()
    logger.info(
        f"Graded stuck submission {submission.id}",
        extra={"submission_id": str(submission.id), "quiz_id": str(submission.quiz_id)},
    )
    return True


def sweep_ungraded_submissions(db: Session, now: datetime, stats: dict[str, int]) -> None:
    stmt = select(QuizSubmission.id).where(
        QuizSubmission.status.in_(AWAITING_GRADING_STATUSES),
        or_(QuizSubmission.percentage.is_(None), QuizSubmission.max_score.is_(None)),
    )
    ids = list(db.execute(stmt).scalars().all())
    _run_per_row(db, "regraded", ids, lambda s: regrade(db, s, now), stats)


def reconcile_quizzes(db: Session, now: datetime) -> dict[str, int]:
    """Run all three sweeps once and return per-sweep counts."""
    stats = {"auto_submitted": 0, "closed_unstarted": 0, "regraded": 0, "failed": 0}
    sweep_overdue_attempts(db, now, stats)
    sweep_unstarted_attempts(db, now, stats)
    sweep_ungraded_submissions(db, now, stats)
    return stats


def run_quiz_reconcile(session_factory: Callable[[], Session], clock: Clock) -> dict[str, Any]:
    """
    One recorded reconciliation pass.

    Args:
        session_factory: Creates the session the pass runs in
        clock: Time source for deadlines and timestamps

    Returns:
        Statistics dictionary
    """
    db = session_factory()
    try:
        now = clock.now()
        job_run = start_job_run(db, JOB_KEY, now)

        try:
            stats = reconcile_quizzes(db, now)
        except Exception as e:
            db.rollback()
            logger.error(f"Quiz reconciliation failed: {e}", exc_info=True)
            fail_job_run(db, job_run, clock.now(), e)
            raise

        finish_job_run(db, job_run, clock.now(), stats)
        if any(stats.values()):
            logger.info(f"Quiz reconciliation completed: {stats}", extra={"stats": stats})
        return {"status": "success", **stats}
    finally:
        db.close()
