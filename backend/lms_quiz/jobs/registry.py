"""Bookkeeping for background job runs in the ``job_run`` table."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from lms_quiz.models.jobs import JobRun

logger = logging.getLogger(__name__)

RUNNING = "RUNNING"
SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"

# error_text is for operators; keep tracebacks out of it
MAX_ERROR_LENGTH = 2000


def start_job_run(db: Session, job_key: str, now: datetime) -> JobRun:
    """Record a run that starts right away."""
    job_run = JobRun(job_key=job_key, scheduled_for=now, started_at=now, status=RUNNING)
    db.add(job_run)
    db.commit()
    logger.debug("Job run started", extra={"job_key": job_key, "job_run_id": str(job_run.id)})
    return job_run


def finish_job_run(db: Session, job_run: JobRun, now: datetime, stats: dict[str, Any]) -> None:
    job_run.status = SUCCEEDED
    job_run.finished_at = now
    job_run.stats_json = stats
    db.commit()


def fail_job_run(db: Session, job_run: JobRun, now: datetime, error: BaseException) -> None:
    """Mark the run failed. The session must be usable, so roll back before calling."""
    job_run.status = FAILED
    job_run.finished_at = now
    job_run.error_text = f"{type(error).__name__}: {error}"[:MAX_ERROR_LENGTH]
    db.commit()
