"""Job execution tracking model."""

import uuid

from sqlalchemy import JSON, Column, DateTime, Index, String, Text, Uuid

from lms_quiz.db.base import Base


class JobRun(Base):
    """One execution of a background job."""

    __tablename__ = "job_run"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_key = Column(String(100), nullable=False)  # e.g. "quiz_reconcile"
    scheduled_for = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="QUEUED")  # QUEUED, RUNNING, SUCCEEDED, FAILED
    stats_json = Column(JSON, nullable=False, default=dict)
    error_text = Column(Text(), nullable=True)

    __table_args__ = (
        Index("ix_job_run_job_key", "job_key"),
        Index("ix_job_run_status", "status"),
    )
