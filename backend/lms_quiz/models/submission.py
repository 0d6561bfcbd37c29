"""Quiz submission models: one attempt per (quiz, student) and its answers."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lms_quiz.db.base import Base


class SubmissionStatus(str, PyEnum):
    """Attempt status. Only ever advances in declaration order."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    AUTO_SUBMITTED = "auto_submitted"
    GRADED = "graded"
    PUBLISHED = "published"


# Statuses past in_progress; Start and Submit refuse these
FINALIZED_STATUSES = frozenset(
    {
        SubmissionStatus.SUBMITTED,
        SubmissionStatus.AUTO_SUBMITTED,
        SubmissionStatus.GRADED,
        SubmissionStatus.PUBLISHED,
    }
)

# Submitted but not yet graded
AWAITING_GRADING_STATUSES = frozenset({SubmissionStatus.SUBMITTED, SubmissionStatus.AUTO_SUBMITTED})


class QuizSubmission(Base):
    """A student's single attempt record for one quiz."""

    __tablename__ = "quiz_submissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(
        Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    student_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(
        Enum(
            SubmissionStatus,
            name="submission_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=SubmissionStatus.NOT_STARTED,
    )

    started_at = Column(DateTime, nullable=True)  # set once, on first start
    submitted_at = Column(DateTime, nullable=True)  # set once, leaving in_progress
    time_taken_minutes = Column(Integer, nullable=True)  # frozen at submission
    was_auto_submitted = Column(Boolean, nullable=False, default=False)

    # Draft answers: [{question_id, answer_text, selected_options}], overwritten on autosave
    auto_saved_data = Column(JSON, nullable=True)

    # Scoring (null until graded)
    total_score = Column(Numeric(10, 2), nullable=True)
    max_score = Column(Numeric(10, 2), nullable=True)
    percentage = Column(Numeric(5, 2), nullable=True)
    graded_at = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)

    # Manual grading (set when a teacher overrides the automatic grade)
    graded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    teacher_comments = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    quiz = relationship("Quiz", back_populates="submissions")
    answers = relationship(
        "StudentAnswer", back_populates="submission", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", name="uq_quiz_submission_student"),
        Index("ix_quiz_submissions_status_quiz", "status", "quiz_id"),
        Index("ix_quiz_submissions_student_id", "student_id"),
    )


class StudentAnswer(Base):
    """Final answer to one question of a submission."""

    __tablename__ = "student_answers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("quiz_submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_id = Column(
        Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )

    answer_text = Column(Text, nullable=True)  # yes_no
    selected_options = Column(JSON, nullable=True)  # MCQ: ordered list of option ids (str)

    # Grading output (null until graded)
    marks_awarded = Column(Numeric(8, 2), nullable=True)
    is_correct = Column(Boolean, nullable=True)
    teacher_feedback = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    submission = relationship("QuizSubmission", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="uq_student_answer"),
        Index("ix_student_answers_submission_id", "submission_id"),
    )
