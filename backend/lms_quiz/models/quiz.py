"""Quiz definition models: quizzes, questions and MCQ options."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lms_quiz.db.base import Base


class QuizStatus(str, PyEnum):
    """Quiz publication status."""

    DRAFT = "draft"
    PUBLISHED = "published"


class QuestionType(str, PyEnum):
    """Supported question types."""

    YES_NO = "yes_no"
    MCQ_SINGLE = "mcq_single"
    MCQ_MULTIPLE = "mcq_multiple"


class Quiz(Base):
    """A quiz authored by a teacher. Immutable while students attempt it."""

    __tablename__ = "quizzes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    teacher_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(
        Enum(QuizStatus, name="quiz_status", values_callable=lambda e: [member.value for member in e]),
        nullable=False,
        default=QuizStatus.DRAFT,
    )

    # Attempt window and time budget (all optional)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    auto_submit = Column(Boolean, nullable=False, default=True)

    total_marks = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.question_order",
    )
    submissions = relationship(
        "QuizSubmission", back_populates="quiz", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_quizzes_teacher_id", "teacher_id"),
        Index("ix_quizzes_status_end_date", "status", "end_date"),
    )


class Question(Base):
    """A single question belonging to a quiz."""

    __tablename__ = "questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(
        Uuid(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    question_text = Column(Text, nullable=False)
    question_type = Column(
        Enum(QuestionType, name="question_type", values_callable=lambda e: [member.value for member in e]),
        nullable=False,
    )
    question_order = Column(Integer, nullable=False)
    marks = Column(Numeric(8, 2), nullable=False, default=1)
    correct_answer = Column(String(50), nullable=True)  # yes_no only
    explanation = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    quiz = relationship("Quiz", back_populates="questions")
    options = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="QuestionOption.option_order",
    )

    __table_args__ = (Index("ix_questions_quiz_id", "quiz_id"),)


class QuestionOption(Base):
    """An option of an MCQ question."""

    __tablename__ = "question_options"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    question_id = Column(
        Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    option_text = Column(Text, nullable=False)
    option_order = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    question = relationship("Question", back_populates="options")

    __table_args__ = (Index("ix_question_options_question_id", "question_id"),)
