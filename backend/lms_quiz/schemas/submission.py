"""Pydantic schemas for quiz attempts and results."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lms_quiz.models.submission import SubmissionStatus

# ============================================================================
# Attempt Schemas
# ============================================================================


class AnswerPayload(BaseModel):
    """One answer as sent by the quiz client (draft or final)."""

    question_id: UUID
    answer_text: str | None = Field(None, max_length=1000, description="yes_no answer")
    selected_options: list[UUID] | None = Field(
        None, max_length=50, description="Selected option ids for MCQ questions"
    )


class AutoSaveRequest(BaseModel):
    """Draft answers to store for resume."""

    answers: list[AnswerPayload] = Field(default_factory=list, max_length=500)


class SubmitRequest(BaseModel):
    """Final answers."""

    answers: list[AnswerPayload] = Field(default_factory=list, max_length=500)
    is_auto_submit: bool = False


class StartResponse(BaseModel):
    """Response after starting (or resuming) an attempt."""

    submission_id: UUID
    status: SubmissionStatus
    started_at: datetime
    ends_at: datetime | None
    duration_minutes: int | None


class AutoSaveResponse(BaseModel):
    ok: bool = True


class ResultSummary(BaseModel):
    """Aggregate score in the client's camelCase shape."""

    totalScore: float
    maxScore: float
    percentage: float


class SubmitResponse(BaseModel):
    """Response after submitting."""

    submission_id: UUID
    status: SubmissionStatus
    results: ResultSummary
    time_taken_minutes: int


class QuizStatusResponse(BaseModel):
    """Attempt status for the polling client."""

    status: SubmissionStatus
    time_left_seconds: int | None
    ends_at: datetime | None = None
    duration_minutes: int | None = None
    answers: list[AnswerPayload] | None = None  # only while in_progress
    results: ResultSummary | None = None  # once graded
    time_taken_minutes: int | None = None
    message: str | None = None


# ============================================================================
# Result Schemas
# ============================================================================


class AnswerResultOut(BaseModel):
    """Per-question answer and grading outcome."""

    model_config = ConfigDict(from_attributes=True)

    question_id: UUID
    answer_text: str | None
    selected_options: list[UUID] | None
    marks_awarded: float | None
    is_correct: bool | None
    teacher_feedback: str | None = None


class SubmissionSummaryOut(BaseModel):
    """Submission row in a teacher's listing."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quiz_id: UUID
    student_id: UUID
    status: SubmissionStatus
    started_at: datetime | None
    submitted_at: datetime | None
    time_taken_minutes: int | None
    was_auto_submitted: bool
    total_score: float | None
    max_score: float | None
    percentage: float | None
    graded_at: datetime | None
    published_at: datetime | None
    teacher_comments: str | None = None


class SubmissionDetailOut(SubmissionSummaryOut):
    """Submission with its graded answers."""

    answers: list[AnswerResultOut]


class StudentResultOut(BaseModel):
    """One row of a student's own results across quizzes.

    Scores and comments stay null until the result is published.
    """

    submission_id: UUID
    quiz_id: UUID
    quiz_title: str
    status: SubmissionStatus
    submitted_at: datetime | None
    time_taken_minutes: int | None
    was_auto_submitted: bool
    published_at: datetime | None
    total_score: float | None = None
    max_score: float | None = None
    percentage: float | None = None
    teacher_comments: str | None = None


# ============================================================================
# Manual Grading Schemas
# ============================================================================


class GradeOverride(BaseModel):
    """Teacher-assigned marks for one question."""

    question_id: UUID
    marks_awarded: Decimal = Field(..., ge=0, max_digits=8, decimal_places=2)
    teacher_feedback: str | None = Field(None, max_length=5000)


class GradeSubmissionRequest(BaseModel):
    """Override the automatic grade of some or all questions."""

    grades: list[GradeOverride] = Field(..., min_length=1, max_length=500)
    teacher_comments: str | None = Field(None, max_length=5000)
