"""Pydantic schemas for quiz authoring."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lms_quiz.core.clock import to_naive_utc
from lms_quiz.models.quiz import QuestionType, QuizStatus
from lms_quiz.models.submission import SubmissionStatus

YES_NO_ANSWERS = ("yes", "no")

# ============================================================================
# Request Schemas
# ============================================================================


class OptionCreate(BaseModel):
    option_text: str = Field(..., min_length=1, max_length=1000)
    is_correct: bool = False


class QuestionCreate(BaseModel):
    """A question with its options."""

    question_text: str = Field(..., min_length=1, max_length=5000)
    question_type: QuestionType
    marks: Decimal = Field(Decimal("1"), gt=0, max_digits=8, decimal_places=2)
    correct_answer: str | None = Field(None, description="'yes' or 'no' for yes_no questions")
    explanation: str | None = None
    options: list[OptionCreate] = Field(default_factory=list, max_length=20)

    @model_validator(mode="after")
    def check_answer_key(self) -> "QuestionCreate":
        """Each question type needs a consistent answer key."""
        if self.question_type == QuestionType.YES_NO:
            if self.correct_answer not in YES_NO_ANSWERS:
                raise ValueError("yes_no questions need correct_answer 'yes' or 'no'")
            if self.options:
                raise ValueError("yes_no questions take no options")
            return self

        if len(self.options) < 2:
            raise ValueError("MCQ questions need at least 2 options")
        correct_count = sum(1 for opt in self.options if opt.is_correct)
        if self.question_type == QuestionType.MCQ_SINGLE and correct_count != 1:
            raise ValueError("mcq_single questions need exactly one correct option")
        if self.question_type == QuestionType.MCQ_MULTIPLE and correct_count < 1:
            raise ValueError("mcq_multiple questions need at least one correct option")
        return self


class QuizCreate(BaseModel):
    """Request to create a quiz."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    instructions: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration_minutes: int | None = Field(None, ge=1, le=24 * 60)
    auto_submit: bool = True
    total_marks: Decimal | None = Field(
        None, ge=0, description="Override; defaults to the sum of question marks"
    )
    questions: list[QuestionCreate] = Field(..., min_length=1, max_length=500)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value) if value else value

    @model_validator(mode="after")
    def check_window(self) -> "QuizCreate":
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class QuestionsReplace(BaseModel):
    questions: list[QuestionCreate] = Field(..., min_length=1, max_length=500)


class QuizStatusUpdate(BaseModel):
    status: QuizStatus


class AssignStudentsRequest(BaseModel):
    student_ids: list[UUID] = Field(..., min_length=1, max_length=1000)


# ============================================================================
# Response Schemas
# ============================================================================


class OptionOut(BaseModel):
    """Option as shown to students (no answer key)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    option_text: str
    option_order: int


class OptionWithKeyOut(OptionOut):
    is_correct: bool


class QuestionOut(BaseModel):
    """Question as shown to students (no answer key)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question_text: str
    question_type: QuestionType
    question_order: int
    marks: float
    options: list[OptionOut]


class QuestionWithKeyOut(QuestionOut):
    correct_answer: str | None
    explanation: str | None
    options: list[OptionWithKeyOut]


class QuizOut(BaseModel):
    """Quiz as shown to students."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    instructions: str | None
    teacher_id: UUID
    status: QuizStatus
    start_date: datetime | None
    end_date: datetime | None
    duration_minutes: int | None
    auto_submit: bool
    total_marks: float
    questions: list[QuestionOut]


class QuizWithKeyOut(QuizOut):
    """Quiz as shown to its teacher."""

    questions: list[QuestionWithKeyOut]
    created_at: datetime
    updated_at: datetime | None


class QuizSummaryOut(BaseModel):
    """Quiz row in a listing.

    Staff rows carry assignment and submission counts; student rows carry the
    student's own attempt status.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    teacher_id: UUID
    status: QuizStatus
    start_date: datetime | None
    end_date: datetime | None
    duration_minutes: int | None
    total_marks: float
    created_at: datetime
    assigned_count: int | None = None
    submitted_count: int | None = None
    attempt_status: SubmissionStatus | None = None


class AssignStudentsResponse(BaseModel):
    created: int
    existing: int
