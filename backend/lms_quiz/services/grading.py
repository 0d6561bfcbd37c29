"""Grading engine: scores a submission's answers against the quiz definition.

Pure functions only. The caller persists per-answer results and the aggregate.

Scoring rules:
    yes_no        exact, case-sensitive match of ``answer_text`` against
                  ``correct_answer``; full marks or nothing.
    mcq_single    exactly one option selected and it is a correct option;
                  full marks or nothing.
    mcq_multiple  proportional credit with negative marking:
                  ``(correct_selected - incorrect_selected) / total_correct * marks``
                  clamped to ``[0, marks]``; ``total_correct`` floors at 1.
                  ``is_correct`` only when the selection equals the correct set.

All arithmetic is ``Decimal``. Each awarded mark is rounded half-up to two
decimals as it is produced; the total is the sum of those rounded awards and the
percentage is rounded the same way.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from lms_quiz.models.quiz import Question, QuestionType

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def quantize(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class QuestionDefinition:
    """The grading-relevant part of a question."""

    id: UUID
    question_type: QuestionType
    marks: Decimal
    correct_answer: str | None = None
    correct_option_ids: frozenset[UUID] = field(default_factory=frozenset)

    @classmethod
    def from_model(cls, question: Question) -> "QuestionDefinition":
        return cls(
            id=question.id,
            question_type=QuestionType(question.question_type),
            marks=Decimal(str(question.marks)),
            correct_answer=question.correct_answer,
            correct_option_ids=frozenset(opt.id for opt in question.options if opt.is_correct),
        )


@dataclass(frozen=True)
class AnswerInput:
    """A student's final answer to one question."""

    question_id: UUID
    answer_text: str | None = None
    selected_options: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class GradedAnswer:
    question_id: UUID
    marks_awarded: Decimal
    is_correct: bool


@dataclass(frozen=True)
class GradeResult:
    per_question: tuple[GradedAnswer, ...]
    total_score: Decimal
    max_score: Decimal
    percentage: Decimal

    def as_summary(self) -> dict[str, float]:
        """Aggregate in the camelCase shape the quiz client consumes."""
        return {
            "totalScore": float(self.total_score),
            "maxScore": float(self.max_score),
            "percentage": float(self.percentage),
        }


def score_yes_no(question: QuestionDefinition, answer: AnswerInput) -> tuple[Decimal, bool]:
    is_correct = answer.answer_text is not None and answer.answer_text == question.correct_answer
    return (question.marks if is_correct else ZERO), is_correct


def score_mcq_single(question: QuestionDefinition, answer: AnswerInput) -> tuple[Decimal, bool]:
    selected = answer.selected_options
    is_correct = len(selected) == 1 and selected[0] in question.correct_option_ids
    return (question.marks if is_correct else ZERO), is_correct


def score_mcq_multiple(question: QuestionDefinition, answer: AnswerInput) -> tuple[Decimal, bool]:
    correct = question.correct_option_ids
    total_correct = len(correct) or 1
    # Repeated ids in a selection count once
    selected = set(answer.selected_options)
    correct_selected = len(selected & correct)
    incorrect_selected = len(selected - correct)

    positive = Decimal(correct_selected) / Decimal(total_correct) * question.marks
    negative = Decimal(incorrect_selected) / Decimal(total_correct) * question.marks
    raw = positive - negative
    awarded = max(ZERO, min(question.marks, raw))
    is_correct = correct_selected == total_correct and incorrect_selected == 0
    return awarded, is_correct


_SCORERS = {
    QuestionType.YES_NO: score_yes_no,
    QuestionType.MCQ_SINGLE: score_mcq_single,
    QuestionType.MCQ_MULTIPLE: score_mcq_multiple,
}


def grade_answer(question: QuestionDefinition, answer: AnswerInput) -> GradedAnswer:
    """Score one answer against its question."""
    awarded, is_correct = _SCORERS[question.question_type](question, answer)
    return GradedAnswer(
        question_id=question.id,
        marks_awarded=quantize(awarded),
        is_correct=is_correct,
    )


def compute_percentage(total_score: Decimal, max_score: Decimal) -> Decimal:
    if max_score <= ZERO:
        return quantize(ZERO)
    return quantize(total_score / max_score * HUNDRED)


def max_score_of(questions: Iterable[QuestionDefinition]) -> Decimal:
    return quantize(sum((q.marks for q in questions), ZERO))


def grade(
    questions: Sequence[QuestionDefinition],
    answers: Iterable[AnswerInput],
) -> GradeResult:
    """
    Grade a submission.

    Args:
        questions: Every question currently in the quiz (denominator)
        answers: The submission's answers; at most one per question is expected,
            answers to questions not in ``questions`` are ignored

    Returns:
        Per-answer results (in question order) plus total, max and percentage
    """
    by_question = {a.question_id: a for a in answers}

    per_question: list[GradedAnswer] = []
    for question in questions:
        answer = by_question.get(question.id)
        if answer is None:
            continue
        per_question.append(grade_answer(question, answer))

    total_score = quantize(sum((g.marks_awarded for g in per_question), ZERO))
    max_score = max_score_of(questions)

    return GradeResult(
        per_question=tuple(per_question),
        total_score=total_score,
        max_score=max_score,
        percentage=compute_percentage(total_score, max_score),
    )
