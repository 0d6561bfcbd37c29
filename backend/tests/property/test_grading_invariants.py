"""Property-based tests for grading and deadline invariants."""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from hypothesis import given, settings, strategies as st

from lms_quiz.models.quiz import QuestionType
from lms_quiz.services.grading import AnswerInput, QuestionDefinition, grade, grade_answer
from lms_quiz.services.quiz_session import compute_deadline, compute_time_taken

OPTION_POOL = [uuid4() for _ in range(6)]

marks_strategy = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("100"), places=2, allow_nan=False, allow_infinity=False
)


@st.composite
def mcq_multiple_case(draw):
    correct = draw(st.sets(st.sampled_from(OPTION_POOL), min_size=1, max_size=5))
    selected = draw(st.lists(st.sampled_from(OPTION_POOL), max_size=8))
    question = QuestionDefinition(
        id=uuid4(),
        question_type=QuestionType.MCQ_MULTIPLE,
        marks=draw(marks_strategy),
        correct_option_ids=frozenset(correct),
    )
    return question, AnswerInput(question.id, selected_options=tuple(selected))


@settings(max_examples=200, deadline=None)
@given(case=mcq_multiple_case())
def test_mcq_multiple_award_bounded_and_consistent(case) -> None:
    """
    Property: awards stay within [0, marks] and is_correct implies full marks.
    """
    question, answer = case
    result = grade_answer(question, answer)

    assert Decimal("0") <= result.marks_awarded <= question.marks
    assert result.marks_awarded == result.marks_awarded.quantize(Decimal("0.01"))
    if result.is_correct:
        assert result.marks_awarded == question.marks
        assert set(answer.selected_options) == question.correct_option_ids


@settings(max_examples=100, deadline=None)
@given(cases=st.lists(mcq_multiple_case(), min_size=1, max_size=6))
def test_grade_is_deterministic_and_bounded(cases) -> None:
    """
    Property: grading twice gives identical aggregates and percentage is in [0, 100].
    """
    questions = [q for q, _ in cases]
    answers = [a for _, a in cases]

    first = grade(questions, answers)
    second = grade(questions, answers)

    assert (first.total_score, first.max_score, first.percentage) == (
        second.total_score,
        second.max_score,
        second.percentage,
    )
    assert first.total_score == sum((g.marks_awarded for g in first.per_question), Decimal("0"))
    assert first.max_score == sum((q.marks for q in questions), Decimal("0"))
    assert Decimal("0") <= first.percentage <= Decimal("100")


@settings(max_examples=100, deadline=None)
@given(
    duration=st.integers(min_value=1, max_value=600),
    end_offset=st.one_of(st.none(), st.integers(min_value=-600, max_value=1200)),
)
def test_end_date_only_ever_shortens_deadline(duration: int, end_offset: int | None) -> None:
    """
    Property: the deadline is started_at + duration, capped by end_date when one is set.
    """
    started_at = datetime(2026, 3, 2, 9, 0, 0)
    nominal = started_at + timedelta(minutes=duration)
    end_date = None if end_offset is None else started_at + timedelta(minutes=end_offset)
    quiz = SimpleNamespace(duration_minutes=duration, end_date=end_date)

    deadline = compute_deadline(quiz, started_at)

    assert deadline <= nominal
    if end_date is None:
        assert deadline == nominal
    else:
        assert deadline == min(nominal, end_date)


@settings(max_examples=100, deadline=None)
@given(seconds=st.integers(min_value=-3600, max_value=6 * 3600))
def test_time_taken_never_negative(seconds: int) -> None:
    started_at = datetime(2026, 3, 2, 9, 0, 0)

    minutes = compute_time_taken(started_at, started_at + timedelta(seconds=seconds))

    assert minutes >= 0
    assert abs(minutes * 60 - max(seconds, 0)) <= 30
