"""Test seed helpers for creating test data."""

import uuid
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from lms_quiz.models.quiz import Question, QuestionOption, QuestionType, Quiz, QuizStatus
from lms_quiz.models.submission import QuizSubmission, SubmissionStatus
from lms_quiz.models.user import User, UserRole


def create_test_user(
    db: Session,
    email: str | None = None,
    role: UserRole = UserRole.STUDENT,
    is_active: bool = True,
    **kwargs: Any,
) -> User:
    """
    Create a test user with deterministic defaults.

    Args:
        db: Database session
        email: User email (defaults to role-based email)
        role: User role
        is_active: Whether user is active
        **kwargs: Additional user attributes

    Returns:
        Created User instance
    """
    user_id = kwargs.pop("id", uuid.uuid4())
    if email is None:
        email = f"test_{role.value}_{user_id.hex[:8]}@test.example.com"

    user = User(
        id=user_id,
        email=email,
        role=role.value,
        is_active=is_active,
        full_name=kwargs.pop("full_name", f"Test {role.value}"),
        **kwargs,
    )
    db.add(user)
    db.commit()
    return user


def yes_no(correct: str = "yes", marks: str = "5") -> dict[str, Any]:
    return {"question_type": QuestionType.YES_NO, "marks": marks, "correct_answer": correct}


def mcq(
    question_type: QuestionType,
    options: list[tuple[str, bool]],
    marks: str = "10",
) -> dict[str, Any]:
    """Question fields for an MCQ; ``options`` are ``(text, is_correct)`` pairs."""
    return {"question_type": question_type, "marks": marks, "options": options}


def create_test_quiz(
    db: Session,
    teacher: User,
    questions: list[dict[str, Any]],
    status: QuizStatus = QuizStatus.PUBLISHED,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    duration_minutes: int | None = None,
    auto_submit: bool = True,
    title: str = "Test quiz",
    students: Sequence[User] = (),
) -> Quiz:
    """
    Create a quiz directly in the database.

    Args:
        questions: Dicts from ``yes_no`` / ``mcq``
        students: Assigned up front with ``not_started`` submissions
    """
    built = []
    for order, item in enumerate(questions, start=1):
        built.append(
            Question(
                question_text=f"Question {order}",
                question_type=item["question_type"],
                question_order=order,
                marks=Decimal(item["marks"]),
                correct_answer=item.get("correct_answer"),
                options=[
                    QuestionOption(option_text=text, option_order=i, is_correct=is_correct)
                    for i, (text, is_correct) in enumerate(item.get("options", []), start=1)
                ],
            )
        )

    quiz = Quiz(
        title=title,
        teacher_id=teacher.id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        duration_minutes=duration_minutes,
        auto_submit=auto_submit,
        total_marks=sum((q.marks for q in built), Decimal("0")),
        questions=built,
    )
    db.add(quiz)
    db.flush()
    assign(db, quiz, *students)
    return quiz


def assign(db: Session, quiz: Quiz, *students: User) -> None:
    db.add_all(
        QuizSubmission(quiz_id=quiz.id, student_id=s.id, status=SubmissionStatus.NOT_STARTED)
        for s in students
    )
    db.commit()


def create_scenario_quiz(db: Session, teacher: User, **kwargs: Any) -> Quiz:
    """
    Two-question quiz: Q1 yes_no worth 5 (correct "yes") and Q2 mcq_multiple
    worth 10 with correct options X and Y out of X, Y, Z.
    """
    return create_test_quiz(
        db,
        teacher,
        [
            yes_no("yes", marks="5"),
            mcq(QuestionType.MCQ_MULTIPLE, [("X", True), ("Y", True), ("Z", False)], marks="10"),
        ],
        **kwargs,
    )


def option_ids(question: Question, *texts: str) -> list[str]:
    by_text = {opt.option_text: opt.id for opt in question.options}
    return [str(by_text[text]) for text in texts]
