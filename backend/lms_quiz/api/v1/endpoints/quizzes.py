"""Quiz authoring endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms_quiz.core.dependencies import CurrentUser, StaffUser
from lms_quiz.db.session import get_db
from lms_quiz.models.user import UserRole
from lms_quiz.schemas.quiz import (
    AssignStudentsRequest,
    AssignStudentsResponse,
    QuestionsReplace,
    QuizCreate,
    QuizOut,
    QuizStatusUpdate,
    QuizSummaryOut,
    QuizWithKeyOut,
)
from lms_quiz.services.quiz_authoring import (
    assign_students,
    create_quiz,
    delete_quiz,
    get_owned_quiz,
    get_visible_quiz,
    list_quizzes,
    replace_questions,
    set_quiz_status,
)

router = APIRouter()


@router.post("", response_model=QuizWithKeyOut, status_code=status.HTTP_201_CREATED)
def create_quiz_endpoint(
    data: QuizCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    """Create a draft quiz with its questions."""
    quiz = create_quiz(db, current_user, data)
    return QuizWithKeyOut.model_validate(quiz)


@router.get("", response_model=list[QuizSummaryOut])
def list_quizzes_endpoint(
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
):
    """
    List quizzes.

    Teachers see their own quizzes with assignment and submission counts
    (admins see all); students see the published quizzes assigned to them.
    """
    return list_quizzes(db, current_user)


@router.get("/{quiz_id}", response_model=None)
def get_quiz(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
) -> QuizOut:
    """
    Get a quiz.

    Teachers and admins see the answer key; students only see published quizzes,
    without correct answers or explanations.
    """
    quiz = get_visible_quiz(db, quiz_id, current_user)
    if UserRole(current_user.role) == UserRole.STUDENT:
        return QuizOut.model_validate(quiz)
    return QuizWithKeyOut.model_validate(quiz)


@router.put("/{quiz_id}/questions", response_model=QuizWithKeyOut)
def replace_quiz_questions(
    quiz_id: UUID,
    data: QuestionsReplace,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    """Replace all questions of a draft quiz."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    quiz = replace_questions(db, quiz, data.questions)
    return QuizWithKeyOut.model_validate(quiz)


@router.patch("/{quiz_id}/status", response_model=QuizWithKeyOut)
def update_quiz_status(
    quiz_id: UUID,
    data: QuizStatusUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    """Publish or unpublish a quiz."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    quiz = set_quiz_status(db, quiz, data.status)
    return QuizWithKeyOut.model_validate(quiz)


@router.post("/{quiz_id}/assign", response_model=AssignStudentsResponse)
def assign_quiz_students(
    quiz_id: UUID,
    data: AssignStudentsRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    """Give students access to the quiz by pre-creating their not-started attempts."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    created, existing = assign_students(db, quiz, data.student_ids)
    return AssignStudentsResponse(created=created, existing=existing)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz_endpoint(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
) -> None:
    """Delete a quiz with its questions and submissions."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    delete_quiz(db, quiz)
