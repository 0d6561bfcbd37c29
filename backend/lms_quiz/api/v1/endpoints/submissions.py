"""Result endpoints for teachers and students."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms_quiz.core.clock import Clock, get_clock
from lms_quiz.core.dependencies import StaffUser, StudentUser
from lms_quiz.db.session import get_db
from lms_quiz.schemas.submission import (
    GradeSubmissionRequest,
    StudentResultOut,
    SubmissionDetailOut,
    SubmissionSummaryOut,
)
from lms_quiz.services.quiz_authoring import get_owned_quiz
from lms_quiz.services.results import (
    get_student_result,
    get_submission_detail,
    grade_submission,
    list_student_results,
    list_submissions,
    publish_result,
)

router = APIRouter()


@router.get("/student/results", response_model=list[StudentResultOut])
def list_my_results(
    db: Annotated[Session, Depends(get_db)],
    current_user: StudentUser,
):
    """All of the student's finalized attempts; scores appear once published."""
    return list_student_results(db, current_user.id)


@router.get("/{quiz_id}/submissions", response_model=list[SubmissionSummaryOut])
def list_quiz_submissions(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    quiz = get_owned_quiz(db, quiz_id, current_user)
    return [SubmissionSummaryOut.model_validate(s) for s in list_submissions(db, quiz)]


@router.get("/{quiz_id}/submissions/{submission_id}", response_model=SubmissionDetailOut)
def get_quiz_submission(
    quiz_id: UUID,
    submission_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: StaffUser,
):
    """Submission with per-question answers and awarded marks."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    return SubmissionDetailOut.model_validate(get_submission_detail(db, quiz, submission_id))


@router.post("/{quiz_id}/submissions/{submission_id}/grade", response_model=SubmissionDetailOut)
def grade_quiz_submission(
    quiz_id: UUID,
    submission_id: UUID,
    data: GradeSubmissionRequest,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StaffUser,
):
    """
    Override per-question marks and leave feedback.

    The submission becomes graded; publish it to show the student.
    """
    quiz = get_owned_quiz(db, quiz_id, current_user)
    submission = grade_submission(
        db, quiz, submission_id, data.grades, data.teacher_comments, current_user, clock.now()
    )
    return SubmissionDetailOut.model_validate(submission)


@router.post(
    "/{quiz_id}/submissions/{submission_id}/publish", response_model=SubmissionSummaryOut
)
def publish_submission_result(
    quiz_id: UUID,
    submission_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StaffUser,
):
    """Release a graded result to the student."""
    quiz = get_owned_quiz(db, quiz_id, current_user)
    submission = publish_result(db, quiz, submission_id, clock.now())
    return SubmissionSummaryOut.model_validate(submission)


@router.get("/{quiz_id}/result", response_model=SubmissionDetailOut)
def get_my_result(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    current_user: StudentUser,
):
    """The student's own result, once published."""
    return SubmissionDetailOut.model_validate(get_student_result(db, quiz_id, current_user.id))
