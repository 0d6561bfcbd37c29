"""Student quiz attempt endpoints: start, autosave, submit and status polling."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms_quiz.core.clock import Clock, get_clock
from lms_quiz.core.dependencies import StudentUser
from lms_quiz.db.session import get_db
from lms_quiz.schemas.submission import (
    AutoSaveRequest,
    AutoSaveResponse,
    QuizStatusResponse,
    ResultSummary,
    StartResponse,
    SubmitRequest,
    SubmitResponse,
)
from lms_quiz.services.quiz_session import (
    autosave_answers,
    compute_deadline,
    get_quiz_status,
    start_quiz,
    submit_quiz,
)

router = APIRouter()


@router.post("/{quiz_id}/start", response_model=StartResponse)
def start_quiz_attempt(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StudentUser,
):
    """
    Start the quiz, or resume the attempt already in progress.

    Starting again never resets the timer.
    """
    submission = start_quiz(db, quiz_id, current_user.id, clock.now())
    quiz = submission.quiz
    return StartResponse(
        submission_id=submission.id,
        status=submission.status,
        started_at=submission.started_at,
        ends_at=compute_deadline(quiz, submission.started_at),
        duration_minutes=quiz.duration_minutes,
    )


@router.post("/{quiz_id}/auto-save", response_model=AutoSaveResponse)
def auto_save_answers(
    quiz_id: UUID,
    data: AutoSaveRequest,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StudentUser,
):
    """Store draft answers. They are not graded until submit."""
    autosave_answers(db, quiz_id, current_user.id, data.answers, clock.now())
    return AutoSaveResponse()


@router.post("/{quiz_id}/submit", response_model=SubmitResponse)
def submit_quiz_attempt(
    quiz_id: UUID,
    data: SubmitRequest,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StudentUser,
):
    """Submit final answers; the attempt is graded before responding."""
    outcome = submit_quiz(
        db,
        quiz_id,
        current_user.id,
        data.answers,
        clock.now(),
        is_auto_submit=data.is_auto_submit,
    )
    return SubmitResponse(
        submission_id=outcome.submission.id,
        status=outcome.submission.status,
        results=ResultSummary(**outcome.result.as_summary()),
        time_taken_minutes=outcome.submission.time_taken_minutes,
    )


@router.get("/{quiz_id}/status", response_model=QuizStatusResponse)
def get_quiz_attempt_status(
    quiz_id: UUID,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    current_user: StudentUser,
):
    """
    Poll the attempt.

    Past the deadline this auto-submits the autosaved draft and returns the result.
    """
    return QuizStatusResponse(**get_quiz_status(db, quiz_id, current_user.id, clock.now()))
