"""Quiz attempt state machine: start, autosave, submit, status and grading.

One ``QuizSubmission`` row per (quiz, student) moves forward through
``not_started -> in_progress -> submitted|auto_submitted -> graded -> published``.
Every transition out of a status is a compare-and-set ``UPDATE ... WHERE status
= <expected>`` whose row count decides who won, so a student's submit, a status
poll and the reconciliation sweeper can race on the same row without double
grading.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from lms_quiz.core.app_exceptions import (
    AlreadySubmittedError,
    AnswerValidationError,
    InternalError,
    NoActiveSessionError,
    QuizNotAccessibleError,
)
from lms_quiz.core.config import settings
from lms_quiz.core.logging import get_logger
from lms_quiz.models.quiz import Question, Quiz, QuizStatus
from lms_quiz.models.submission import (
    AWAITING_GRADING_STATUSES,
    FINALIZED_STATUSES,
    QuizSubmission,
    StudentAnswer,
    SubmissionStatus,
)
from lms_quiz.schemas.submission import AnswerPayload
from lms_quiz.services.grading import AnswerInput, GradeResult, QuestionDefinition, grade

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmitOutcome:
    submission: QuizSubmission
    result: GradeResult


# ============================================================================
# Time arithmetic
# ============================================================================


def compute_deadline(quiz: Quiz, started_at: datetime | None) -> datetime | None:
    """
    Effective deadline of an attempt.

    The earlier of ``started_at + duration_minutes`` and ``end_date`` over
    whichever of the two is set; ``None`` for an untimed quiz without end date.
    """
    candidates = []
    if quiz.duration_minutes and started_at is not None:
        candidates.append(started_at + timedelta(minutes=quiz.duration_minutes))
    if quiz.end_date is not None:
        candidates.append(quiz.end_date)
    return min(candidates) if candidates else None


def is_expired(deadline: datetime | None, now: datetime) -> bool:
    # Inclusive: an attempt is over at the deadline instant
    return deadline is not None and now >= deadline


def compute_time_taken(started_at: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded half-up, never negative."""
    minutes = Decimal((end - started_at).total_seconds()) / Decimal(60)
    return max(0, int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def seconds_left(deadline: datetime | None, now: datetime) -> int | None:
    if deadline is None:
        return None
    # Round up so a live attempt never reports 0 seconds left
    return max(0, math.ceil((deadline - now).total_seconds()))


# ============================================================================
# Lookups
# ============================================================================


def get_submission(db: Session, quiz_id: UUID, student_id: UUID) -> QuizSubmission | None:
    stmt = select(QuizSubmission).where(
        QuizSubmission.quiz_id == quiz_id,
        QuizSubmission.student_id == student_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def load_questions(db: Session, quiz_id: UUID) -> list[Question]:
    stmt = (
        select(Question)
        .where(Question.quiz_id == quiz_id)
        .options(selectinload(Question.options))
        .order_by(Question.question_order)
    )
    return list(db.execute(stmt).scalars().all())


def check_quiz_accessible(quiz: Quiz | None, now: datetime) -> Quiz:
    """Raise ``QuizNotAccessibleError`` unless the quiz can be started now."""
    if quiz is None:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_FOUND)
    if quiz.status != QuizStatus.PUBLISHED:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_PUBLISHED)
    if quiz.start_date is not None and now < quiz.start_date:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_STARTED, at=quiz.start_date)
    if quiz.end_date is not None and now >= quiz.end_date:
        raise QuizNotAccessibleError(QuizNotAccessibleError.ENDED, at=quiz.end_date)
    return quiz


# ============================================================================
# Answer conversion
# ============================================================================


def payload_to_input(payload: AnswerPayload) -> AnswerInput:
    return AnswerInput(
        question_id=payload.question_id,
        answer_text=payload.answer_text,
        selected_options=tuple(payload.selected_options or ()),
    )


def row_to_input(row: StudentAnswer) -> AnswerInput:
    return AnswerInput(
        question_id=row.question_id,
        answer_text=row.answer_text,
        selected_options=tuple(UUID(str(opt)) for opt in (row.selected_options or ())),
    )


def draft_answers(submission: QuizSubmission) -> list[AnswerPayload]:
    """Autosaved draft as payloads; unparseable entries are dropped."""
    drafts: list[AnswerPayload] = []
    for item in submission.auto_saved_data or []:
        try:
            drafts.append(AnswerPayload.model_validate(item))
        except ValueError:
            logger.warning(f"Dropping malformed draft answer on submission {submission.id}: {item!r}")
    return drafts


def _dedupe(answers: list[AnswerInput]) -> list[AnswerInput]:
    # Later entries for the same question replace earlier ones
    return list({a.question_id: a for a in answers}.values())


# ============================================================================
# Grading persistence
# ============================================================================


def apply_grading(db: Session, submission: QuizSubmission, now: datetime) -> GradeResult | None:
    """
    Grade a submitted attempt and advance it to ``graded``.

    Flushes but does not commit. Returns ``None`` when the submission is no
    longer awaiting grading (someone else graded it first).
    """
    questions = [QuestionDefinition.from_model(q) for q in load_questions(db, submission.quiz_id)]
    rows = list(
        db.execute(select(StudentAnswer).where(StudentAnswer.submission_id == submission.id))
        .scalars()
        .all()
    )

    result = grade(questions, [row_to_input(row) for row in rows])

    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status.in_(AWAITING_GRADING_STATUSES),
        )
        .values(
            status=SubmissionStatus.GRADED,
            total_score=result.total_score,
            max_score=result.max_score,
            percentage=result.percentage,
            graded_at=now,
        )
    )
    if moved.rowcount != 1:
        return None

    graded = {g.question_id: g for g in result.per_question}
    for row in rows:
        outcome = graded.get(row.question_id)
        if outcome is None:
            # Question removed from the quiz after the answer was written
            row.marks_awarded = Decimal("0")
            row.is_correct = False
        else:
            row.marks_awarded = outcome.marks_awarded
            row.is_correct = outcome.is_correct
    db.flush()
    return result


def _replace_answers(db: Session, submission_id: UUID, answers: list[AnswerInput]) -> None:
    if not answers:
        return
    db.execute(
        delete(StudentAnswer).where(
            StudentAnswer.submission_id == submission_id,
            StudentAnswer.question_id.in_([a.question_id for a in answers]),
        )
    )
    db.add_all(
        StudentAnswer(
            submission_id=submission_id,
            question_id=a.question_id,
            answer_text=a.answer_text,
            selected_options=[str(opt) for opt in a.selected_options] if a.selected_options else None,
        )
        for a in answers
    )
    db.flush()


def finalize_submission(
    db: Session,
    submission: QuizSubmission,
    answers: list[AnswerInput],
    now: datetime,
    time_end: datetime,
    auto: bool,
) -> GradeResult | None:
    """
    Submit and grade an in-progress attempt in one transaction.

    ``time_end`` is the instant ``time_taken_minutes`` is measured to: ``now``
    for a student's submit, the deadline for a deadline-triggered one.

    Returns:
        The grade, or ``None`` if the attempt had already left ``in_progress``

    Raises:
        InternalError: persistence or grading failed; nothing was written
    """
    submission_id = submission.id
    try:
        time_taken = compute_time_taken(submission.started_at, time_end)
        moved = db.execute(
            update(QuizSubmission)
            .where(
                QuizSubmission.id == submission_id,
                QuizSubmission.status == SubmissionStatus.IN_PROGRESS,
            )
            .values(
                status=SubmissionStatus.AUTO_SUBMITTED if auto else SubmissionStatus.SUBMITTED,
                submitted_at=now,
                time_taken_minutes=time_taken,
                was_auto_submitted=auto,
            )
        )
        if moved.rowcount != 1:
            db.rollback()
            db.refresh(submission)
            return None

        _replace_answers(db, submission_id, _dedupe(answers))
        result = apply_grading(db, submission, now)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(
            f"Finalizing submission {submission_id} failed: {e}",
            extra={"submission_id": str(submission_id), "auto": auto},
            exc_info=True,
        )
        raise InternalError("Failed to submit quiz") from e

    db.refresh(submission)
    return result


def finalize_if_expired(db: Session, submission: QuizSubmission, now: datetime) -> bool:
    """
    Evaluate an attempt's deadline and auto-submit it once the deadline passed.

    The single deadline-enforcement path shared by status polling, start,
    autosave and the reconciliation sweeper. The autosaved draft becomes the
    final answers and ``time_taken_minutes`` is measured to the deadline.

    Returns:
        True if this call finalized the attempt
    """
    if submission.status != SubmissionStatus.IN_PROGRESS:
        return False

    quiz = submission.quiz
    deadline = compute_deadline(quiz, submission.started_at)
    if not is_expired(deadline, now):
        return False

    question_ids = {q.id for q in quiz.questions}
    drafts = [payload_to_input(d) for d in draft_answers(submission) if d.question_id in question_ids]

    result = finalize_submission(db, submission, drafts, now=now, time_end=deadline, auto=True)
    if result is None:
        return False

    logger.info(
        f"Auto-submitted submission {submission.id} at deadline",
        extra={
            "submission_id": str(submission.id),
            "quiz_id": str(submission.quiz_id),
            "deadline": deadline.isoformat(),
            "percentage": float(result.percentage),
        },
    )
    return True


# ============================================================================
# Operations
# ============================================================================


def start_quiz(db: Session, quiz_id: UUID, student_id: UUID, now: datetime) -> QuizSubmission:
    """
    Start, or idempotently resume, a student's attempt.

    The student must have been assigned the quiz: assignment creates the
    ``not_started`` row that Start moves to ``in_progress``.

    Raises:
        QuizNotAccessibleError: quiz missing, not assigned, unpublished or
            outside its window
        AlreadySubmittedError: the attempt is already finalized
    """
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_FOUND)

    submission = get_submission(db, quiz_id, student_id)
    if submission is None:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_ASSIGNED)

    if submission.status == SubmissionStatus.IN_PROGRESS:
        finalize_if_expired(db, submission, now)
    if submission.status in FINALIZED_STATUSES:
        raise AlreadySubmittedError(submission.status.value)
    if submission.status == SubmissionStatus.IN_PROGRESS:
        return submission

    check_quiz_accessible(quiz, now)

    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status == SubmissionStatus.NOT_STARTED,
        )
        .values(status=SubmissionStatus.IN_PROGRESS, started_at=now)
    )
    db.commit()
    db.refresh(submission)
    if moved.rowcount != 1:
        # A concurrent start won; resume whatever it produced
        return start_quiz(db, quiz_id, student_id, now)

    logger.info(
        "Quiz attempt started",
        extra={
            "submission_id": str(submission.id),
            "quiz_id": str(quiz_id),
            "student_id": str(student_id),
        },
    )
    return submission


def autosave_answers(
    db: Session,
    quiz_id: UUID,
    student_id: UUID,
    answers: list[AnswerPayload],
    now: datetime,
) -> QuizSubmission:
    """
    Overwrite the draft answers of an in-progress attempt.

    Raises:
        NoActiveSessionError: no in-progress attempt, or its deadline passed
    """
    submission = get_submission(db, quiz_id, student_id)
    if submission is None or submission.status != SubmissionStatus.IN_PROGRESS:
        raise NoActiveSessionError()
    if finalize_if_expired(db, submission, now):
        raise NoActiveSessionError()

    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status == SubmissionStatus.IN_PROGRESS,
        )
        .values(auto_saved_data=[a.model_dump(mode="json") for a in answers])
    )
    db.commit()
    if moved.rowcount != 1:
        raise NoActiveSessionError()
    db.refresh(submission)
    return submission


def submit_quiz(
    db: Session,
    quiz_id: UUID,
    student_id: UUID,
    answers: list[AnswerPayload],
    now: datetime,
    is_auto_submit: bool = False,
) -> SubmitOutcome:
    """
    Submit final answers and grade them synchronously.

    A submit arriving within ``QUIZ_SUBMIT_GRACE_SECONDS`` after the deadline
    is still accepted (time taken is capped at the deadline); a later one is
    finalized from the autosaved draft and rejected as already submitted.

    Raises:
        NoActiveSessionError: the attempt was never started
        AlreadySubmittedError: the attempt is already finalized
        AnswerValidationError: an answer names a question outside the quiz
        InternalError: persistence or grading failed
    """
    submission = get_submission(db, quiz_id, student_id)
    if submission is None or submission.status == SubmissionStatus.NOT_STARTED:
        raise NoActiveSessionError()
    if submission.status in FINALIZED_STATUSES:
        raise AlreadySubmittedError(submission.status.value)

    quiz = submission.quiz
    question_ids = {q.id for q in quiz.questions}
    unknown = sorted({str(a.question_id) for a in answers if a.question_id not in question_ids})
    if unknown:
        raise AnswerValidationError(
            "Answers reference questions that are not part of this quiz",
            details={"question_ids": unknown},
        )

    deadline = compute_deadline(quiz, submission.started_at)
    time_end = now
    if deadline is not None and now >= deadline:
        grace = timedelta(seconds=settings.QUIZ_SUBMIT_GRACE_SECONDS)
        if now > deadline + grace:
            finalize_if_expired(db, submission, now)
            raise AlreadySubmittedError(submission.status.value)
        time_end = deadline

    result = finalize_submission(
        db,
        submission,
        [payload_to_input(a) for a in answers],
        now=now,
        time_end=time_end,
        auto=is_auto_submit,
    )
    if result is None:
        raise AlreadySubmittedError(submission.status.value)

    logger.info(
        "Quiz submitted",
        extra={
            "submission_id": str(submission.id),
            "quiz_id": str(quiz_id),
            "auto": is_auto_submit,
            "time_taken_minutes": submission.time_taken_minutes,
            "percentage": float(result.percentage),
        },
    )
    return SubmitOutcome(submission=submission, result=result)


def submission_results(submission: QuizSubmission) -> dict[str, float] | None:
    """Stored aggregate of a graded submission, in the client's shape."""
    if submission.status not in (SubmissionStatus.GRADED, SubmissionStatus.PUBLISHED):
        return None
    return {
        "totalScore": float(submission.total_score or 0),
        "maxScore": float(submission.max_score or 0),
        "percentage": float(submission.percentage or 0),
    }


def get_quiz_status(db: Session, quiz_id: UUID, student_id: UUID, now: datetime) -> dict[str, Any]:
    """
    Attempt status for the polling client.

    Enforces the deadline first, so polling an expired attempt auto-submits it.
    """
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_FOUND)

    submission = get_submission(db, quiz_id, student_id)
    if submission is None:
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_ASSIGNED)
    if submission.status == SubmissionStatus.NOT_STARTED:
        return {
            "status": SubmissionStatus.NOT_STARTED,
            "time_left_seconds": None,
            "duration_minutes": quiz.duration_minutes,
        }

    auto_submitted_now = finalize_if_expired(db, submission, now)
    deadline = compute_deadline(quiz, submission.started_at)

    data: dict[str, Any] = {
        "status": submission.status,
        "ends_at": deadline,
        "duration_minutes": quiz.duration_minutes,
    }
    if submission.status == SubmissionStatus.IN_PROGRESS:
        data["time_left_seconds"] = seconds_left(deadline, now)
        data["answers"] = draft_answers(submission)
    else:
        data["time_left_seconds"] = 0
        data["results"] = submission_results(submission)
        data["time_taken_minutes"] = submission.time_taken_minutes

    if auto_submitted_now:
        data["message"] = "Time expired, quiz auto-submitted"
    return data
