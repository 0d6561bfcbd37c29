"""Submission results for teachers and students."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from lms_quiz.core.app_exceptions import AnswerValidationError, AppError, not_found
from lms_quiz.core.logging import get_logger
from lms_quiz.models.quiz import Quiz
from lms_quiz.models.submission import (
    FINALIZED_STATUSES,
    QuizSubmission,
    StudentAnswer,
    SubmissionStatus,
)
from lms_quiz.models.user import User
from lms_quiz.schemas.submission import GradeOverride, StudentResultOut
from lms_quiz.services.grading import compute_percentage, quantize
from lms_quiz.services.quiz_session import get_submission

logger = get_logger(__name__)

# A teacher may (re)grade anything finalized that the student cannot see yet
GRADABLE_STATUSES = frozenset(
    {SubmissionStatus.SUBMITTED, SubmissionStatus.AUTO_SUBMITTED, SubmissionStatus.GRADED}
)


def list_submissions(db: Session, quiz: Quiz) -> list[QuizSubmission]:
    stmt = (
        select(QuizSubmission)
        .where(QuizSubmission.quiz_id == quiz.id)
        .order_by(QuizSubmission.submitted_at.desc().nulls_last(), QuizSubmission.created_at)
    )
    return list(db.execute(stmt).scalars().all())


def get_submission_detail(db: Session, quiz: Quiz, submission_id: UUID) -> QuizSubmission:
    stmt = (
        select(QuizSubmission)
        .where(QuizSubmission.id == submission_id, QuizSubmission.quiz_id == quiz.id)
        .options(selectinload(QuizSubmission.answers))
    )
    submission = db.execute(stmt).scalar_one_or_none()
    if submission is None:
        raise not_found("Submission not found")
    return submission


def publish_result(db: Session, quiz: Quiz, submission_id: UUID, now: datetime) -> QuizSubmission:
    """
    Release a graded result to its student.

    Raises:
        AppError: 404 if the submission is not part of the quiz, 409 unless it is graded
    """
    submission = get_submission_detail(db, quiz, submission_id)

    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status == SubmissionStatus.GRADED,
        )
        .values(status=SubmissionStatus.PUBLISHED, published_at=now)
    )
    db.commit()
    db.refresh(submission)

    if moved.rowcount != 1:
        raise AppError(
            status_code=status.HTTP_409_CONFLICT,
            code="NOT_GRADED",
            message="Only graded submissions can be published",
            details={"status": submission.status.value},
        )

    logger.info(
        "Result published",
        extra={"submission_id": str(submission.id), "quiz_id": str(quiz.id)},
    )
    return submission


def grade_submission(
    db: Session,
    quiz: Quiz,
    submission_id: UUID,
    grades: list[GradeOverride],
    teacher_comments: str | None,
    grader: User,
    now: datetime,
) -> QuizSubmission:
    """
    Override the automatic grade of a finalized, unpublished submission.

    Each override replaces one question's ``marks_awarded`` (0 up to the
    question's marks) and feedback; questions the student left blank get an
    answer row carrying only the teacher's marks. Totals are recomputed over
    all answer rows and the submission ends up ``graded``. Later overrides for
    the same question replace earlier ones.

    Raises:
        AppError: 404 if the submission is not part of the quiz, 409 unless it
            is submitted, auto-submitted or graded
        AnswerValidationError: unknown question, or marks above the question's
    """
    submission = get_submission_detail(db, quiz, submission_id)
    if submission.status not in GRADABLE_STATUSES:
        raise not_gradable(submission)

    marks_by_question = {q.id: Decimal(q.marks) for q in quiz.questions}
    overrides = {g.question_id: g for g in grades}
    unknown = sorted(str(qid) for qid in overrides if qid not in marks_by_question)
    if unknown:
        raise AnswerValidationError(
            "Grades reference questions that are not part of this quiz",
            details={"question_ids": unknown},
        )
    too_high = sorted(
        str(qid) for qid, g in overrides.items() if g.marks_awarded > marks_by_question[qid]
    )
    if too_high:
        raise AnswerValidationError(
            "Awarded marks exceed the question's marks", details={"question_ids": too_high}
        )

    rows = {row.question_id: row for row in submission.answers}
    for question_id in overrides:
        if question_id not in rows:
            rows[question_id] = StudentAnswer(submission_id=submission.id, question_id=question_id)

    awarded = {
        question_id: (
            quantize(overrides[question_id].marks_awarded)
            if question_id in overrides
            else Decimal(row.marks_awarded or 0)
        )
        for question_id, row in rows.items()
        if question_id in marks_by_question
    }
    total_score = quantize(sum(awarded.values(), Decimal("0")))
    max_score = quantize(sum(marks_by_question.values(), Decimal("0")))

    moved = db.execute(
        update(QuizSubmission)
        .where(
            QuizSubmission.id == submission.id,
            QuizSubmission.status.in_(GRADABLE_STATUSES),
        )
        .values(
            status=SubmissionStatus.GRADED,
            total_score=total_score,
            max_score=max_score,
            percentage=compute_percentage(total_score, max_score),
            graded_at=now,
            graded_by=grader.id,
            teacher_comments=teacher_comments,
        )
    )
    if moved.rowcount != 1:
        db.rollback()
        db.refresh(submission)
        raise not_gradable(submission)

    for question_id, override in overrides.items():
        row = rows[question_id]
        row.marks_awarded = awarded[question_id]
        row.is_correct = awarded[question_id] == marks_by_question[question_id]
        row.teacher_feedback = override.teacher_feedback
        db.add(row)
    db.commit()
    db.refresh(submission)

    logger.info(
        "Submission graded manually",
        extra={
            "submission_id": str(submission.id),
            "quiz_id": str(quiz.id),
            "grader_id": str(grader.id),
            "overrides": len(overrides),
            "total_score": float(total_score),
        },
    )
    return submission


def not_gradable(submission: QuizSubmission) -> AppError:
    return AppError(
        status_code=status.HTTP_409_CONFLICT,
        code="NOT_GRADABLE",
        message="Only submitted or graded, unpublished submissions can be graded",
        details={"status": submission.status.value},
    )


def list_student_results(db: Session, student_id: UUID) -> list[StudentResultOut]:
    """A student's finalized attempts across quizzes, most recent first."""
    stmt = (
        select(QuizSubmission, Quiz.title)
        .join(Quiz, Quiz.id == QuizSubmission.quiz_id)
        .where(
            QuizSubmission.student_id == student_id,
            QuizSubmission.status.in_(FINALIZED_STATUSES),
        )
        .order_by(QuizSubmission.submitted_at.desc().nulls_last(), QuizSubmission.created_at)
    )

    results = []
    for submission, title in db.execute(stmt).all():
        item = StudentResultOut(
            submission_id=submission.id,
            quiz_id=submission.quiz_id,
            quiz_title=title,
            status=submission.status,
            submitted_at=submission.submitted_at,
            time_taken_minutes=submission.time_taken_minutes,
            was_auto_submitted=submission.was_auto_submitted,
            published_at=submission.published_at,
        )
        if submission.status == SubmissionStatus.PUBLISHED:
            item.total_score = float(submission.total_score or 0)
            item.max_score = float(submission.max_score or 0)
            item.percentage = float(submission.percentage or 0)
            item.teacher_comments = submission.teacher_comments
        results.append(item)
    return results


def get_student_result(db: Session, quiz_id: UUID, student_id: UUID) -> QuizSubmission:
    """A student's own result, once their teacher has published it."""
    submission = get_submission(db, quiz_id, student_id)
    if submission is None:
        raise not_found("Submission not found")
    if submission.status != SubmissionStatus.PUBLISHED:
        raise AppError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="RESULTS_NOT_PUBLISHED",
            message="Results not yet published",
            details={"status": submission.status.value},
        )
    db.refresh(submission, attribute_names=["answers"])
    return submission
