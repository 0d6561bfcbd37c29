"""Quiz authoring: create, edit, publish, assign and delete quizzes."""

from decimal import Decimal
from uuid import UUID

from fastapi import status
from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from lms_quiz.core.app_exceptions import (
    AnswerValidationError,
    AppError,
    QuizNotAccessibleError,
    forbidden,
    not_found,
)
from lms_quiz.core.logging import get_logger
from lms_quiz.models.quiz import Question, QuestionOption, Quiz, QuizStatus
from lms_quiz.models.submission import FINALIZED_STATUSES, QuizSubmission, SubmissionStatus
from lms_quiz.models.user import User, UserRole
from lms_quiz.schemas.quiz import QuestionCreate, QuizCreate, QuizSummaryOut

logger = get_logger(__name__)


def quiz_not_editable(quiz: Quiz) -> AppError:
    return AppError(
        status_code=status.HTTP_409_CONFLICT,
        code="QUIZ_NOT_EDITABLE",
        message="Questions can only be changed while the quiz is a draft",
        details={"status": quiz.status.value},
    )


def build_questions(questions: list[QuestionCreate]) -> list[Question]:
    """ORM questions (with options) in payload order."""
    built = []
    for order, q in enumerate(questions, start=1):
        built.append(
            Question(
                question_text=q.question_text,
                question_type=q.question_type,
                question_order=order,
                marks=q.marks,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
                options=[
                    QuestionOption(
                        option_text=opt.option_text,
                        option_order=opt_order,
                        is_correct=opt.is_correct,
                    )
                    for opt_order, opt in enumerate(q.options, start=1)
                ],
            )
        )
    return built


def sum_marks(questions: list[QuestionCreate]) -> Decimal:
    return sum((q.marks for q in questions), Decimal("0"))


def load_quiz(db: Session, quiz_id: UUID) -> Quiz | None:
    stmt = (
        select(Quiz)
        .where(Quiz.id == quiz_id)
        .options(selectinload(Quiz.questions).selectinload(Question.options))
    )
    return db.execute(stmt).scalar_one_or_none()


def get_owned_quiz(db: Session, quiz_id: UUID, user: User) -> Quiz:
    """Quiz the user may manage: their own, or any for an admin."""
    quiz = load_quiz(db, quiz_id)
    if quiz is None:
        raise not_found("Quiz not found")
    if UserRole(user.role) != UserRole.ADMIN and quiz.teacher_id != user.id:
        raise forbidden("You do not own this quiz")
    return quiz


def get_visible_quiz(db: Session, quiz_id: UUID, user: User) -> Quiz:
    """Quiz as its reader may see it; students only see published quizzes assigned to them."""
    if UserRole(user.role) != UserRole.STUDENT:
        return get_owned_quiz(db, quiz_id, user)
    quiz = load_quiz(db, quiz_id)
    if quiz is None or quiz.status != QuizStatus.PUBLISHED:
        raise not_found("Quiz not found")
    if not is_assigned(db, quiz.id, user.id):
        raise QuizNotAccessibleError(QuizNotAccessibleError.NOT_ASSIGNED)
    return quiz


def is_assigned(db: Session, quiz_id: UUID, student_id: UUID) -> bool:
    stmt = select(QuizSubmission.id).where(
        QuizSubmission.quiz_id == quiz_id,
        QuizSubmission.student_id == student_id,
    )
    return db.execute(stmt).first() is not None


def list_quizzes(db: Session, user: User) -> list[QuizSummaryOut]:
    """
    Quizzes visible to the user, newest first.

    Teachers get their own quizzes and admins every quiz, each with assignment
    and submission counts. Students get the published quizzes assigned to
    them, with their own attempt status.
    """
    if UserRole(user.role) == UserRole.STUDENT:
        stmt = (
            select(Quiz, QuizSubmission.status)
            .join(QuizSubmission, QuizSubmission.quiz_id == Quiz.id)
            .where(QuizSubmission.student_id == user.id, Quiz.status == QuizStatus.PUBLISHED)
            .order_by(Quiz.created_at.desc())
        )
        return [
            QuizSummaryOut.model_validate(quiz).model_copy(update={"attempt_status": attempt})
            for quiz, attempt in db.execute(stmt).all()
        ]

    counts = (
        select(
            QuizSubmission.quiz_id,
            func.count(QuizSubmission.id).label("assigned"),
            func.count(case((QuizSubmission.status.in_(FINALIZED_STATUSES), 1))).label("submitted"),
        )
        .group_by(QuizSubmission.quiz_id)
        .subquery()
    )
    stmt = (
        select(Quiz, counts.c.assigned, counts.c.submitted)
        .outerjoin(counts, counts.c.quiz_id == Quiz.id)
        .order_by(Quiz.created_at.desc())
    )
    if UserRole(user.role) != UserRole.ADMIN:
        stmt = stmt.where(Quiz.teacher_id == user.id)

    return [
        QuizSummaryOut.model_validate(quiz).model_copy(
            update={"assigned_count": assigned or 0, "submitted_count": submitted or 0}
        )
        for quiz, assigned, submitted in db.execute(stmt).all()
    ]


def create_quiz(db: Session, teacher: User, data: QuizCreate) -> Quiz:
    quiz = Quiz(
        title=data.title,
        description=data.description,
        instructions=data.instructions,
        teacher_id=teacher.id,
        status=QuizStatus.DRAFT,
        start_date=data.start_date,
        end_date=data.end_date,
        duration_minutes=data.duration_minutes,
        auto_submit=data.auto_submit,
        total_marks=data.total_marks if data.total_marks is not None else sum_marks(data.questions),
        questions=build_questions(data.questions),
    )
    db.add(quiz)
    db.commit()

    logger.info(
        "Quiz created",
        extra={"quiz_id": str(quiz.id), "teacher_id": str(teacher.id), "questions": len(data.questions)},
    )
    return load_quiz(db, quiz.id)


def replace_questions(db: Session, quiz: Quiz, questions: list[QuestionCreate]) -> Quiz:
    """Swap a draft quiz's question set and recompute its total marks."""
    if quiz.status != QuizStatus.DRAFT:
        raise quiz_not_editable(quiz)

    quiz.questions.clear()
    db.flush()
    quiz.questions.extend(build_questions(questions))
    quiz.total_marks = sum_marks(questions)
    db.commit()

    logger.info("Quiz questions replaced", extra={"quiz_id": str(quiz.id), "questions": len(questions)})
    return load_quiz(db, quiz.id)


def set_quiz_status(db: Session, quiz: Quiz, new_status: QuizStatus) -> Quiz:
    """Publish or unpublish. Setting the current status is a no-op."""
    if quiz.status == new_status:
        return quiz
    if new_status == QuizStatus.PUBLISHED and not quiz.questions:
        raise AnswerValidationError("A quiz needs at least one question to be published")

    quiz.status = new_status
    db.commit()
    logger.info("Quiz status changed", extra={"quiz_id": str(quiz.id), "status": new_status.value})
    return quiz


def assign_students(db: Session, quiz: Quiz, student_ids: list[UUID]) -> tuple[int, int]:
    """
    Assign the quiz by pre-creating each student's ``not_started`` submission.

    Only assigned students can see, start and submit the quiz.

    Existing submissions are left untouched.

    Returns:
        (created, existing) counts
    """
    wanted = list(dict.fromkeys(student_ids))

    students = set(
        db.execute(
            select(User.id).where(User.id.in_(wanted), User.role == UserRole.STUDENT.value)
        ).scalars()
    )
    missing = [str(sid) for sid in wanted if sid not in students]
    if missing:
        raise AnswerValidationError("Unknown student ids", details={"student_ids": missing})

    existing = set(
        db.execute(
            select(QuizSubmission.student_id).where(
                QuizSubmission.quiz_id == quiz.id,
                QuizSubmission.student_id.in_(wanted),
            )
        ).scalars()
    )
    new_ids = [sid for sid in wanted if sid not in existing]
    db.add_all(
        QuizSubmission(quiz_id=quiz.id, student_id=sid, status=SubmissionStatus.NOT_STARTED)
        for sid in new_ids
    )
    try:
        db.commit()
    except IntegrityError:
        # A concurrent assignment created some of the same rows; recount
        db.rollback()
        return assign_students(db, quiz, student_ids)

    logger.info(
        "Students assigned to quiz",
        extra={"quiz_id": str(quiz.id), "created": len(new_ids), "existing": len(existing)},
    )
    return len(new_ids), len(existing)


def delete_quiz(db: Session, quiz: Quiz) -> None:
    quiz_id = quiz.id
    db.delete(quiz)
    db.commit()
    logger.info("Quiz deleted", extra={"quiz_id": str(quiz_id)})
