"""Database models."""

# Import all models here so Alembic can detect them
from lms_quiz.models.jobs import JobRun
from lms_quiz.models.quiz import Question, QuestionOption, QuestionType, Quiz, QuizStatus
from lms_quiz.models.submission import QuizSubmission, StudentAnswer, SubmissionStatus
from lms_quiz.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Quiz",
    "QuizStatus",
    "Question",
    "QuestionType",
    "QuestionOption",
    "QuizSubmission",
    "StudentAnswer",
    "SubmissionStatus",
    "JobRun",
]
