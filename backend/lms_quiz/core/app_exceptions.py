"""Application-specific exceptions for consistent error handling."""

from datetime import datetime
from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Application error with standardized error code."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
    ):
        """Initialize application error."""
        super().__init__(
            status_code=status_code,
            detail={
                "code": code,
                "message": message,
                "details": details,
            },
        )
        self.code = code
        self.message = message
        self.details = details


# ============================================================================
# Quiz attempt errors
# ============================================================================


class QuizNotAccessibleError(AppError):
    """Quiz missing, not assigned to the student, unpublished, or outside its window."""

    NOT_FOUND = "not_found"
    NOT_ASSIGNED = "not_assigned"
    NOT_PUBLISHED = "not_published"
    NOT_STARTED = "not_started"
    ENDED = "ended"

    _MESSAGES = {
        NOT_FOUND: "Quiz not found",
        NOT_ASSIGNED: "Quiz is not assigned to you",
        NOT_PUBLISHED: "Quiz is not published",
        NOT_STARTED: "Quiz has not started yet",
        ENDED: "Quiz has ended",
    }

    def __init__(self, reason: str, at: datetime | None = None):
        details: dict[str, Any] = {"reason": reason}
        if at is not None and reason == self.NOT_STARTED:
            details["starts_at"] = at.isoformat()
        elif at is not None and reason == self.ENDED:
            details["ended_at"] = at.isoformat()
        super().__init__(
            status_code=(
                status.HTTP_404_NOT_FOUND if reason == self.NOT_FOUND else status.HTTP_403_FORBIDDEN
            ),
            code="QUIZ_NOT_ACCESSIBLE",
            message=self._MESSAGES.get(reason, "Quiz is not accessible"),
            details=details,
        )
        self.reason = reason


class AlreadySubmittedError(AppError):
    """Start or submit attempted on a finalized submission."""

    def __init__(self, current_status: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code="ALREADY_SUBMITTED",
            message="Quiz already submitted",
            details={"status": current_status},
        )


class NoActiveSessionError(AppError):
    """No in-progress attempt exists for the (quiz, student) pair."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="NO_ACTIVE_SESSION",
            message="No active quiz session found",
        )


class AnswerValidationError(AppError):
    """Answer payload rejected before any write."""

    def __init__(self, message: str, details: dict[str, Any] | list[Any] | None = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class InternalError(AppError):
    """Persistence or grading failure; carries no internals to the caller."""

    def __init__(self, message: str = "An internal server error occurred"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="INTERNAL_ERROR",
            message=message,
        )


def not_found(message: str) -> AppError:
    return AppError(status_code=status.HTTP_404_NOT_FOUND, code="NOT_FOUND", message=message)


def forbidden(message: str = "Access denied") -> AppError:
    return AppError(status_code=status.HTTP_403_FORBIDDEN, code="FORBIDDEN", message=message)


def unauthorized(message: str) -> AppError:
    return AppError(status_code=status.HTTP_401_UNAUTHORIZED, code="UNAUTHORIZED", message=message)
