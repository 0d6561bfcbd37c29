"""Liveness and readiness endpoints for the orchestrator."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms_quiz.common.request_id import get_request_id
from lms_quiz.core.logging import get_logger
from lms_quiz.db.session import get_db

router = APIRouter()
logger = get_logger(__name__)

CheckStatus = Literal["ok", "down"]


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessCheck(BaseModel):
    status: CheckStatus
    message: str | None = None


class ReadinessResponse(BaseModel):
    status: CheckStatus
    checks: dict[str, ReadinessCheck]
    request_id: str | None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """The process is up."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(request: Request, db: Annotated[Session, Depends(get_db)]) -> ReadinessResponse:
    """The database answers queries. Reports ``down`` with a 200 so the body stays readable."""
    try:
        db.execute(text("SELECT 1"))
        db_check = ReadinessCheck(status="ok")
    except SQLAlchemyError as e:
        logger.warning("Database not ready", extra={"error": str(e)})
        db_check = ReadinessCheck(status="down", message=type(e).__name__)

    return ReadinessResponse(
        status=db_check.status, checks={"db": db_check}, request_id=get_request_id(request)
    )
