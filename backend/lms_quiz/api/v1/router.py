"""API v1 router - includes all v1 endpoints."""

from fastapi import APIRouter

from lms_quiz.api.v1.endpoints import health, quiz_sessions, quizzes, submissions

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, prefix="", tags=["Health"])
api_router.include_router(quizzes.router, prefix="/quizzes", tags=["Quizzes"])
api_router.include_router(quiz_sessions.router, prefix="/quizzes", tags=["Quiz Sessions"])
api_router.include_router(submissions.router, prefix="/quizzes", tags=["Results"])
