"""ASGI entry point: ``uvicorn lms_quiz.main:app``."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import lms_quiz.models  # noqa: F401  registers tables on Base.metadata
from lms_quiz.api.v1.router import api_router
from lms_quiz.common.request_id import RequestIDMiddleware
from lms_quiz.core.clock import get_clock
from lms_quiz.core.config import settings
from lms_quiz.core.errors import register_exception_handlers
from lms_quiz.core.logging import setup_logging
from lms_quiz.db.base import Base
from lms_quiz.db.session import SessionLocal, engine
from lms_quiz.jobs.scheduler import ReconciliationScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.ENV == "dev":
        # Other environments are migrated with alembic
        Base.metadata.create_all(bind=engine)

    scheduler = None
    if settings.RECONCILE_ENABLED:
        scheduler = ReconciliationScheduler(
            SessionLocal, get_clock(), interval_seconds=settings.RECONCILE_INTERVAL_SECONDS
        )
        scheduler.start()
    app.state.reconcile_scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


def create_app() -> FastAPI:
    show_docs = settings.ENV != "prod"
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Timed quiz attempts, grading and result publishing",
        openapi_url="/openapi.json" if show_docs else None,
        docs_url="/docs" if show_docs else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Last added runs first: CORS wraps request ids
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
