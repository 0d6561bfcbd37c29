"""Engine and session wiring for the quiz database."""

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from lms_quiz.core.config import settings


def create_db_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Sessions are shared with the reconciliation thread
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    """
    Sessions used by requests and by the sweeper.

    Objects stay readable after commit: services commit and then build
    responses from the same instances.
    """
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session; uncommitted work is rolled back if the handler raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
