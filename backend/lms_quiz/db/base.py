"""Declarative base for all models.

Models register themselves by importing ``lms_quiz.models``; Alembic's env and
the application factory import that package before touching metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass
