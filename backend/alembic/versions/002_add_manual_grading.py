"""Add teacher comments and per-answer feedback for manual grade overrides

Revision ID: 002
Revises: 001
Create Date: 2026-10-17 09:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("quiz_submissions", sa.Column("teacher_comments", sa.Text(), nullable=True))
    op.add_column("quiz_submissions", sa.Column("graded_by", postgresql.UUID(as_uuid=True), nullable=True))
    op.create_foreign_key(
        "fk_quiz_submissions_graded_by",
        "quiz_submissions",
        "users",
        ["graded_by"],
        ["id"],
        ondelete="SET NULL",
    )
    op.add_column("student_answers", sa.Column("teacher_feedback", sa.Text(), nullable=True))


def downgrade() -> None:
    op.drop_column("student_answers", "teacher_feedback")
    op.drop_constraint("fk_quiz_submissions_graded_by", "quiz_submissions", type_="foreignkey")
    op.drop_column("quiz_submissions", "graded_by")
    op.drop_column("quiz_submissions", "teacher_comments")
