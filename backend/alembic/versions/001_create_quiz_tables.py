"""Create users, quiz, submission and job run tables

Revision ID: 001
Revises:
Create Date: 2026-10-01 10:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

quiz_status = postgresql.ENUM("draft", "published", name="quiz_status", create_type=False)
question_type = postgresql.ENUM(
    "yes_no", "mcq_single", "mcq_multiple", name="question_type", create_type=False
)
submission_status = postgresql.ENUM(
    "not_started",
    "in_progress",
    "submitted",
    "auto_submitted",
    "graded",
    "published",
    name="submission_status",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    quiz_status.create(bind, checkfirst=True)
    question_type.create(bind, checkfirst=True)
    submission_status.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "quizzes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column(
            "teacher_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", quiz_status, nullable=False, server_default="draft"),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("auto_submit", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("total_marks", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_quizzes_teacher_id", "quizzes", ["teacher_id"])
    op.create_index("ix_quizzes_status_end_date", "quizzes", ["status", "end_date"])

    op.create_table(
        "questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "quiz_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_type", question_type, nullable=False),
        sa.Column("question_order", sa.Integer(), nullable=False),
        sa.Column("marks", sa.Numeric(8, 2), nullable=False, server_default="1"),
        sa.Column("correct_answer", sa.String(50), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "question_options",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("option_text", sa.Text(), nullable=False),
        sa.Column("option_order", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default="false"),
    )
    op.create_index("ix_question_options_question_id", "question_options", ["question_id"])

    op.create_table(
        "quiz_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "quiz_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", submission_status, nullable=False, server_default="not_started"),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("time_taken_minutes", sa.Integer(), nullable=True),
        sa.Column("was_auto_submitted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("auto_saved_data", sa.JSON(), nullable=True),
        sa.Column("total_score", sa.Numeric(10, 2), nullable=True),
        sa.Column("max_score", sa.Numeric(10, 2), nullable=True),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("graded_at", sa.DateTime(), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("quiz_id", "student_id", name="uq_quiz_submission_student"),
    )
    op.create_index(
        "ix_quiz_submissions_status_quiz", "quiz_submissions", ["status", "quiz_id"]
    )
    op.create_index("ix_quiz_submissions_student_id", "quiz_submissions", ["student_id"])

    op.create_table(
        "student_answers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "submission_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quiz_submissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("selected_options", sa.JSON(), nullable=True),
        sa.Column("marks_awarded", sa.Numeric(8, 2), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("submission_id", "question_id", name="uq_student_answer"),
    )
    op.create_index("ix_student_answers_submission_id", "student_answers", ["submission_id"])

    op.create_table(
        "job_run",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("job_key", sa.String(100), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="QUEUED"),
        sa.Column("stats_json", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("error_text", sa.Text(), nullable=True),
    )
    op.create_index("ix_job_run_job_key", "job_run", ["job_key"])
    op.create_index("ix_job_run_status", "job_run", ["status"])


def downgrade() -> None:
    op.drop_table("job_run")
    op.drop_table("student_answers")
    op.drop_table("quiz_submissions")
    op.drop_table("question_options")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    submission_status.drop(bind, checkfirst=True)
    question_type.drop(bind, checkfirst=True)
    quiz_status.drop(bind, checkfirst=True)
