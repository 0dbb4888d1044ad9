"""create quizzes, questions and attempts

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "quizzes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("attempts_allowed", sa.Integer(), nullable=True),
        sa.Column("visibility", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_quizzes_visibility", "quizzes", ["visibility"], unique=False)
    op.create_index("ix_quizzes_created_by", "quizzes", ["created_by"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "type",
            sa.Enum("mcq", "truefalse", "short", "text", name="questiontype"),
            nullable=False,
        ),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("correct_answer", sa.JSON(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"], unique=False)
    op.create_index("ix_questions_type", "questions", ["type"], unique=False)

    op.create_table(
        "attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("graded_manually", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_attempts_quiz_id", "attempts", ["quiz_id"], unique=False)
    op.create_index("ix_attempts_user_id", "attempts", ["user_id"], unique=False)
    op.create_index("ix_attempts_submitted_at", "attempts", ["submitted_at"], unique=False)
    op.create_index("ix_attempts_user_quiz", "attempts", ["user_id", "quiz_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_attempts_user_quiz", table_name="attempts")
    op.drop_index("ix_attempts_submitted_at", table_name="attempts")
    op.drop_index("ix_attempts_user_id", table_name="attempts")
    op.drop_index("ix_attempts_quiz_id", table_name="attempts")
    op.drop_table("attempts")

    op.drop_index("ix_questions_type", table_name="questions")
    op.drop_index("ix_questions_quiz_id", table_name="questions")
    op.drop_table("questions")
    op.execute("DROP TYPE IF EXISTS questiontype")

    op.drop_index("ix_quizzes_created_by", table_name="quizzes")
    op.drop_index("ix_quizzes_visibility", table_name="quizzes")
    op.drop_table("quizzes")
