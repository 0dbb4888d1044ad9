import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from quizdesk.db.base import Base


class QuestionType(str, enum.Enum):
    mcq = "mcq"
    truefalse = "truefalse"
    short = "short"
    text = "text"


OPTION_TYPES = frozenset({QuestionType.mcq, QuestionType.truefalse})


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Minutes; null or 0 means unlimited.
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Null or 0 means unlimited.
    attempts_allowed: Mapped[int | None] = mapped_column(Integer, nullable=True)

    visibility: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("quizzes.id"), index=True)

    text: Mapped[str] = mapped_column(Text, default="")
    type: Mapped[QuestionType] = mapped_column(Enum(QuestionType), index=True)
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    # A string (or other JSON scalar) for single answers, a list of strings for multi-select.
    correct_answer: Mapped[Any] = mapped_column(JSON, nullable=True)
    points: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
