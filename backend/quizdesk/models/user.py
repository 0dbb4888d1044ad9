import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from quizdesk.db.base import Base


class UserRole(str, enum.Enum):
    student = "student"
    teacher = "teacher"
    staff = "staff"
    admin = "admin"


# teacher and staff are interchangeable for every authorization decision.
AUTHOR_ROLES = frozenset({UserRole.teacher, UserRole.staff})


def is_author_role(role: UserRole | str) -> bool:
    """True for roles that may author quizzes and grade attempts (admin included)."""
    value = getattr(role, "value", role)
    return value in {UserRole.teacher.value, UserRole.staff.value, UserRole.admin.value}


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), index=True, default=UserRole.student)

    password_hash: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
