from __future__ import annotations

import argparse
import os
import sys

# Allow running as `python scripts/seed_users.py` from the backend directory.
sys.path.append(os.getcwd())

from sqlalchemy import select

from quizdesk.core.config import settings
from quizdesk.db.session import SessionLocal
from quizdesk.models.user import User, UserRole
from quizdesk.routers.auth import hash_password


def ensure_user(db, *, username: str, role: UserRole, password: str) -> tuple[User, bool]:
    """Create the user unless the username is taken. Returns (user, created)."""
    existing = db.scalar(select(User).where(User.username == username))
    if existing is not None:
        return existing, False

    u = User(username=username, role=role, password_hash=hash_password(password))
    db.add(u)
    db.commit()
    db.refresh(u)
    return u, True


def main() -> None:
    parser = argparse.ArgumentParser(description="Ensure the bootstrap admin (and optional demo users) exist")
    parser.add_argument("--admin-username", default=os.environ.get("QUIZDESK_SEED_ADMIN_USERNAME", "admin"))
    parser.add_argument("--admin-password", default=os.environ.get("QUIZDESK_SEED_ADMIN_PASSWORD"))
    parser.add_argument("--with-demo-users", action="store_true", help="Also create demo teacher and student accounts")
    args = parser.parse_args()

    if not args.admin_password:
        parser.error("--admin-password (or QUIZDESK_SEED_ADMIN_PASSWORD) is required")
    if len(args.admin_password) < int(settings.password_min_length or 0):
        parser.error(f"admin password must be at least {settings.password_min_length} characters")

    accounts = [(args.admin_username, UserRole.admin, args.admin_password)]
    if args.with_demo_users:
        accounts += [
            ("teacher", UserRole.teacher, os.environ.get("QUIZDESK_SEED_TEACHER_PASSWORD", "teacher123")),
            ("student", UserRole.student, os.environ.get("QUIZDESK_SEED_STUDENT_PASSWORD", "student123")),
        ]

    with SessionLocal() as db:
        print("Users created/ensured:")
        for username, role, password in accounts:
            _, created = ensure_user(db, username=username, role=role, password=password)
            print(f"  {role.value}: {username} ({'created' if created else 'exists'})")


if __name__ == "__main__":
    main()
