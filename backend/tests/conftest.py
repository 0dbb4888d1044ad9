import os
import sys
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Must be set before quizdesk.db.session builds its engine.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from quizdesk.core.config import settings
from quizdesk.core.sessions import Identity, create_session
from quizdesk.db.base import Base
from quizdesk.db import session as session_module
from quizdesk.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
from quizdesk.models import Attempt, Question, QuestionType, Quiz, SecurityAuditEvent, User, UserRole  # noqa: F401
from quizdesk.routers.auth import hash_password


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}
        self._sets: dict[str, set[str]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def set(self, key: str, value: str, ex: int | None = None):
        exp = (self._now() + int(ex)) if ex else None
        self._data[key] = (value, exp)
        return True

    def delete(self, key: str):
        removed = int(self._data.pop(key, None) is not None) + int(self._sets.pop(key, None) is not None)
        return removed

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))

    def sadd(self, key: str, *members: str):
        s = self._sets.setdefault(key, set())
        before = len(s)
        s.update(members)
        return len(s) - before

    def smembers(self, key: str):
        return set(self._sets.get(key, set()))

    def srem(self, key: str, *members: str):
        s = self._sets.get(key, set())
        n = len(s & set(members))
        s.difference_update(members)
        return n

    def flushall(self):
        self._data.clear()
        self._sets.clear()


# Configure test DB (SQLite in-memory) at import time so everything importing
# quizdesk.db.session.SessionLocal gets the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (sessions + rate limiting + readiness).
_mem_redis = _MemoryRedis()
import quizdesk.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import quizdesk.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import quizdesk.core.sessions as sessions_module
sessions_module.get_redis = lambda: _mem_redis

import quizdesk.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis


PASSWORD = "testpass123"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def _clean_state():
    Base.metadata.drop_all(bind=_engine)
    Base.metadata.create_all(bind=_engine)
    _mem_redis.flushall()
    settings.rate_limit_enabled = False
    settings.allow_public_register = True
    yield


@pytest.fixture(scope="session")
def app():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def redis_stub():
    return _mem_redis


@dataclass
class Actor:
    id: uuid.UUID
    username: str
    role: UserRole
    headers: dict[str, str]

    @property
    def identity(self) -> Identity:
        return Identity(id=self.id, username=self.username, role=self.role)


@pytest.fixture()
def make_actor(db):
    def _make(role: UserRole = UserRole.student, username: str | None = None) -> Actor:
        user = User(
            username=username or f"{role.value}_{uuid.uuid4().hex[:8]}",
            role=role,
            password_hash=_PASSWORD_HASH,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        identity = Identity(id=user.id, username=user.username, role=user.role)
        sid = create_session(identity)
        return Actor(
            id=user.id,
            username=user.username,
            role=user.role,
            headers={"Cookie": f"{settings.session_cookie_name}={sid}"},
        )

    return _make


@pytest.fixture()
def student(make_actor):
    return make_actor(UserRole.student)


@pytest.fixture()
def teacher(make_actor):
    return make_actor(UserRole.teacher)


@pytest.fixture()
def staff(make_actor):
    return make_actor(UserRole.staff)


@pytest.fixture()
def admin(make_actor):
    return make_actor(UserRole.admin)


@pytest.fixture()
def make_quiz(db):
    """Create a quiz with questions directly in the database.

    ``questions`` is a list of dicts with ``type``, ``correct_answer`` and
    optionally ``options``, ``points`` and ``text``.
    """

    def _make(author: Actor, *, questions=(), visibility=True, time_limit=None, attempts_allowed=None, title="Quiz"):
        quiz = Quiz(
            title=title,
            description=None,
            time_limit=time_limit,
            attempts_allowed=attempts_allowed,
            visibility=visibility,
            created_by=author.id,
        )
        db.add(quiz)
        db.flush()
        for i, item in enumerate(questions):
            db.add(
                Question(
                    quiz_id=quiz.id,
                    text=item.get("text", f"Question {i + 1}"),
                    type=QuestionType(item["type"]),
                    options=item.get("options"),
                    correct_answer=item.get("correct_answer"),
                    points=item.get("points"),
                )
            )
        db.commit()
        db.refresh(quiz)
        return quiz

    return _make


def question_ids(db, quiz) -> dict[str, str]:
    """Question text -> question id for one quiz."""
    rows = db.query(Question).filter(Question.quiz_id == quiz.id).all()
    return {q.text: str(q.id) for q in rows}


@pytest.fixture()
def qids(db):
    return lambda quiz: question_ids(db, quiz)
