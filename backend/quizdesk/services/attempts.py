from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from quizdesk.core.errors import AlreadySubmitted, InvalidInput, NotFound, QuotaExceeded, TimeLimitExceeded
from quizdesk.core.sessions import Identity
from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.models.user import User
from quizdesk.services.grading import GradeReport, grade

log = logging.getLogger(__name__)

# Upper bound of the 32-bit integer score column.
MAX_SCORE = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_minutes(start: datetime, now: datetime) -> float:
    return (_as_utc(now) - _as_utc(start)).total_seconds() / 60.0


def _is_limited(value: int | None) -> bool:
    return value is not None and int(value) > 0


@dataclass
class AttemptStart:
    attempt: Attempt
    attempt_no: int
    time_limit: int | None


@dataclass
class ScoreOverride:
    attempt: Attempt
    previous_score: int | None


@dataclass
class AttemptDetail:
    attempt: Attempt
    quiz_title: str
    username: str
    questions: list[Question]
    report: GradeReport | None


class AttemptEngine:
    """Attempt lifecycle: start, submit (time limit + auto-grade), score override.

    The caller's identity is always passed in explicitly; role checks belong to
    the API layer. Every mutating operation performs its reads first and ends
    with exactly one write, so a rejected call leaves no partial state.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] | None = None):
        self.db = db
        self.clock = clock or utcnow

    def _get_quiz(self, quiz_id: uuid.UUID, *, lock: bool = False) -> Quiz:
        stmt = select(Quiz).where(Quiz.id == quiz_id)
        if lock:
            stmt = stmt.with_for_update()
        quiz = self.db.scalar(stmt)
        if quiz is None:
            raise NotFound("Quiz not found")
        return quiz

    def _get_attempt(self, attempt_id: uuid.UUID) -> Attempt:
        attempt = self.db.scalar(select(Attempt).where(Attempt.id == attempt_id))
        if attempt is None:
            raise NotFound("Attempt not found")
        return attempt

    def count_attempts(self, user_id: uuid.UUID, quiz_id: uuid.UUID) -> int:
        return int(
            self.db.scalar(
                select(func.count(Attempt.id)).where(Attempt.user_id == user_id, Attempt.quiz_id == quiz_id)
            )
            or 0
        )

    def start_attempt(self, identity: Identity, quiz_id: uuid.UUID) -> AttemptStart:
        # The quiz row lock serializes concurrent starts for this quiz, so the
        # count below cannot be raced into over-admission (PostgreSQL).
        quiz = self._get_quiz(quiz_id, lock=True)
        if not quiz.visibility and not identity.is_author:
            raise NotFound("Quiz not found")

        # Unsubmitted attempts count too; abandoning an attempt does not refund it.
        used = self.count_attempts(identity.id, quiz.id)
        if _is_limited(quiz.attempts_allowed) and used >= int(quiz.attempts_allowed):
            self.db.rollback()
            log.info("attempt quota reached user=%s quiz=%s used=%s", identity.id, quiz.id, used)
            raise QuotaExceeded()

        attempt = Attempt(
            quiz_id=quiz.id,
            user_id=identity.id,
            start_time=self.clock(),
            submitted_at=None,
            answers=None,
            score=None,
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)

        log.info("attempt started id=%s user=%s quiz=%s", attempt.id, identity.id, quiz.id)
        return AttemptStart(attempt=attempt, attempt_no=used + 1, time_limit=quiz.time_limit)

    def submit_attempt(self, identity: Identity, attempt_id: uuid.UUID, answers: dict[str, Any] | None) -> Attempt:
        attempt = self._get_attempt(attempt_id)
        if attempt.user_id != identity.id:
            raise NotFound("Attempt not found")
        if attempt.submitted_at is not None:
            raise AlreadySubmitted()

        quiz = self._get_quiz(attempt.quiz_id)
        now = self.clock()

        if _is_limited(quiz.time_limit):
            elapsed = elapsed_minutes(attempt.start_time, now)
            if elapsed > float(quiz.time_limit):
                self.db.rollback()
                log.info(
                    "attempt submission rejected (time limit) id=%s elapsed=%.2f limit=%s",
                    attempt.id,
                    elapsed,
                    quiz.time_limit,
                )
                raise TimeLimitExceeded()

        questions = list(self.db.scalars(select(Question).where(Question.quiz_id == quiz.id)))
        payload = dict(answers or {})
        report = grade(questions, payload)

        # Single conditional write: the submitted transition happens at most once.
        # The auto-grade supersedes any earlier manual score.
        result = self.db.execute(
            update(Attempt)
            .where(Attempt.id == attempt.id, Attempt.submitted_at.is_(None))
            .values(answers=payload, score=report.score, submitted_at=now, graded_manually=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise AlreadySubmitted()
        self.db.commit()
        self.db.refresh(attempt)

        log.info(
            "attempt submitted id=%s user=%s score=%s/%s",
            attempt.id,
            identity.id,
            report.score,
            report.max_score,
        )
        return attempt

    def override_score(self, identity: Identity, attempt_id: uuid.UUID, new_score: Any) -> ScoreOverride:
        if new_score is None:
            raise InvalidInput("Score is required")
        if isinstance(new_score, bool) or not isinstance(new_score, int):
            raise InvalidInput("Score must be an integer")
        if new_score < 0:
            raise InvalidInput("Score must not be negative")
        if new_score > MAX_SCORE:
            raise InvalidInput("Score is out of range")

        attempt = self._get_attempt(attempt_id)
        previous = attempt.score

        # In-progress attempts may be graded as well; graded_manually marks it.
        attempt.score = int(new_score)
        attempt.graded_manually = True
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)

        log.info(
            "attempt score overridden id=%s by=%s previous=%s new=%s",
            attempt.id,
            identity.id,
            previous,
            attempt.score,
        )
        return ScoreOverride(attempt=attempt, previous_score=previous)

    def list_own_attempts(self, identity: Identity) -> list[Attempt]:
        return list(
            self.db.scalars(
                select(Attempt)
                .where(Attempt.user_id == identity.id, Attempt.submitted_at.is_not(None))
                .order_by(Attempt.start_time.desc())
            )
        )

    def list_quiz_attempts(self, quiz_id: uuid.UUID) -> list[tuple[Attempt, str]]:
        quiz = self._get_quiz(quiz_id)
        rows = self.db.execute(
            select(Attempt, User.username)
            .join(User, User.id == Attempt.user_id)
            .where(Attempt.quiz_id == quiz.id)
            .order_by(Attempt.submitted_at.desc().nulls_last(), Attempt.start_time.desc())
        ).all()
        return [(a, username) for a, username in rows]

    def get_attempt_detail(self, attempt_id: uuid.UUID) -> AttemptDetail:
        row = self.db.execute(
            select(Attempt, Quiz.title, User.username)
            .join(Quiz, Quiz.id == Attempt.quiz_id)
            .join(User, User.id == Attempt.user_id)
            .where(Attempt.id == attempt_id)
        ).first()
        if row is None:
            raise NotFound("Attempt not found")
        attempt, quiz_title, username = row

        questions = list(
            self.db.scalars(
                select(Question).where(Question.quiz_id == attempt.quiz_id).order_by(Question.created_at, Question.id)
            )
        )
        report = grade(questions, attempt.answers) if attempt.submitted_at is not None else None
        return AttemptDetail(
            attempt=attempt,
            quiz_title=quiz_title,
            username=username,
            questions=questions,
            report=report,
        )
