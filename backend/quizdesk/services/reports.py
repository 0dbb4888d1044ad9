from __future__ import annotations

import uuid
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from quizdesk.core.errors import NotFound
from quizdesk.core.sessions import Identity
from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.models.user import User, UserRole


def _percentage(score: int | None, total_questions: int) -> float:
    if not total_questions:
        return 0.0
    return round((int(score or 0) / total_questions) * 100, 1)


class ReportService:
    """Read-only aggregates over submitted attempts.

    Attempts that were started but never submitted are excluded everywhere
    except the ``in_progress_attempts`` counter of quiz analytics.
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_quiz(self, quiz_id: uuid.UUID) -> Quiz:
        quiz = self.db.scalar(select(Quiz).where(Quiz.id == quiz_id))
        if quiz is None:
            raise NotFound("Quiz not found")
        return quiz

    def leaderboard(self, quiz_id: uuid.UUID) -> List[Dict[str, Any]]:
        quiz = self._require_quiz(quiz_id)
        rows = self.db.execute(
            select(User.username, Attempt.score, Attempt.submitted_at)
            .join(User, User.id == Attempt.user_id)
            .where(Attempt.quiz_id == quiz.id, Attempt.submitted_at.is_not(None))
            # Ties: earliest submission ranks first, then attempt id.
            .order_by(Attempt.score.desc().nulls_last(), Attempt.submitted_at.asc(), Attempt.id.asc())
        ).all()
        return [
            {"rank": i, "username": username, "score": score, "submitted_at": submitted_at}
            for i, (username, score, submitted_at) in enumerate(rows, start=1)
        ]

    def analytics(self, quiz_id: uuid.UUID) -> Dict[str, Any]:
        quiz = self._require_quiz(quiz_id)
        total, avg_score, max_score, min_score = self.db.execute(
            select(
                func.count(Attempt.id),
                func.avg(Attempt.score),
                func.max(Attempt.score),
                func.min(Attempt.score),
            ).where(Attempt.quiz_id == quiz.id, Attempt.submitted_at.is_not(None))
        ).one()
        in_progress = self.db.scalar(
            select(func.count(Attempt.id)).where(Attempt.quiz_id == quiz.id, Attempt.submitted_at.is_(None))
        )
        return {
            "quiz_id": str(quiz.id),
            "total_attempts": int(total or 0),
            "avg_score": round(float(avg_score), 2) if avg_score is not None else None,
            "max_score": max_score,
            "min_score": min_score,
            "in_progress_attempts": int(in_progress or 0),
        }

    def user_report(self, identity: Identity) -> List[Dict[str, Any]]:
        question_counts = (
            select(Question.quiz_id, func.count(Question.id).label("total_questions"))
            .group_by(Question.quiz_id)
            .subquery()
        )
        rows = self.db.execute(
            select(
                Quiz.title,
                Attempt.quiz_id,
                Attempt.score,
                Attempt.submitted_at,
                func.coalesce(question_counts.c.total_questions, 0),
            )
            .join(Quiz, Quiz.id == Attempt.quiz_id)
            .outerjoin(question_counts, question_counts.c.quiz_id == Attempt.quiz_id)
            .where(Attempt.user_id == identity.id, Attempt.submitted_at.is_not(None))
            .order_by(Attempt.submitted_at.desc())
        ).all()

        items = []
        for title, quiz_id, score, submitted_at, total_questions in rows:
            items.append(
                {
                    "quiz": title,
                    "quiz_id": str(quiz_id),
                    "score": score,
                    "submitted_at": submitted_at,
                    "total_questions": int(total_questions or 0),
                    "percentage": _percentage(score, int(total_questions or 0)),
                }
            )
        return items

    def system_summary(self) -> Dict[str, Any]:
        role_rows = self.db.execute(select(User.role, func.count(User.id)).group_by(User.role)).all()
        by_role = {r.value: 0 for r in UserRole}
        for role, n in role_rows:
            by_role[getattr(role, "value", str(role))] = int(n or 0)

        published = int(self.db.scalar(select(func.count(Quiz.id)).where(Quiz.visibility.is_(True))) or 0)
        total_quizzes = int(self.db.scalar(select(func.count(Quiz.id))) or 0)
        submitted = int(self.db.scalar(select(func.count(Attempt.id)).where(Attempt.submitted_at.is_not(None))) or 0)

        attempts_count = func.count(Attempt.id).label("attempts")
        popular = self.db.execute(
            select(Quiz.id, Quiz.title, attempts_count)
            .join(Attempt, Attempt.quiz_id == Quiz.id)
            .where(Attempt.submitted_at.is_not(None))
            .group_by(Quiz.id, Quiz.title)
            .order_by(attempts_count.desc(), Quiz.title.asc())
            .limit(5)
        ).all()

        return {
            "users": {
                "total": sum(by_role.values()),
                "students": by_role[UserRole.student.value],
                "teachers": by_role[UserRole.teacher.value] + by_role[UserRole.staff.value],
                "admins": by_role[UserRole.admin.value],
            },
            "quizzes": {
                "total": total_quizzes,
                "published": published,
                "draft": total_quizzes - published,
            },
            "submitted_attempts": submitted,
            "popular_quizzes": [
                {"quiz_id": str(qid), "title": title, "attempts": int(n or 0)} for qid, title, n in popular
            ],
        }
