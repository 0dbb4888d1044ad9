from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from quizdesk.core.errors import parse_uuid
from quizdesk.core.rate_limit import rate_limit
from quizdesk.core.security import get_current_identity, require_author
from quizdesk.core.security_audit_log import audit_log
from quizdesk.core.sessions import Identity
from quizdesk.db.session import get_db
from quizdesk.models.attempt import Attempt
from quizdesk.schemas.attempt import (
    AttemptDetailResponse,
    AttemptGradeRequest,
    AttemptGradeResponse,
    AttemptPublic,
    AttemptStartResponse,
    AttemptSubmitRequest,
    AttemptSubmitResponse,
    QuizAttemptItem,
)
from quizdesk.services.attempts import AttemptEngine
from quizdesk.services.grading import question_points

router = APIRouter(prefix="/attempts", tags=["attempts"])


def _utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def attempt_public(a: Attempt) -> dict[str, object]:
    return {
        "id": str(a.id),
        "quiz_id": str(a.quiz_id),
        "user_id": str(a.user_id),
        "start_time": _utc(a.start_time),
        "submitted_at": _utc(a.submitted_at),
        "answers": a.answers,
        "score": a.score,
        "graded_manually": bool(a.graded_manually),
    }


@router.post("/start/{quiz_id}", response_model=AttemptStartResponse, status_code=201)
def start_attempt(
    quiz_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    _: object = rate_limit(key_prefix="attempt_start", limit=30, window_seconds=60),
):
    started = AttemptEngine(db).start_attempt(identity, parse_uuid(quiz_id, field="quiz id"))
    return {
        "message": "Attempt started",
        "attempt": attempt_public(started.attempt),
        "attempt_no": started.attempt_no,
        "time_limit": started.time_limit,
    }


@router.post("/submit/{attempt_id}", response_model=AttemptSubmitResponse)
def submit_attempt(
    attempt_id: str,
    body: AttemptSubmitRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    _: object = rate_limit(key_prefix="attempt_submit", limit=20, window_seconds=60),
):
    attempt = AttemptEngine(db).submit_attempt(identity, parse_uuid(attempt_id, field="attempt id"), body.answers)
    return {"message": "Quiz submitted", "attempt": attempt_public(attempt)}


@router.get("", response_model=list[AttemptPublic])
def my_attempts(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    return [attempt_public(a) for a in AttemptEngine(db).list_own_attempts(identity)]


@router.get("/quiz/{quiz_id}", response_model=list[QuizAttemptItem])
def quiz_attempts(
    quiz_id: str,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_author),
):
    rows = AttemptEngine(db).list_quiz_attempts(parse_uuid(quiz_id, field="quiz id"))
    return [{**attempt_public(a), "username": username} for a, username in rows]


@router.get("/{attempt_id}", response_model=AttemptDetailResponse)
def attempt_detail(
    attempt_id: str,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_author),
):
    detail = AttemptEngine(db).get_attempt_detail(parse_uuid(attempt_id, field="attempt id"))
    answers = detail.attempt.answers or {}
    report = detail.report
    return {
        **attempt_public(detail.attempt),
        "quiz_title": detail.quiz_title,
        "username": detail.username,
        "max_score": sum(question_points(q) for q in detail.questions),
        "questions": [
            {
                "id": str(q.id),
                "text": q.text,
                "type": q.type.value,
                "options": q.options,
                "correct_answer": q.correct_answer,
                "points": question_points(q),
                "submitted_answer": answers.get(str(q.id)),
                "correct": report.correct.get(str(q.id)) if report is not None else None,
            }
            for q in detail.questions
        ],
    }


@router.put("/{attempt_id}/grade", response_model=AttemptGradeResponse)
def grade_attempt(
    request: Request,
    attempt_id: str,
    body: AttemptGradeRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    result = AttemptEngine(db).override_score(identity, parse_uuid(attempt_id, field="attempt id"), body.score)
    audit_log(
        db=db,
        request=request,
        event_type="attempt_grade_override",
        actor_user_id=identity.id,
        target_user_id=result.attempt.user_id,
        meta={
            "attempt_id": str(result.attempt.id),
            "previous_score": result.previous_score,
            "score": result.attempt.score,
        },
    )
    db.commit()
    return {"message": "Grade updated successfully", "attempt": attempt_public(result.attempt)}
