from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from quizdesk.core.errors import InvalidInput, NotFound, parse_uuid
from quizdesk.core.security import get_optional_identity, require_author
from quizdesk.core.security_audit_log import audit_log
from quizdesk.core.sessions import Identity
from quizdesk.db.session import get_db
from quizdesk.models.attempt import Attempt
from quizdesk.models.quiz import Question, Quiz
from quizdesk.schemas.quiz import QuizCreateRequest, QuizPublic, QuizResponse, QuizUpdateRequest

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _question_counts(db: Session, quiz_ids: list) -> dict:
    if not quiz_ids:
        return {}
    rows = db.execute(
        select(Question.quiz_id, func.count(Question.id)).where(Question.quiz_id.in_(quiz_ids)).group_by(Question.quiz_id)
    ).all()
    return {qid: int(n or 0) for qid, n in rows}


def quiz_public(q: Quiz, *, question_count: int = 0) -> dict[str, object]:
    return {
        "id": str(q.id),
        "title": q.title,
        "description": q.description,
        "time_limit": q.time_limit,
        "attempts_allowed": q.attempts_allowed,
        "visibility": bool(q.visibility),
        "created_by": str(q.created_by),
        "created_at": q.created_at,
        "question_count": int(question_count),
    }


def get_owned_quiz(db: Session, quiz_id: str, identity: Identity) -> Quiz:
    """Load a quiz the caller may modify: its creator, or any admin."""
    quiz = db.scalar(select(Quiz).where(Quiz.id == parse_uuid(quiz_id, field="quiz id")))
    if quiz is None:
        raise NotFound("Quiz not found")
    if not identity.is_admin and quiz.created_by != identity.id:
        raise HTTPException(status_code=403, detail="Only the quiz creator or an admin may modify this quiz")
    return quiz


def _clean_title(value: str | None) -> str:
    title = str(value or "").strip()
    if not title:
        raise InvalidInput("Title required")
    return title


@router.get("", response_model=list[QuizPublic])
def list_published(db: Session = Depends(get_db)):
    quizzes = db.scalars(select(Quiz).where(Quiz.visibility.is_(True)).order_by(Quiz.created_at.desc())).all()
    counts = _question_counts(db, [q.id for q in quizzes])
    return [quiz_public(q, question_count=counts.get(q.id, 0)) for q in quizzes]


@router.get("/mine", response_model=list[QuizPublic])
def list_mine(db: Session = Depends(get_db), identity: Identity = Depends(require_author)):
    stmt = select(Quiz).order_by(Quiz.created_at.desc())
    if not identity.is_admin:
        stmt = stmt.where(Quiz.created_by == identity.id)
    quizzes = db.scalars(stmt).all()
    counts = _question_counts(db, [q.id for q in quizzes])
    return [quiz_public(q, question_count=counts.get(q.id, 0)) for q in quizzes]


@router.get("/{quiz_id}", response_model=QuizPublic)
def get_quiz(
    quiz_id: str,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_optional_identity),
):
    quiz = db.scalar(select(Quiz).where(Quiz.id == parse_uuid(quiz_id, field="quiz id")))
    if quiz is None or (not quiz.visibility and not (identity and identity.is_author)):
        raise NotFound("Quiz not found")
    counts = _question_counts(db, [quiz.id])
    return quiz_public(quiz, question_count=counts.get(quiz.id, 0))


@router.post("", response_model=QuizResponse, status_code=201)
def create_quiz(
    body: QuizCreateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    quiz = Quiz(
        title=_clean_title(body.title),
        description=body.description,
        time_limit=body.time_limit,
        attempts_allowed=body.attempts_allowed,
        visibility=bool(body.visibility),
        created_by=identity.id,
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return {"message": "Quiz created", "quiz": quiz_public(quiz)}


@router.put("/{quiz_id}", response_model=QuizResponse)
def update_quiz(
    quiz_id: str,
    body: QuizUpdateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    quiz = get_owned_quiz(db, quiz_id, identity)
    sent = body.model_fields_set

    if "title" in sent:
        quiz.title = _clean_title(body.title)
    if "description" in sent:
        quiz.description = body.description
    if "time_limit" in sent:
        quiz.time_limit = body.time_limit
    if "attempts_allowed" in sent:
        quiz.attempts_allowed = body.attempts_allowed
    if "visibility" in sent and body.visibility is not None:
        quiz.visibility = bool(body.visibility)

    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    counts = _question_counts(db, [quiz.id])
    return {"message": "Quiz updated", "quiz": quiz_public(quiz, question_count=counts.get(quiz.id, 0))}


@router.delete("/{quiz_id}")
def delete_quiz(
    request: Request,
    quiz_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    quiz = get_owned_quiz(db, quiz_id, identity)

    # Dependents first: attempts and questions reference the quiz.
    db.execute(delete(Attempt).where(Attempt.quiz_id == quiz.id))
    db.execute(delete(Question).where(Question.quiz_id == quiz.id))
    db.delete(quiz)

    audit_log(
        db=db,
        request=request,
        event_type="quiz_deleted",
        actor_user_id=identity.id,
        meta={"quiz_id": str(quiz.id), "title": quiz.title},
    )
    db.commit()
    return {"message": "Quiz deleted"}
