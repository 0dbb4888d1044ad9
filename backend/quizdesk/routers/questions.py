from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from quizdesk.core.errors import InvalidInput, NotFound, parse_uuid
from quizdesk.core.security import get_optional_identity, require_author
from quizdesk.core.sessions import Identity
from quizdesk.db.session import get_db
from quizdesk.models.quiz import OPTION_TYPES, Question, QuestionType, Quiz
from quizdesk.routers.quizzes import get_owned_quiz
from quizdesk.schemas.quiz import QuestionCreateRequest, QuestionPublic, QuestionResponse, QuestionUpdateRequest
from quizdesk.services.grading import question_points

router = APIRouter(prefix="/questions", tags=["questions"])

TRUEFALSE_OPTIONS = ["True", "False"]


def question_public(q: Question, *, with_answer: bool) -> dict[str, object]:
    return {
        "id": str(q.id),
        "quiz_id": str(q.quiz_id),
        "text": q.text,
        "type": q.type.value,
        "options": q.options,
        "points": question_points(q),
        "correct_answer": q.correct_answer if with_answer else None,
    }


def _question_type(raw: str | None) -> QuestionType:
    try:
        return QuestionType(str(raw or "").strip().lower())
    except ValueError as e:
        raise InvalidInput("invalid question type") from e


def _checked_options(qtype: QuestionType, options: list[str] | None, correct_answer: Any) -> list[str] | None:
    if qtype not in OPTION_TYPES:
        return None
    if qtype == QuestionType.truefalse and not options:
        options = list(TRUEFALSE_OPTIONS)
    cleaned = [str(o) for o in (options or []) if str(o).strip()]
    if len(cleaned) < 2:
        raise InvalidInput("at least two options are required")
    if correct_answer is None:
        raise InvalidInput("correct answer required")
    return cleaned


@router.get("/{quiz_id}", response_model=list[QuestionPublic])
def list_questions(
    quiz_id: str,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_optional_identity),
):
    quiz = db.scalar(select(Quiz).where(Quiz.id == parse_uuid(quiz_id, field="quiz id")))
    is_author = bool(identity and identity.is_author)
    if quiz is None or (not quiz.visibility and not is_author):
        raise NotFound("Quiz not found")

    questions = db.scalars(
        select(Question).where(Question.quiz_id == quiz.id).order_by(Question.created_at, Question.id)
    ).all()
    return [question_public(q, with_answer=is_author) for q in questions]


@router.post("", response_model=QuestionResponse, status_code=201)
def create_question(
    body: QuestionCreateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    if not body.quiz_id or not str(body.text or "").strip() or not body.type:
        raise InvalidInput("Required fields missing")

    quiz = get_owned_quiz(db, body.quiz_id, identity)
    qtype = _question_type(body.type)
    options = _checked_options(qtype, body.options, body.correct_answer)

    question = Question(
        quiz_id=quiz.id,
        text=str(body.text).strip(),
        type=qtype,
        options=options,
        correct_answer=body.correct_answer,
        points=body.points,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return {"message": "Question added", "question": question_public(question, with_answer=True)}


@router.put("/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: str,
    body: QuestionUpdateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    question = db.scalar(select(Question).where(Question.id == parse_uuid(question_id, field="question id")))
    if question is None:
        raise NotFound("Question not found")
    get_owned_quiz(db, str(question.quiz_id), identity)

    sent = body.model_fields_set
    if "text" in sent:
        text = str(body.text or "").strip()
        if not text:
            raise InvalidInput("question text required")
        question.text = text
    qtype = _question_type(body.type) if "type" in sent else question.type
    options = body.options if "options" in sent else question.options
    correct_answer = body.correct_answer if "correct_answer" in sent else question.correct_answer

    question.type = qtype
    question.options = _checked_options(qtype, options, correct_answer)
    question.correct_answer = correct_answer
    if "points" in sent:
        question.points = body.points

    db.add(question)
    db.commit()
    db.refresh(question)
    return {"message": "Question updated", "question": question_public(question, with_answer=True)}


@router.delete("/{question_id}")
def delete_question(
    question_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_author),
):
    question = db.scalar(select(Question).where(Question.id == parse_uuid(question_id, field="question id")))
    if question is None:
        raise NotFound("Question not found")
    get_owned_quiz(db, str(question.quiz_id), identity)

    db.delete(question)
    db.commit()
    return {"message": "Question deleted"}
