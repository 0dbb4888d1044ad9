from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AttemptPublic(BaseModel):
    id: str
    quiz_id: str
    user_id: str
    start_time: datetime
    submitted_at: datetime | None
    answers: dict[str, Any] | None
    score: int | None
    graded_manually: bool = False


class AttemptStartResponse(BaseModel):
    message: str = "Attempt started"
    attempt: AttemptPublic
    attempt_no: int
    time_limit: int | None


class AttemptSubmitRequest(BaseModel):
    # Question id -> answer (string, or list of strings for multi-select).
    # Client-side scores (e.g. ``autoScore``) are ignored.
    answers: dict[str, Any] = Field(default_factory=dict)


class AttemptSubmitResponse(BaseModel):
    message: str = "Quiz submitted"
    attempt: AttemptPublic


class AttemptGradeRequest(BaseModel):
    # Validated by the engine so that a missing score is reported as such.
    score: Any = None


class AttemptGradeResponse(BaseModel):
    message: str = "Grade updated successfully"
    attempt: AttemptPublic


class QuizAttemptItem(AttemptPublic):
    username: str


class AttemptQuestionReview(BaseModel):
    id: str
    text: str
    type: str
    options: list[str] | None
    correct_answer: Any
    points: int
    submitted_answer: Any = None
    correct: bool | None = None


class AttemptDetailResponse(AttemptPublic):
    quiz_title: str
    username: str
    max_score: int
    questions: list[AttemptQuestionReview]
