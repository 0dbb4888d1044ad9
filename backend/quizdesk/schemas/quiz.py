from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

# Field aliases accept both snake_case and the camelCase used by the web client.


class QuizCreateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    time_limit: int | None = Field(default=None, ge=0, validation_alias=AliasChoices("time_limit", "timeLimit"))
    attempts_allowed: int | None = Field(
        default=None, ge=0, validation_alias=AliasChoices("attempts_allowed", "attemptsAllowed")
    )
    visibility: bool = False


class QuizUpdateRequest(BaseModel):
    # Only fields present in the request body are applied; explicit nulls clear limits.
    title: str | None = None
    description: str | None = None
    time_limit: int | None = Field(default=None, ge=0, validation_alias=AliasChoices("time_limit", "timeLimit"))
    attempts_allowed: int | None = Field(
        default=None, ge=0, validation_alias=AliasChoices("attempts_allowed", "attemptsAllowed")
    )
    visibility: bool | None = None


class QuizPublic(BaseModel):
    id: str
    title: str
    description: str | None
    time_limit: int | None
    attempts_allowed: int | None
    visibility: bool
    created_by: str
    created_at: datetime | None = None
    question_count: int = 0


class QuizResponse(BaseModel):
    message: str
    quiz: QuizPublic


class QuestionCreateRequest(BaseModel):
    quiz_id: str | None = Field(default=None, validation_alias=AliasChoices("quiz_id", "quizId"))
    text: str | None = None
    type: str | None = None
    options: list[str] | None = None
    correct_answer: Any = Field(default=None, validation_alias=AliasChoices("correct_answer", "correctAnswer"))
    points: int | None = Field(default=None, ge=0)


class QuestionUpdateRequest(BaseModel):
    text: str | None = None
    type: str | None = None
    options: list[str] | None = None
    correct_answer: Any = Field(default=None, validation_alias=AliasChoices("correct_answer", "correctAnswer"))
    points: int | None = Field(default=None, ge=0)


class QuestionPublic(BaseModel):
    id: str
    quiz_id: str
    text: str
    type: str
    options: list[str] | None
    points: int
    # Omitted for callers who may not see answers.
    correct_answer: Any = None


class QuestionResponse(BaseModel):
    message: str
    question: QuestionPublic
