from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rank: int
    username: str
    score: int | None
    submitted_at: datetime | None


class QuizAnalyticsResponse(BaseModel):
    quiz_id: str
    total_attempts: int
    avg_score: float | None
    max_score: int | None
    min_score: int | None
    in_progress_attempts: int


class UserReportItem(BaseModel):
    quiz: str
    quiz_id: str
    score: int | None
    submitted_at: datetime
    total_questions: int
    percentage: float


class UserCounts(BaseModel):
    total: int
    students: int
    teachers: int
    admins: int


class QuizCounts(BaseModel):
    total: int
    published: int
    draft: int


class PopularQuiz(BaseModel):
    quiz_id: str
    title: str
    attempts: int


class SystemSummaryResponse(BaseModel):
    users: UserCounts
    quizzes: QuizCounts
    submitted_attempts: int
    popular_quizzes: list[PopularQuiz]
