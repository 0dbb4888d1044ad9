from quizdesk.routers import attempts, auth, health, questions, quizzes, reports, users

__all__ = [
    "attempts",
    "auth",
    "health",
    "questions",
    "quizzes",
    "reports",
    "users",
]
