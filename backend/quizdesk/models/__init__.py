from quizdesk.models.user import User, UserRole
from quizdesk.models.quiz import Question, QuestionType, Quiz
from quizdesk.models.attempt import Attempt
from quizdesk.models.security_audit import SecurityAuditEvent

__all__ = [
    "User",
    "UserRole",
    "Quiz",
    "Question",
    "QuestionType",
    "Attempt",
    "SecurityAuditEvent",
]
