from __future__ import annotations

import uuid


class QuizDeskError(Exception):
    """Base class for domain errors surfaced to API callers.

    Each subclass maps to one HTTP status and a stable ``error_code``; the
    message is user-visible and must not carry internal detail.
    """

    status_code: int = 400
    error_code: str = "error"
    default_message: str = "request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(QuizDeskError):
    status_code = 404
    error_code = "not_found"
    default_message = "not found"


class QuotaExceeded(QuizDeskError):
    status_code = 403
    error_code = "quota_exceeded"
    default_message = "Maximum number of attempts reached for this quiz"


class TimeLimitExceeded(QuizDeskError):
    status_code = 403
    error_code = "time_limit_exceeded"
    default_message = "Time limit exceeded. Quiz submission not allowed."


class InvalidInput(QuizDeskError):
    status_code = 400
    error_code = "invalid_input"
    default_message = "invalid input"


class AlreadySubmitted(QuizDeskError):
    status_code = 409
    error_code = "already_submitted"
    default_message = "Attempt has already been submitted"


def parse_uuid(value: str, *, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise InvalidInput(f"invalid {field}") from e
