"""Flag submission error taxonomy

An incorrect flag is not an error (it is a Rejected outcome). Everything
here short-circuits the submission pipeline and is rendered by the API error
handlers.
"""

from typing import Literal

ForbiddenReason = Literal[
    "banned",
    "paused",
    "not_started",
    "ended",
    "dependencies_unmet",
    "access_denied",
]

FORBIDDEN_MESSAGES: dict[str, str] = {
    "banned": "You are banned from submitting flags",
    "paused": "CTF is currently paused",
    "not_started": "CTF has not started yet",
    "ended": "CTF has ended",
    "dependencies_unmet": "You must complete prerequisite challenges first",
    "access_denied": "Access denied",
}


class SubmissionError(Exception):
    """Base class for submission pipeline failures"""

    status_code: int = 500
    error_type: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, reason: str | None = None):
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Error body in the API error envelope format"""
        body = {
            "code": self.status_code,
            "message": self.message,
            "type": self.error_type,
        }
        if self.reason:
            body["reason"] = self.reason
        return body


class ValidationError(SubmissionError):
    """Malformed input; not retryable as-is"""

    status_code = 400
    error_type = "validation_error"
    default_message = "Invalid submission"


class Unauthorized(SubmissionError):
    """Missing or invalid caller identity"""

    status_code = 401
    error_type = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(SubmissionError):
    """Policy gate refusal"""

    status_code = 403
    error_type = "forbidden"

    def __init__(self, reason: ForbiddenReason, message: str | None = None):
        super().__init__(message or FORBIDDEN_MESSAGES[reason], reason=reason)


class NotFound(SubmissionError):
    """Unknown or inactive challenge"""

    status_code = 404
    error_type = "not_found"
    default_message = "Challenge not found"


class Conflict(SubmissionError):
    """The principal already solved this challenge"""

    status_code = 409
    error_type = "conflict"
    default_message = "You have already solved this challenge"

    def __init__(self, message: str | None = None):
        super().__init__(message, reason="already_solved")


class RateLimited(SubmissionError):
    """Too many attempts in the trailing window; retry after the hint"""

    status_code = 429
    error_type = "rate_limited"
    default_message = "Rate limited. Please wait before trying again."

    def __init__(self, retry_after: int, message: str | None = None):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["retry_after"] = self.retry_after
        return body


class InternalError(SubmissionError):
    """Storage or unexpected failure; safe to retry"""
