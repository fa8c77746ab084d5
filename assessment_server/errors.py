"""
Error taxonomy for the assessment server

Every error carries the HTTP status it maps to, so the exception handlers in
main.py can render a stable {"error": message} body.
"""
from typing import Any, List, Optional


class AssessmentError(Exception):
    """Base class for all expected, user-facing failures"""

    status_code = 400
    code = "error"

    def __init__(self, message: str, details: Optional[List[str]] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.details = details
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(AssessmentError):
    """Missing or malformed input"""
    code = "validation_error"


class NotFoundError(AssessmentError):
    """Unknown group, team or PIN"""
    status_code = 404
    code = "not_found"


class NotYetAssessedError(NotFoundError):
    """Team exists but no judge has assessed it yet"""
    code = "not_yet_assessed"


class DuplicateError(AssessmentError):
    """Entity already exists"""
    code = "duplicate"


class ConflictError(AssessmentError):
    """Operation blocked by records that still reference the target"""
    code = "conflict"


class IncompleteError(AssessmentError):
    """Judge has not assessed every team in the group"""
    code = "incomplete"


class InternalError(AssessmentError):
    """Persistence or parsing failure"""
    status_code = 500
    code = "internal_error"
