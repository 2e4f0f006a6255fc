"""Domain exceptions, mapped to HTTP responses in app.py."""
from typing import Any, Optional


class DomainError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 400)


class ForbiddenError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 403)


class NotFoundError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 404)


class ConflictError(DomainError):
    """
    A booking would overlap an existing commitment on the table.

    Carries the conflict report, its user-facing summary and any alternative
    windows so the caller can render a "proceed anyway?" prompt.
    """

    def __init__(
        self,
        message: str,
        report: Optional[Any] = None,
        summary: Optional[Any] = None,
        suggestions: Optional[list] = None,
        status_code: int = 409,
    ):
        super().__init__(message, status_code)
        self.report = report
        self.summary = summary
        self.suggestions = suggestions or []


class InternalError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 500)
