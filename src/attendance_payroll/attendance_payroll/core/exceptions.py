from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the stable identifier surfaced to API callers.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class SalaryNotConfigured(DomainError):
    code = "SALARY_NOT_CONFIGURED"


class AlreadyPunchedIn(DomainError):
    code = "ALREADY_PUNCHED_IN"


class NoOpenPunch(DomainError):
    code = "NO_OPEN_PUNCH"


class PunchNotAllowed(DomainError):
    """Company punch rules refuse the punch (window, minimum hours)."""

    code = "PUNCH_NOT_ALLOWED"


class SessionExpired(DomainError):
    code = "SESSION_EXPIRED"


class InvalidValidationToken(DomainError):
    code = "INVALID_VALIDATION_TOKEN"


class CannotApproveWithoutPunchOut(DomainError):
    code = "CANNOT_APPROVE_WITHOUT_PUNCH_OUT"


class InvalidTransition(DomainError):
    code = "INVALID_TRANSITION"


class RecordNotFound(DomainError):
    code = "RECORD_NOT_FOUND"


class StorageError(Exception):
    """Persistence layer failure. Not a business rule; callers get a generic error."""
