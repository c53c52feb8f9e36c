from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..lessons.model import LessonConflict


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a lesson, session, student or other row is missing."""


class AlreadyFinalizedError(DomainError):
    """Raised when finalizing a session that is already finalized."""


class SessionFinalizedError(DomainError):
    """Raised when marking attendance on a finalized session."""


class StudentNotInGroupError(DomainError):
    """Raised when a student does not belong to the session's group."""


class ConcurrencyConflictError(DomainError):
    """Raised when a record changed since the caller last read it."""


class LessonConflictError(ValidationError):
    def __init__(self, conflict: "LessonConflict"):
        super().__init__(conflict.message)
        self.conflict = conflict


class SmsDeliveryError(DomainError):
    """Raised when the SMS provider rejects or fails a bulk send."""
