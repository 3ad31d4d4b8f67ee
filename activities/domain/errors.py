"""Domain error codes for the activities module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ID = "INVALID_ID"
    INVALID_ACTIVITY = "INVALID_ACTIVITY"
    ACTIVITY_NOT_FOUND = "ACTIVITY_NOT_FOUND"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    OCCURRENCE_NOT_FOUND = "OCCURRENCE_NOT_FOUND"
    OCCURRENCE_DATE_REQUIRED = "OCCURRENCE_DATE_REQUIRED"
    DUPLICATE_ENROLLMENT = "DUPLICATE_ENROLLMENT"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    ACTIVITY_NOT_OPEN = "ACTIVITY_NOT_OPEN"
    FORBIDDEN = "FORBIDDEN"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def details(self) -> dict:
        """Extra fields safe to expose to the caller."""
        return {}


class ValidationError(DomainError):
    """Input that can never be valid, whatever the current state."""


class NotFoundError(DomainError):
    """A referenced activity, enrollment or occurrence does not exist."""


class StateConflictError(DomainError):
    """The operation conflicts with the current state of a resource."""

    def __init__(self, code: ErrorCode, message: str, state: str | None = None) -> None:
        super().__init__(code=code, message=message)
        self.state = state

    def details(self) -> dict:
        return {"state": self.state} if self.state is not None else {}


class InvalidIdError(ValidationError):
    """Raised when an identifier is malformed."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )
        self.kind = kind


class ActivityValidationError(ValidationError):
    """Raised when an activity or its recurrence rule is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_ACTIVITY, message=message)


class ActivityNotFoundError(NotFoundError):
    """Raised when an activity is not found (or not visible to the caller)."""

    def __init__(self, activity_id: str) -> None:
        super().__init__(
            code=ErrorCode.ACTIVITY_NOT_FOUND,
            message="Activity not found",
        )
        self.activity_id = activity_id


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment is not found."""

    def __init__(self, enrollment_id: str) -> None:
        super().__init__(
            code=ErrorCode.ENROLLMENT_NOT_FOUND,
            message="Enrollment not found",
        )
        self.enrollment_id = enrollment_id


class OccurrenceNotFoundError(NotFoundError):
    """Raised when an activity has no occurrence on the requested date."""

    def __init__(self, activity_id: str, occurrence_date: object) -> None:
        super().__init__(
            code=ErrorCode.OCCURRENCE_NOT_FOUND,
            message="Activity has no occurrence on the requested date",
        )
        self.activity_id = activity_id
        self.occurrence_date = occurrence_date


class OccurrenceDateRequiredError(ValidationError):
    """Raised when enrolling in a recurring activity without naming a date."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.OCCURRENCE_DATE_REQUIRED,
            message="An occurrence date is required for recurring activities",
        )


class DuplicateEnrollmentError(StateConflictError):
    """Raised when the user already holds an active enrollment for the occurrence."""

    def __init__(self, enrollment_id: str, state: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_ENROLLMENT,
            message="An active enrollment already exists for this occurrence",
            state=state,
        )
        self.enrollment_id = enrollment_id

    def details(self) -> dict:
        return {"state": self.state, "enrollment_id": self.enrollment_id}


class IllegalTransitionError(StateConflictError):
    """Raised when an enrollment cannot move from its current state to the target."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.ILLEGAL_TRANSITION,
            message=f"Cannot move enrollment from {current} to {target}",
            state=current,
        )
        self.target = target


class ActivityNotOpenError(StateConflictError):
    """Raised when enrolling in an activity that is not published."""

    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.ACTIVITY_NOT_OPEN,
            message="Activity is not open for enrollment",
            state=status,
        )


class AuthorizationError(DomainError):
    """Raised when the caller lacks the privilege for an operation."""

    def __init__(self, message: str = "Not allowed") -> None:
        super().__init__(code=ErrorCode.FORBIDDEN, message=message)
