"""
presenter/exceptions.py
Typed domain exceptions raised by services and state machines.

Each exception carries the HTTP status and machine-readable code it maps to;
presenter/main.py turns them into the standard error envelope.
"""
from typing import Any, Dict, Optional

from presenter.errors import ErrorCode


class PresenterException(Exception):
    """Base exception for the presentation grader."""
    status_code: int = 500
    code: str = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(PresenterException):
    """
    Raised when request fields are missing or malformed.

    Examples:
    - Score outside 0..max_score
    - Criterion from another session
    - Unknown presentation handed to the grade ledger
    """
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR


class UnauthorizedError(PresenterException):
    status_code = 401
    code = ErrorCode.AUTH_REQUIRED

    def __init__(self, message: str = "Unauthorized", code: str = ErrorCode.AUTH_REQUIRED):
        super().__init__(message)
        self.code = code


class NotFoundError(PresenterException):
    """
    Raised when requested resource doesn't exist, or isn't owned by the caller.
    """
    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class NoPendingTeamsError(NotFoundError):
    code = ErrorCode.NO_PENDING_TEAMS

    def __init__(self, session_id: Optional[int] = None):
        super().__init__("Team")
        self.message = "No pending teams available"
        self.args = (self.message,)
        self.session_id = session_id


class ConflictError(PresenterException):
    """Request clashes with existing state. Reported as 400 with a message."""
    status_code = 400
    code = ErrorCode.CONFLICT


class RubricLockedError(ConflictError):
    code = ErrorCode.RUBRIC_LOCKED

    def __init__(self, session_id: Optional[int] = None):
        super().__init__("Rubric is locked")
        self.session_id = session_id


class DuplicateTeamNameError(ConflictError):
    code = ErrorCode.DUPLICATE_TEAM

    def __init__(self, name: str):
        super().__init__(f'Team "{name}" already exists')
        self.name = name


class InvalidTransitionError(PresenterException):
    """Raised when an event or status write is not allowed from the current status."""
    status_code = 400
    code = ErrorCode.STATE_TRANSITION_INVALID

    def __init__(self, message: str, from_status: str, to_status: Optional[str] = None):
        details = {"from": from_status}
        if to_status is not None:
            details["to"] = to_status
        super().__init__(message, details)
        self.from_status = from_status
        self.to_status = to_status


class PersistenceError(PresenterException):
    """Raised when a transaction cannot be committed. Rolled back before raising."""
    status_code = 500
    code = ErrorCode.PERSISTENCE_ERROR

    def __init__(self, message: str = "Failed to save changes"):
        super().__init__(message)
