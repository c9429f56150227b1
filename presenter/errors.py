"""
presenter/errors.py
Centralized error envelope.

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "Human-readable message, shown to the instructor verbatim",
    "message": "Same text, for clients that read message",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input, locked rubric, duplicate team, illegal transition
- 401: No authenticated user
- 404: Session, team or presentation does not exist (or is not yours)
- 422: Request body failed schema validation
- 429: Rate limit exceeded
- 500: Storage failure (never caused by user input)
"""
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_INVALID = "AUTH_INVALID"

    NOT_FOUND = "NOT_FOUND"
    NO_PENDING_TEAMS = "NO_PENDING_TEAMS"

    CONFLICT = "CONFLICT"
    RUBRIC_LOCKED = "RUBRIC_LOCKED"
    DUPLICATE_TEAM = "DUPLICATE_TEAM"
    STATE_TRANSITION_INVALID = "STATE_TRANSITION_INVALID"

    RATE_LIMITED = "RATE_LIMITED"

    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    status_code: int,
    message: str,
    code: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": message, "message": message, "code": code}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def internal_error_response(error: Exception, context: str = "") -> JSONResponse:
    """Log an internal error under a short id and return a safe 500."""
    log_id = str(uuid.uuid4())[:8]
    logger.error(f"[{log_id}] Internal error in {context}: {type(error).__name__}: {str(error)}")
    return error_response(
        500,
        "Internal server error",
        ErrorCode.INTERNAL_ERROR,
        {"log_id": log_id},
    )


def get_error_summary() -> Dict[str, Any]:
    """Return summary of error handling system for documentation"""
    return {
        "service": "api-error-handler",
        "response_structure": {
            "success": "boolean (always false for errors)",
            "error": "string (human-readable)",
            "code": "string (machine-readable)",
            "details": "object (optional)"
        },
        "status_codes": {
            "400": "Invalid input, conflict or illegal state transition",
            "401": "Authentication missing or expired",
            "404": "Resource does not exist",
            "422": "Validation error (Pydantic)",
            "429": "Rate limit exceeded",
            "500": "Storage failure (never caused by user input)"
        },
        "error_codes": [
            attr for attr in dir(ErrorCode)
            if not attr.startswith('_')
        ]
    }
