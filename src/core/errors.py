"""Error types and classification for the engagement engine."""

from enum import Enum

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors the engine reports to callers."""

    STATE_UNAVAILABLE = "state_unavailable"
    DECLINED_OPERATION = "declined_operation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Store errors
    ERR_STATE_UNAVAILABLE = "ERR_STATE_UNAVAILABLE"

    # Reward errors
    ERR_INSUFFICIENT_POINTS = "ERR_INSUFFICIENT_POINTS"
    ERR_REWARD_LOCKED = "ERR_REWARD_LOCKED"
    ERR_UNKNOWN_REWARD = "ERR_UNKNOWN_REWARD"

    # Challenge errors
    ERR_CHALLENGE_NOT_FOUND = "ERR_CHALLENGE_NOT_FOUND"
    ERR_CHALLENGE_ALREADY_COMPLETED = "ERR_CHALLENGE_ALREADY_COMPLETED"
    ERR_CHALLENGE_NOT_MANUAL = "ERR_CHALLENGE_NOT_MANUAL"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


class StateUnavailableError(RuntimeError):
    """Raised by store adapters when the persistent store cannot be reached."""

    def __init__(self, key: str | None, reason: str) -> None:
        self.key = key
        self.reason = reason
        target = f"key '{key}'" if key else "store"
        super().__init__(f"State unavailable for {target}: {reason}")


_DECLINE_MESSAGES: dict[str, tuple[str, str]] = {
    ErrorCode.ERR_INSUFFICIENT_POINTS: (
        "Not enough points to redeem this reward.",
        "Complete actions and daily challenges to earn more points.",
    ),
    ErrorCode.ERR_REWARD_LOCKED: (
        "This reward is still locked.",
        "Rewards unlock once your total points reach their unlock level.",
    ),
    ErrorCode.ERR_UNKNOWN_REWARD: (
        "That reward does not exist.",
        "Pick a reward from the reward catalog.",
    ),
    ErrorCode.ERR_CHALLENGE_NOT_FOUND: (
        "That challenge is not active today.",
        "Refresh today's challenges and try again.",
    ),
    ErrorCode.ERR_CHALLENGE_ALREADY_COMPLETED: (
        "This challenge has already been completed.",
        "Check the other challenges for today.",
    ),
    ErrorCode.ERR_CHALLENGE_NOT_MANUAL: (
        "This challenge completes automatically.",
        "Complete or create actions to make progress on it.",
    ),
}


def declined(code: str) -> ErrorResponse:
    """Build the response for an expected, declined business outcome.

    Args:
        code: One of the ErrorCode constants

    Returns:
        ErrorResponse with LOW severity
    """
    message, suggestion = _DECLINE_MESSAGES.get(
        code,
        ("The operation was declined.", "Please try again later."),
    )
    return ErrorResponse(code=code, message=message, suggestion=suggestion, severity=ErrorSeverity.LOW)


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during a recompute cycle

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, StateUnavailableError):
        return ErrorResponse(
            code=ErrorCode.ERR_STATE_UNAVAILABLE,
            message="Your progress could not be loaded or saved right now.",
            suggestion="Check storage access and try again; nothing was changed.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )


def categorize(exception: Exception) -> ErrorCategory:
    """Map an exception to its ErrorCategory."""
    if isinstance(exception, StateUnavailableError):
        return ErrorCategory.STATE_UNAVAILABLE
    return ErrorCategory.UNKNOWN
