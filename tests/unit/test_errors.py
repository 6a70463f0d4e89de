"""Unit tests for error classification utilities."""

import pytest

from src.core.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    StateUnavailableError,
    categorize,
    classify_error_with_response,
    declined,
)


@pytest.mark.unit
class TestStateUnavailableError:
    """Tests for StateUnavailableError."""

    def test_message_names_key(self):
        error = StateUnavailableError("notifications", "disk full")

        assert error.key == "notifications"
        assert error.reason == "disk full"
        assert str(error) == "State unavailable for key 'notifications': disk full"

    def test_message_without_key(self):
        error = StateUnavailableError(None, "locked")

        assert str(error) == "State unavailable for store: locked"


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response function."""

    def test_state_unavailable(self):
        response = classify_error_with_response(StateUnavailableError(None, "gone"))

        assert response.code == ErrorCode.ERR_STATE_UNAVAILABLE
        assert response.severity == ErrorSeverity.HIGH
        assert "nothing was changed" in response.suggestion

    def test_unknown_error(self):
        response = classify_error_with_response(RuntimeError("boom"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.severity == ErrorSeverity.MEDIUM


@pytest.mark.unit
class TestCategorize:
    """Tests for categorize function."""

    def test_state_unavailable(self):
        assert categorize(StateUnavailableError("k", "r")) == ErrorCategory.STATE_UNAVAILABLE

    def test_other_exception(self):
        assert categorize(ValueError("nope")) == ErrorCategory.UNKNOWN


@pytest.mark.unit
class TestDeclined:
    """Tests for declined responses."""

    @pytest.mark.parametrize(
        "code",
        [
            ErrorCode.ERR_INSUFFICIENT_POINTS,
            ErrorCode.ERR_REWARD_LOCKED,
            ErrorCode.ERR_UNKNOWN_REWARD,
            ErrorCode.ERR_CHALLENGE_NOT_FOUND,
            ErrorCode.ERR_CHALLENGE_ALREADY_COMPLETED,
            ErrorCode.ERR_CHALLENGE_NOT_MANUAL,
        ],
    )
    def test_known_codes_have_messages(self, code):
        response = declined(code)

        assert response.code == code
        assert response.severity == ErrorSeverity.LOW
        assert response.message != "The operation was declined."

    def test_unknown_code_falls_back(self):
        response = declined("ERR_SOMETHING_ELSE")

        assert response.message == "The operation was declined."
