"""Unit tests for failure classification."""

import pytest

from lyricalvision.core.errors import (
    ErrorKind,
    MissingApiKeyError,
    NoImageDataError,
    classify_error,
    user_message,
)


class TestClassifyError:
    """Tests for classify_error."""

    def test_missing_key(self):
        assert classify_error(MissingApiKeyError()) is ErrorKind.MISSING_KEY

    def test_rate_limited(self):
        """Any message containing 429 is a rate limit."""
        error = RuntimeError("429 RESOURCE_EXHAUSTED. Quota exceeded for this model.")

        assert classify_error(error) is ErrorKind.RATE_LIMITED

    def test_expired_key(self):
        """The entity-not-found phrase marks a rejected key."""
        error = RuntimeError("404 NOT_FOUND. Requested entity was not found.")

        assert classify_error(error) is ErrorKind.EXPIRED_KEY

    def test_expired_key_wins_over_429(self):
        error = RuntimeError("Requested entity was not found (request 4290)")

        assert classify_error(error) is ErrorKind.EXPIRED_KEY

    @pytest.mark.parametrize(
        "error",
        [RuntimeError("500 INTERNAL"), NoImageDataError(), ValueError("")],
    )
    def test_unknown(self, error):
        assert classify_error(error) is ErrorKind.UNKNOWN


class TestUserMessage:
    """Tests for user_message."""

    def test_unknown_is_verbatim(self):
        error = RuntimeError("503 UNAVAILABLE. The model is overloaded.")

        assert user_message(ErrorKind.UNKNOWN, error) == str(error)

    def test_unknown_without_text_has_fallback(self):
        assert user_message(ErrorKind.UNKNOWN, RuntimeError()) == "Failed to generate. Try again."

    def test_rate_limit_asks_to_wait(self):
        message = user_message(ErrorKind.RATE_LIMITED, RuntimeError("429"))

        assert "wait" in message.lower()

    def test_expired_key_asks_to_reselect(self):
        message = user_message(ErrorKind.EXPIRED_KEY, RuntimeError("Requested entity was not found"))

        assert "select a key" in message.lower()

    def test_missing_key_uses_error_text(self):
        assert "API key is missing" in user_message(ErrorKind.MISSING_KEY, MissingApiKeyError())
