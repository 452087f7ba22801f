"""Failure taxonomy for stanza generation.

Every failure raised while generating a stanza image is reduced to one of four
kinds.  Classification looks at the exception type first and then at its
message, because the image service only reports most failures as text:

=============  ==========================================  =====================
Kind           Detected by                                 Recovery
=============  ==========================================  =====================
MISSING_KEY    :class:`MissingApiKeyError`                 user provides a key
EXPIRED_KEY    message contains the entity-not-found text  gate reset, re-prompt
RATE_LIMITED   message contains ``429``                    user waits and retries
UNKNOWN        anything else                               message shown as-is
=============  ==========================================  =====================
"""

from enum import Enum

EXPIRED_KEY_PHRASE = "Requested entity was not found"
RATE_LIMIT_CODE = "429"


class ErrorKind(str, Enum):
    MISSING_KEY = "missing_key"
    EXPIRED_KEY = "expired_key"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


class GenerationError(Exception):
    """Base class for errors raised by the generation layer."""


class MissingApiKeyError(GenerationError):
    """No API key has been configured or selected."""

    def __init__(self, message: str = "API key is missing. Select a key to continue."):
        super().__init__(message)


class NoImageDataError(GenerationError):
    """The image service response contained no inline image data."""

    def __init__(self, message: str = "No image data found in response."):
        super().__init__(message)


class InvalidReferenceImageError(GenerationError):
    """A selected reference file could not be decoded as an image."""


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception raised during generation to an :class:`ErrorKind`."""
    if isinstance(error, MissingApiKeyError):
        return ErrorKind.MISSING_KEY

    message = str(error)
    if EXPIRED_KEY_PHRASE in message:
        return ErrorKind.EXPIRED_KEY
    if RATE_LIMIT_CODE in message:
        return ErrorKind.RATE_LIMITED
    return ErrorKind.UNKNOWN


def user_message(kind: ErrorKind, error: BaseException) -> str:
    """Return the message recorded on a stanza for a failure of *kind*."""
    if kind is ErrorKind.MISSING_KEY:
        return str(error) or "API key is missing. Select a key to continue."
    if kind is ErrorKind.EXPIRED_KEY:
        return "Your API key is no longer valid. Please select a key again."
    if kind is ErrorKind.RATE_LIMITED:
        return "Rate limit reached (429). Please wait a moment and try again."
    return str(error) or "Failed to generate. Try again."
