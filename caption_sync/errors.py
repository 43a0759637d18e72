"""
Recognizer Error Taxonomy

Normalizes recognizer error codes into a small set of categories and maps each
category to an exception class that knows whether the session can recover.

Categories:
  no-speech, audio-capture, network, service-unavailable, unknown -> recoverable
  permission-denied                                           -> fatal
  RecognizerUnavailable (capability missing)                  -> fatal, raised on start

The adapter only normalizes. Retry vs. terminate is decided by the reconciler
and the session.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Normalized recognizer error category."""

    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    PERMISSION_DENIED = "permission-denied"
    NETWORK = "network"
    SERVICE_UNAVAILABLE = "service-unavailable"
    UNKNOWN = "unknown"


# Raw recognizer codes (Web Speech style) -> category
_CODE_ALIASES: dict[str, ErrorCategory] = {
    "no-speech": ErrorCategory.NO_SPEECH,
    "audio-capture": ErrorCategory.AUDIO_CAPTURE,
    "not-allowed": ErrorCategory.PERMISSION_DENIED,
    "permission-denied": ErrorCategory.PERMISSION_DENIED,
    "network": ErrorCategory.NETWORK,
    "service-not-allowed": ErrorCategory.SERVICE_UNAVAILABLE,
    "service-unavailable": ErrorCategory.SERVICE_UNAVAILABLE,
}

# User-facing status text per category
STATUS_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.NO_SPEECH: "No speech detected - please speak louder",
    ErrorCategory.AUDIO_CAPTURE: "Cannot capture audio - check microphone",
    ErrorCategory.PERMISSION_DENIED: "Microphone permission denied",
    ErrorCategory.NETWORK: "Network error - check internet connection",
    ErrorCategory.SERVICE_UNAVAILABLE: "Speech service unavailable",
    ErrorCategory.UNKNOWN: "Unknown error",
}


def normalize_error_code(code: str | None) -> ErrorCategory:
    """
    Map a raw recognizer error code to an ErrorCategory.

    Args:
        code: Raw code from the recognizer (e.g. "not-allowed"). Case-insensitive.

    Returns:
        Matching category, or ErrorCategory.UNKNOWN for anything unrecognized.
    """
    if not code:
        return ErrorCategory.UNKNOWN
    return _CODE_ALIASES.get(code.strip().lower(), ErrorCategory.UNKNOWN)


class TranscriptionError(Exception):
    """Base class for recognizer and session errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = True

    def __init__(self, message: str | None = None):
        self.detail = message
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return STATUS_MESSAGES[cls.category]

    @property
    def user_message(self) -> str:
        """Status text shown to the user."""
        if self.category is ErrorCategory.UNKNOWN and self.detail:
            return self.detail
        return self.default_message()


class RecognizerUnavailable(TranscriptionError):
    """The speech recognition capability is missing entirely."""

    category = ErrorCategory.SERVICE_UNAVAILABLE
    recoverable = False

    @classmethod
    def default_message(cls) -> str:
        return "Speech recognition is not supported"

    @property
    def user_message(self) -> str:
        return self.detail or self.default_message()


class PermissionDenied(TranscriptionError):
    category = ErrorCategory.PERMISSION_DENIED
    recoverable = False


class NoSpeechTimeout(TranscriptionError):
    category = ErrorCategory.NO_SPEECH


class AudioCaptureFailure(TranscriptionError):
    category = ErrorCategory.AUDIO_CAPTURE


class NetworkError(TranscriptionError):
    category = ErrorCategory.NETWORK


class ServiceUnavailable(TranscriptionError):
    category = ErrorCategory.SERVICE_UNAVAILABLE


class UnknownRecognizerError(TranscriptionError):
    category = ErrorCategory.UNKNOWN


_ERRORS_BY_CATEGORY: dict[ErrorCategory, type[TranscriptionError]] = {
    ErrorCategory.NO_SPEECH: NoSpeechTimeout,
    ErrorCategory.AUDIO_CAPTURE: AudioCaptureFailure,
    ErrorCategory.PERMISSION_DENIED: PermissionDenied,
    ErrorCategory.NETWORK: NetworkError,
    ErrorCategory.SERVICE_UNAVAILABLE: ServiceUnavailable,
    ErrorCategory.UNKNOWN: UnknownRecognizerError,
}


def error_for_category(category: ErrorCategory, message: str | None = None) -> TranscriptionError:
    """Build the exception matching a normalized category."""
    return _ERRORS_BY_CATEGORY[category](message)


def classify_exception(exc: BaseException) -> TranscriptionError:
    """
    Convert an arbitrary exception raised by a recognizer into the taxonomy.

    Args:
        exc: Exception raised by Recognizer.start() or similar.

    Returns:
        exc itself if it is already a TranscriptionError, PermissionDenied for
        PermissionError, otherwise UnknownRecognizerError.
    """
    if isinstance(exc, TranscriptionError):
        return exc
    if isinstance(exc, PermissionError):
        return PermissionDenied(str(exc) or None)
    return UnknownRecognizerError(str(exc) or type(exc).__name__)
