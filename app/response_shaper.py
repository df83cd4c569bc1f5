"""Maps pipeline outcomes onto the endpoint's two wire shapes."""

from fastapi.responses import JSONResponse

from .exceptions import (
    ConfigurationError,
    InputValidationError,
    MissingCredential,
    PollTimeout,
    ProviderHttpError,
    TranscriptionError,
)
from .models import TranscriptionFailure, TranscriptionOutcome, TranscriptionSuccess

GENERIC_ERROR = "An unexpected error occurred"
MISSING_CREDENTIAL = "API key not configured"
CONFIGURATION_ERROR = "The service is not configured correctly"
NO_TRANSCRIPT = "No transcript is available for this video"
MAX_MESSAGE_LENGTH = 200


def is_presentable(message: str | None) -> bool:
    """True for short single-line messages that are safe to show a user."""
    return bool(message) and len(message) <= MAX_MESSAGE_LENGTH and "\n" not in message


def shape_error(exc: Exception) -> TranscriptionFailure:
    """Converts any exception raised by the pipeline into a failure outcome."""
    if isinstance(exc, InputValidationError):
        return TranscriptionFailure(message=exc.message, status_code=400)
    if isinstance(exc, MissingCredential):
        return TranscriptionFailure(message=MISSING_CREDENTIAL, status_code=500)
    if isinstance(exc, ConfigurationError):
        return TranscriptionFailure(message=CONFIGURATION_ERROR, status_code=500)
    if isinstance(exc, ProviderHttpError) and exc.status == 404:
        message = exc.message if is_presentable(exc.message) else NO_TRANSCRIPT
        return TranscriptionFailure(message=message, status_code=400)
    if isinstance(exc, PollTimeout):
        return TranscriptionFailure(message=exc.message, status_code=500)
    if isinstance(exc, TranscriptionError):
        message = exc.message if is_presentable(exc.message) else GENERIC_ERROR
        return TranscriptionFailure(message=message, status_code=500)
    return TranscriptionFailure(message=GENERIC_ERROR, status_code=500)


def to_response(outcome: TranscriptionOutcome) -> JSONResponse:
    """Renders an outcome as ``{"transcription": ...}`` or ``{"error": ...}``."""
    if isinstance(outcome, TranscriptionSuccess):
        return JSONResponse({"transcription": outcome.text}, status_code=200)
    return JSONResponse({"error": outcome.message}, status_code=outcome.status_code)


def error_response(message: str, status_code: int) -> JSONResponse:
    return to_response(TranscriptionFailure(message=message, status_code=status_code))
