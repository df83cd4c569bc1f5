"""Custom exceptions for the transcription pipeline."""


class TranscriptionError(Exception):
    """Base class for every failure the pipeline knows how to report."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InputValidationError(TranscriptionError):
    """Raised when the caller supplied a missing or malformed URL."""


class ConfigurationError(TranscriptionError):
    """Raised when the service is misconfigured by the operator."""


class MissingCredential(ConfigurationError):
    """Raised when the active provider's API credential is not set."""

    def __init__(self, env_var: str):
        self.env_var = env_var
        super().__init__(f"Environment variable '{env_var}' is not set")


class DownstreamError(TranscriptionError):
    """Raised when a remote host or provider fails to do its part."""


class UnreachableSource(DownstreamError):
    """Raised when the media URL does not answer with a success status."""

    def __init__(self, source_url: str, cause: Exception | None = None):
        self.source_url = source_url
        super().__init__("The video could not be downloaded", cause)


class UnsupportedSource(DownstreamError):
    """Raised when no audio track can be resolved from the URL."""

    def __init__(self, source_url: str, cause: Exception | None = None):
        self.source_url = source_url
        super().__init__("No audio could be extracted from this URL", cause)


class StageWriteError(DownstreamError):
    """Raised when the downloaded media cannot be written to disk."""

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        super().__init__("Could not store the downloaded media", cause)


class ProviderError(DownstreamError):
    """Raised when the transcription provider fails."""


class ProviderHttpError(ProviderError):
    """Raised when the provider answers with a non-success HTTP status."""

    def __init__(self, status: int, body: str, message: str | None = None):
        self.status = status
        self.body = body
        super().__init__(message or f"Provider request failed: HTTP {status}")


class ProviderMalformedResponse(ProviderError):
    """Raised when the provider response lacks the expected fields."""

    def __init__(self, detail: str = "Unexpected response from the transcription service"):
        super().__init__(detail)


class UploadError(ProviderError):
    """Raised when uploading staged media to the provider fails."""

    def __init__(self, status: int | None, cause: Exception | None = None):
        self.status = status
        super().__init__("Uploading the audio to the transcription service failed", cause)


class JobCreationError(ProviderError):
    """Raised when the provider refuses to create a transcription job."""

    def __init__(self, status: int | None, cause: Exception | None = None):
        self.status = status
        super().__init__("The transcription job could not be started", cause)


class StatusQueryError(ProviderError):
    """Raised when querying a job's status fails."""

    def __init__(self, job_id: str, cause: Exception | None = None):
        self.job_id = job_id
        super().__init__(f"Could not query the status of job '{job_id}'", cause)


class JobFailed(ProviderError):
    """Raised when the provider reports the job as failed."""

    def __init__(self, job_id: str, error_message: str | None):
        self.job_id = job_id
        super().__init__(error_message or "Transcription failed")


class PollTimeout(TranscriptionError):
    """Raised when a job does not reach a terminal state before the deadline."""

    def __init__(self, job_id: str, deadline_seconds: float):
        self.job_id = job_id
        self.deadline_seconds = deadline_seconds
        super().__init__(
            f"Transcription did not finish within {deadline_seconds:g} seconds, "
            "please try again later"
        )
