"""Domain models for the transcription pipeline."""

from enum import Enum
from typing import Annotated, Union
from urllib.parse import urlparse

from pydantic import BaseModel, StringConstraints, field_validator


class TranscriptionRequest(BaseModel, frozen=True):
    """A caller's request to transcribe the media behind a URL."""

    url: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

    @field_validator("url")
    @classmethod
    def _must_be_http_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an http(s) URL")
        return value


class StagedMedia(BaseModel, frozen=True):
    """Downloaded media sitting in transient local storage."""

    path: str
    size_bytes: int


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class TranscriptionJob(BaseModel, frozen=True):
    """Provider-side unit of work, refreshed by every status poll."""

    id: str
    status: JobStatus = JobStatus.QUEUED
    result_text: str | None = None
    error_message: str | None = None


class TranscriptionSuccess(BaseModel, frozen=True):
    text: str


class TranscriptionFailure(BaseModel, frozen=True):
    message: str
    status_code: int = 500


TranscriptionOutcome = Union[TranscriptionSuccess, TranscriptionFailure]
