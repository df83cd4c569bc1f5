"""Abstract interfaces for transcription providers."""

from abc import ABC, abstractmethod

from ..models import StagedMedia, TranscriptionJob
from ..polling import poll_until_terminal


class TranscriptionProvider(ABC):
    """A third-party service that turns a video into text."""

    name: str = "provider"


class DirectTranscriptionProvider(TranscriptionProvider):
    """Provider that resolves the source URL itself and answers synchronously."""

    @abstractmethod
    async def fetch_direct(self, source_url: str) -> str:
        """
        Returns the transcript for ``source_url``.

        Raises:
            ProviderHttpError: On a non-success HTTP status.
            ProviderMalformedResponse: If the response carries no transcript.
        """


class MediaTranscriptionProvider(TranscriptionProvider):
    """Provider that needs the media bytes staged locally first."""

    @abstractmethod
    async def transcribe_media(self, staged: StagedMedia) -> str:
        """Transcribes the staged file and returns its text."""


class JobBasedTranscriptionProvider(MediaTranscriptionProvider):
    """Provider that accepts an upload, runs a job, and is polled for the result."""

    def __init__(self, poll_interval: float = 5.0, poll_deadline: float = 60.0, clock=None, sleep=None):
        self.poll_interval = poll_interval
        self.poll_deadline = poll_deadline
        self._clock = clock
        self._sleep = sleep

    @abstractmethod
    async def upload(self, staged: StagedMedia) -> str:
        """Uploads the staged media, returning the provider's reference to it."""

    @abstractmethod
    async def submit(self, upload_ref: str) -> TranscriptionJob:
        """Creates a transcription job for an uploaded file."""

    @abstractmethod
    async def poll_status(self, job: TranscriptionJob) -> TranscriptionJob:
        """Fetches the job's current status from the provider."""

    async def transcribe_media(self, staged: StagedMedia) -> str:
        upload_ref = await self.upload(staged)
        job = await self.submit(upload_ref)

        kwargs = {}
        if self._clock is not None:
            kwargs["clock"] = self._clock
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        job = await poll_until_terminal(
            job,
            self.poll_status,
            interval=self.poll_interval,
            deadline=self.poll_deadline,
            **kwargs,
        )
        return job.result_text or ""
