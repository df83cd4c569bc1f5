"""Amazon Transcribe Streaming implementation of the media transcription provider."""

import asyncio
import logging

from ..exceptions import PollTimeout, ProviderError, TranscriptionError, UnsupportedSource
from ..models import StagedMedia
from ..transcribe_service import FfmpegError, TranscribeService, pcm_from_file
from .base import MediaTranscriptionProvider

logger = logging.getLogger(__name__)


class AmazonTranscribeProvider(MediaTranscriptionProvider):
    """Extracts PCM audio locally with ffmpeg and streams it to Amazon Transcribe."""

    name = "aws-transcribe"

    def __init__(self, service: TranscribeService, deadline: float = 60.0, pcm_source=pcm_from_file):
        self._service = service
        self._deadline = deadline
        self._pcm_source = pcm_source

    async def transcribe_media(self, staged: StagedMedia) -> str:
        """
        Streams the staged file to Amazon Transcribe within the deadline.

        Raises:
            PollTimeout: If the stream does not finish before the deadline.
            UnsupportedSource: If ffmpeg cannot decode an audio track.
            ProviderError: If the streaming session fails or yields no text.
        """
        audio = self._pcm_source(staged.path, self._service.sample_rate_hz)
        try:
            text = await asyncio.wait_for(self._service.transcribe(audio), timeout=self._deadline)
        except asyncio.TimeoutError as e:
            raise PollTimeout(self.name, self._deadline) from e
        except FfmpegError as e:
            logger.warning("ffmpeg could not decode media", extra={"path": staged.path, "returncode": e.returncode})
            raise UnsupportedSource(staged.path, e) from e
        except TranscriptionError:
            raise
        except Exception as e:
            logger.exception("Amazon Transcribe streaming failed", extra={"path": staged.path})
            raise ProviderError("The transcription service failed", e) from e

        if not text:
            raise ProviderError("Transcription returned no text")

        logger.info("Audio transcription successful", extra={"provider": self.name, "length": len(text)})
        return text
