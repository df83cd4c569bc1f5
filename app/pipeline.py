"""Runs a transcription request from URL to outcome."""

import logging

import httpx

from .config import AppConfig
from .exceptions import ConfigurationError, TranscriptionError
from .media_locator import MediaLocator
from .media_stager import MediaStager
from .models import TranscriptionOutcome, TranscriptionRequest, TranscriptionSuccess
from .providers import (
    AmazonTranscribeProvider,
    AssemblyAIProvider,
    DirectTranscriptionProvider,
    MediaTranscriptionProvider,
    SupadataProvider,
    TranscriptionProvider,
)
from .response_shaper import shape_error
from .transcribe_service import TranscribeService

logger = logging.getLogger(__name__)


def build_provider(config: AppConfig, client: httpx.AsyncClient) -> TranscriptionProvider:
    """Instantiates the provider named by ``config.provider``."""
    if config.provider == "supadata":
        return SupadataProvider(client, config.supadata.api_key, config.supadata.base_url)
    if config.provider == "assemblyai":
        return AssemblyAIProvider(
            client,
            config.assemblyai.api_key,
            config.assemblyai.base_url,
            poll_interval=config.polling.interval_seconds,
            poll_deadline=config.polling.deadline_seconds,
        )
    if config.provider == "aws-transcribe":
        service = TranscribeService(
            region=config.aws_transcribe.region,
            language_code=config.aws_transcribe.language_code,
            sample_rate_hz=config.aws_transcribe.sample_rate_hz,
        )
        return AmazonTranscribeProvider(service, deadline=config.polling.deadline_seconds)
    raise ConfigurationError(f"Unknown transcription provider '{config.provider}'")


class TranscriptionPipeline:
    """
    Locates, stages and transcribes the media behind a URL.

    Collaborators can be injected; anything left out is built from ``config``
    when the pipeline runs, after the credential check.
    """

    def __init__(
        self,
        config: AppConfig,
        http_client: httpx.AsyncClient,
        provider: TranscriptionProvider | None = None,
        locator: MediaLocator | None = None,
        stager: MediaStager | None = None,
    ):
        self._config = config
        self._client = http_client
        self._provider = provider
        self._locator = locator
        self._stager = stager

    async def run(self, request: TranscriptionRequest) -> TranscriptionOutcome:
        """
        Transcribes ``request.url``. Never raises.

        Returns:
            TranscriptionSuccess with the text, or TranscriptionFailure with a
            user-facing message and HTTP status.
        """
        try:
            text = await self._transcribe(request)
        except ConfigurationError as e:
            logger.critical(
                "Service misconfigured",
                extra={"provider": self._config.provider, "error": str(e)},
            )
            return shape_error(e)
        except TranscriptionError as e:
            logger.error(
                "Transcription failed",
                extra={
                    "source_url": request.url,
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "cause": repr(e.cause) if e.cause else None,
                },
            )
            return shape_error(e)
        except Exception as e:
            logger.exception("Unexpected transcription failure", extra={"source_url": request.url})
            return shape_error(e)

        logger.info("Transcription succeeded", extra={"source_url": request.url, "length": len(text)})
        return TranscriptionSuccess(text=text)

    async def _transcribe(self, request: TranscriptionRequest) -> str:
        self._config.require_credential()
        provider = self._provider or build_provider(self._config, self._client)
        logger.info("Transcription started", extra={"source_url": request.url, "provider": provider.name})

        if isinstance(provider, DirectTranscriptionProvider):
            return await provider.fetch_direct(request.url)
        if not isinstance(provider, MediaTranscriptionProvider):
            raise ConfigurationError(f"Provider '{provider.name}' cannot transcribe media")

        locator = self._locator or MediaLocator(self._client)
        stager = self._stager or MediaStager(self._config.staging.directory)
        async with locator.open(request.url) as stream:
            async with stager.stage(stream, suffix=stream.suffix) as staged:
                return await provider.transcribe_media(staged)


class MisconfiguredPipeline:
    """Stands in for a pipeline whose configuration could not be loaded."""

    def __init__(self, error: ConfigurationError):
        self._error = error

    async def run(self, request: TranscriptionRequest) -> TranscriptionOutcome:
        logger.critical("Service misconfigured", extra={"error": str(self._error)})
        return shape_error(self._error)
