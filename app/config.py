"""Application configuration loaded from environment variables."""

import os
import tempfile
from typing import Literal

from pydantic import BaseModel

from .exceptions import ConfigurationError, MissingCredential

ProviderName = Literal["supadata", "assemblyai", "aws-transcribe"]
PROVIDER_NAMES: tuple[str, ...] = ("supadata", "assemblyai", "aws-transcribe")


class SupadataConfig(BaseModel, frozen=True):
    """SupaData transcript API configuration."""

    api_key: str = ""
    base_url: str = "https://api.supadata.ai"


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str = ""
    base_url: str = "https://api.assemblyai.com"


class AmazonTranscribeConfig(BaseModel, frozen=True):
    """Amazon Transcribe Streaming configuration."""

    region: str = "eu-west-1"
    language_code: str = "it-IT"
    sample_rate_hz: int = 16000
    # The client itself resolves credentials from the environment; these are
    # only read to fail fast when none are present.
    profile: str = ""
    access_key_id: str = ""


class PollingConfig(BaseModel, frozen=True):
    """Job polling cadence and hard deadline."""

    interval_seconds: float = 5.0
    deadline_seconds: float = 60.0


class StagingConfig(BaseModel, frozen=True):
    """Where downloaded media is staged before upload."""

    directory: str = tempfile.gettempdir()


class HttpConfig(BaseModel, frozen=True):
    timeout_seconds: float = 30.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    provider: ProviderName = "supadata"
    supadata: SupadataConfig = SupadataConfig()
    assemblyai: AssemblyAIConfig = AssemblyAIConfig()
    aws_transcribe: AmazonTranscribeConfig = AmazonTranscribeConfig()
    polling: PollingConfig = PollingConfig()
    staging: StagingConfig = StagingConfig()
    http: HttpConfig = HttpConfig()

    def require_credential(self) -> None:
        """
        Checks that the active provider's credential is present.

        Raises:
            MissingCredential: If the provider's environment variable is empty.
        """
        if self.provider == "supadata" and not self.supadata.api_key:
            raise MissingCredential("SUPADATA_API_KEY")
        if self.provider == "assemblyai" and not self.assemblyai.api_key:
            raise MissingCredential("ASSEMBLYAI_API_KEY")
        if self.provider == "aws-transcribe" and not (
            self.aws_transcribe.profile or self.aws_transcribe.access_key_id
        ):
            raise MissingCredential("AWS_PROFILE")


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"Environment variable '{name}' must be a number", e) from e


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    provider = os.getenv("TRANSCRIPTION_PROVIDER", "supadata").strip().lower()
    if provider not in PROVIDER_NAMES:
        raise ConfigurationError(f"Unknown transcription provider '{provider}'")

    return AppConfig(
        provider=provider,
        supadata=SupadataConfig(
            api_key=os.getenv("SUPADATA_API_KEY", ""),
            base_url=os.getenv("SUPADATA_BASE_URL", "https://api.supadata.ai"),
        ),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            base_url=os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com"),
        ),
        aws_transcribe=AmazonTranscribeConfig(
            region=os.getenv("AWS_REGION", "eu-west-1"),
            language_code=os.getenv("AWS_TRANSCRIBE_LANGUAGE", "it-IT"),
            profile=os.getenv("AWS_PROFILE", ""),
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID", ""),
        ),
        polling=PollingConfig(
            interval_seconds=_get_float("POLL_INTERVAL_SECONDS", 5.0),
            deadline_seconds=_get_float("POLL_DEADLINE_SECONDS", 60.0),
        ),
        staging=StagingConfig(
            directory=os.getenv("STAGING_DIR") or tempfile.gettempdir(),
        ),
        http=HttpConfig(
            timeout_seconds=_get_float("HTTP_TIMEOUT_SECONDS", 30.0),
        ),
    )
