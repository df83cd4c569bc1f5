"""Transcription provider exports."""

from .assemblyai import AssemblyAIProvider
from .aws_transcribe import AmazonTranscribeProvider
from .base import (
    DirectTranscriptionProvider,
    JobBasedTranscriptionProvider,
    MediaTranscriptionProvider,
    TranscriptionProvider,
)
from .supadata import SupadataProvider

__all__ = [
    "AmazonTranscribeProvider",
    "AssemblyAIProvider",
    "DirectTranscriptionProvider",
    "JobBasedTranscriptionProvider",
    "MediaTranscriptionProvider",
    "SupadataProvider",
    "TranscriptionProvider",
]
