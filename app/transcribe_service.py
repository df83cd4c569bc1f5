"""This module contains classes to manage the Amazon Transcribe communication"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Any

from amazon_transcribe.client import TranscribeStreamingClient
from amazon_transcribe.handlers import TranscriptResultStreamHandler
from amazon_transcribe.model import TranscriptEvent

PCM_CHUNK_SIZE = 4096


class FfmpegError(Exception):
    """Raised when ffmpeg cannot decode the input file."""

    def __init__(self, returncode: int):
        self.returncode = returncode
        super().__init__(f"ffmpeg exited with status {returncode}")


class FinalTranscriptCollector(TranscriptResultStreamHandler):
    """Handles transcript events from Amazon Transcribe and keeps only final results."""

    def __init__(self, output_stream: Any) -> None:
        super().__init__(output_stream)
        self.segments: list[str] = []

    async def handle_transcript_event(self, transcript_event: TranscriptEvent) -> None:
        """Filter out partial results and record the first alternative of each final one."""
        for result in transcript_event.transcript.results:
            if not result.is_partial and result.alternatives:
                self.segments.append(result.alternatives[0].transcript)

    @property
    def text(self) -> str:
        return " ".join(s.strip() for s in self.segments if s.strip())


async def pcm_from_file(path: str, sample_rate_hz: int = 16000) -> AsyncGenerator[bytes, None]:
    """Convert any audio/video file to PCM 16bit mono via ffmpeg and yield it in chunks."""
    proc = await asyncio.create_subprocess_exec(
        "ffmpeg",
        "-i",
        path,
        "-f",
        "s16le",
        "-acodec",
        "pcm_s16le",
        "-ar",
        str(sample_rate_hz),
        "-ac",
        "1",
        "-",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    finished = False
    try:
        while True:
            chunk = await proc.stdout.read(PCM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
        finished = True
    finally:
        if not finished and proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        returncode = await proc.wait()
    if returncode != 0:
        raise FfmpegError(returncode)


class TranscribeService:
    """Manages a streaming session with Amazon Transcribe."""

    def __init__(self, region: str = "eu-west-1", language_code: str = "it-IT", sample_rate_hz: int = 16000) -> None:
        # The client will automatically use AWS_PROFILE from the environment
        self.client = TranscribeStreamingClient(region=region)
        self.language_code = language_code
        self.sample_rate_hz = sample_rate_hz

    async def transcribe(self, audio_generator: AsyncGenerator[bytes, None]) -> str:
        """Open a Transcribe stream, send every audio chunk, and return the final text."""
        stream = await self.client.start_stream_transcription(
            language_code=self.language_code,
            media_sample_rate_hz=self.sample_rate_hz,
            media_encoding="pcm",
        )

        async def send_audio():
            async with aclosing(audio_generator) as chunks:
                async for chunk in chunks:
                    await stream.input_stream.send_audio_event(audio_chunk=chunk)
            await stream.input_stream.end_stream()

        handler = FinalTranscriptCollector(stream.output_stream)
        # Run sending and receiving in parallel; if one side fails the other is cancelled
        tasks = [asyncio.create_task(send_audio()), asyncio.create_task(handler.handle_events())]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return handler.text
