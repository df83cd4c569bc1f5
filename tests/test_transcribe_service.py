import asyncio

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from app.transcribe_service import FfmpegError, FinalTranscriptCollector, TranscribeService, pcm_from_file


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _event(*results):
    return SimpleNamespace(transcript=SimpleNamespace(results=list(results)))


def _result(text, is_partial=False):
    return SimpleNamespace(is_partial=is_partial, alternatives=[SimpleNamespace(transcript=text)])


def _ffmpeg_proc(*chunks, returncode=0):
    mock_proc = MagicMock()
    mock_proc.returncode = returncode
    mock_proc.stdout.read = AsyncMock(side_effect=[*chunks, b""])
    mock_proc.wait = AsyncMock(return_value=returncode)
    return mock_proc


async def _collect(generator):
    return [chunk async for chunk in generator]


# ---------------------------------------------------------------------------
# FinalTranscriptCollector
# ---------------------------------------------------------------------------

class TestFinalTranscriptCollector:
    @pytest.mark.asyncio
    async def test_keeps_only_final_results(self):
        collector = FinalTranscriptCollector(MagicMock())

        await collector.handle_transcript_event(_event(_result("ciao", is_partial=True)))
        await collector.handle_transcript_event(_event(_result("ciao a tutti")))
        await collector.handle_transcript_event(_event(_result(" benvenuti ")))

        assert collector.text == "ciao a tutti benvenuti"


# ---------------------------------------------------------------------------
# pcm_from_file  (server-side ffmpeg conversion)
# ---------------------------------------------------------------------------

class TestPcmFromFile:
    @pytest.mark.asyncio
    async def test_yields_ffmpeg_output(self, tmp_path):
        video = tmp_path / "test.mp4"
        video.write_bytes(b"fake")

        with patch("asyncio.create_subprocess_exec", return_value=_ffmpeg_proc(b"\x00\x01" * 512)):
            chunks = await _collect(pcm_from_file(str(video)))

        assert chunks == [b"\x00\x01" * 512]

    @pytest.mark.asyncio
    async def test_ffmpeg_called_with_correct_args(self, tmp_path):
        video = tmp_path / "test.mp4"
        video.write_bytes(b"fake")

        with patch("asyncio.create_subprocess_exec", return_value=_ffmpeg_proc()) as mock_exec:
            await _collect(pcm_from_file(str(video), sample_rate_hz=8000))

        args = mock_exec.call_args[0]
        assert "ffmpeg" in args
        assert "s16le" in args
        assert "8000" in args
        assert str(video) in args
        assert "-re" not in args

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, tmp_path):
        with patch("asyncio.create_subprocess_exec", return_value=_ffmpeg_proc(returncode=1)):
            with pytest.raises(FfmpegError) as exc_info:
                await _collect(pcm_from_file(str(tmp_path / "broken.mp4")))

        assert exc_info.value.returncode == 1


# ---------------------------------------------------------------------------
# TranscribeService
# ---------------------------------------------------------------------------

class TestTranscribeService:
    @pytest.mark.asyncio
    async def test_sends_audio_and_returns_final_text(self):
        stream = MagicMock()
        stream.input_stream.send_audio_event = AsyncMock()
        stream.input_stream.end_stream = AsyncMock()

        async def fake_handle_events(self):
            self.segments.append("ciao mondo")

        async def audio():
            yield b"\x00\x01"
            yield b"\x02\x03"

        with patch("app.transcribe_service.TranscribeStreamingClient") as client_cls, \
             patch.object(FinalTranscriptCollector, "handle_events", fake_handle_events):
            client_cls.return_value.start_stream_transcription = AsyncMock(return_value=stream)
            service = TranscribeService(region="eu-west-1", language_code="en-US")
            text = await service.transcribe(audio())

        assert text == "ciao mondo"
        assert stream.input_stream.send_audio_event.await_count == 2
        stream.input_stream.end_stream.assert_awaited_once()
        client_cls.return_value.start_stream_transcription.assert_awaited_once_with(
            language_code="en-US", media_sample_rate_hz=16000, media_encoding="pcm"
        )

    @pytest.mark.asyncio
    async def test_receive_failure_stops_sending_and_closes_audio(self):
        stream = MagicMock()
        stream.input_stream.send_audio_event = AsyncMock()
        stream.input_stream.end_stream = AsyncMock()
        closed = []

        async def failing_handle_events(self):
            await asyncio.sleep(0.01)
            raise RuntimeError("stream broken")

        async def endless_audio():
            try:
                while True:
                    await asyncio.sleep(0.001)
                    yield b"\x00\x01"
            finally:
                closed.append(True)

        with patch("app.transcribe_service.TranscribeStreamingClient") as client_cls, \
             patch.object(FinalTranscriptCollector, "handle_events", failing_handle_events):
            client_cls.return_value.start_stream_transcription = AsyncMock(return_value=stream)
            service = TranscribeService(region="eu-west-1", language_code="en-US")
            with pytest.raises(RuntimeError, match="stream broken"):
                await service.transcribe(endless_audio())

        sent = stream.input_stream.send_audio_event.await_count
        await asyncio.sleep(0.02)

        assert closed == [True]
        assert stream.input_stream.send_audio_event.await_count == sent
        stream.input_stream.end_stream.assert_not_awaited()
