"""Resolves a user-supplied URL into a stream of media bytes."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse

import httpx
import yt_dlp
from yt_dlp.utils import DownloadError

from .exceptions import UnreachableSource, UnsupportedSource

logger = logging.getLogger(__name__)

MEDIA_EXTENSIONS = {
    ".aac", ".flac", ".m4a", ".mp3", ".oga", ".ogg", ".opus", ".wav", ".weba",
    ".avi", ".m4v", ".mkv", ".mov", ".mp4", ".mpeg", ".webm",
}
# yt-dlp leaves "protocol" unset on some plain-file formats.
DOWNLOADABLE_PROTOCOLS = (None, "http", "https")
MEDIA_CONTENT_TYPES = ("audio/", "video/", "application/octet-stream")
CHUNK_SIZE = 64 * 1024


def extract_info(url: str) -> dict[str, Any]:
    """Fetches the yt-dlp metadata for a page URL without downloading anything."""
    with yt_dlp.YoutubeDL({"quiet": True, "no_warnings": True, "noplaylist": True}) as ydl:
        return ydl.extract_info(url, download=False)


def pick_audio_format(info: dict[str, Any]) -> dict[str, Any] | None:
    """
    Returns the best audio-only format, else any format with an audio track.

    Only formats fetchable with a single GET qualify; HLS and DASH manifests
    are skipped.
    """
    formats = [
        f for f in info.get("formats") or [info]
        if f.get("url") and f.get("protocol") in DOWNLOADABLE_PROTOCOLS
    ]
    with_audio = [f for f in formats if f.get("acodec") not in (None, "none")]
    audio_only = [f for f in with_audio if f.get("vcodec") in (None, "none")]
    candidates = audio_only or with_audio
    if not candidates:
        return None
    return max(candidates, key=lambda f: f.get("abr") or f.get("tbr") or 0)


class ResolvedMedia:
    """Where the media bytes actually live, and how to ask for them."""

    def __init__(self, url: str, headers: dict[str, str] | None = None, suffix: str = "", direct: bool = False):
        self.url = url
        self.headers = headers or {}
        self.suffix = suffix
        self.direct = direct


class MediaLocator:
    """Turns a page or file URL into a readable byte stream."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        extractor: Callable[[str], dict[str, Any]] = extract_info,
    ) -> None:
        self._client = http_client
        self._extractor = extractor

    async def resolve(self, source_url: str) -> ResolvedMedia:
        """
        Works out the downloadable media URL behind ``source_url``.

        Direct links to media files are used as they are; anything else goes
        through yt-dlp's extractors.

        Raises:
            UnsupportedSource: If no audio track can be found.
        """
        suffix = os.path.splitext(urlparse(source_url).path)[1].lower()
        if suffix in MEDIA_EXTENSIONS:
            return ResolvedMedia(source_url, suffix=suffix, direct=True)

        try:
            info = await asyncio.to_thread(self._extractor, source_url)
        except DownloadError as e:
            logger.warning("Media extraction failed", extra={"source_url": source_url, "error": str(e)})
            raise UnsupportedSource(source_url, e) from e

        fmt = pick_audio_format(info or {})
        if fmt is None:
            raise UnsupportedSource(source_url)

        ext = fmt.get("ext")
        logger.info(
            "Media resolved",
            extra={"source_url": source_url, "format_id": fmt.get("format_id"), "ext": ext},
        )
        return ResolvedMedia(
            fmt["url"],
            headers=fmt.get("http_headers") or {},
            suffix=f".{ext}" if ext else "",
        )

    @asynccontextmanager
    async def open(self, source_url: str) -> AsyncIterator["MediaStream"]:
        """
        Opens a single streaming GET for the media behind ``source_url``.

        Raises:
            UnreachableSource: On a transport failure or non-success status.
            UnsupportedSource: If the content is not audio or video.
        """
        media = await self.resolve(source_url)
        request = self._client.build_request("GET", media.url, headers=media.headers)
        try:
            response = await self._client.send(request, stream=True, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning("Media fetch failed", extra={"source_url": source_url, "error": str(e)})
            raise UnreachableSource(source_url, e) from e

        try:
            if not response.is_success:
                logger.warning(
                    "Media host returned an error status",
                    extra={"source_url": source_url, "status": response.status_code},
                )
                raise UnreachableSource(source_url)

            content_type = response.headers.get("content-type", "").lower()
            if media.direct and content_type and not content_type.startswith(MEDIA_CONTENT_TYPES):
                raise UnsupportedSource(source_url)

            yield MediaStream(response, media.suffix, source_url)
        finally:
            await response.aclose()


class MediaStream:
    """An open media response, iterated in chunks."""

    def __init__(self, response: httpx.Response, suffix: str, source_url: str) -> None:
        self._response = response
        self.suffix = suffix
        self.source_url = source_url

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes(CHUNK_SIZE):
                yield chunk
        except httpx.HTTPError as e:
            raise UnreachableSource(self.source_url, e) from e
