"""SupaData implementation of the direct transcript provider."""

import logging

import httpx

from ..exceptions import ProviderError, ProviderHttpError, ProviderMalformedResponse
from .base import DirectTranscriptionProvider

logger = logging.getLogger(__name__)


def error_message_from(response: httpx.Response) -> str:
    """Best human-readable message from a failed provider response."""
    fallback = f"Request failed: HTTP {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or fallback
    if isinstance(data, dict):
        for key in ("error", "message"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    return fallback


class SupadataProvider(DirectTranscriptionProvider):
    """
    Fetches transcripts from the SupaData transcript API.

    SupaData supports YouTube, TikTok, Instagram, X and plain file URLs; it
    returns a native transcript when one exists and generates one otherwise.
    """

    name = "supadata"

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str = "https://api.supadata.ai"):
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def fetch_direct(self, source_url: str) -> str:
        # text=true asks for plain text instead of timestamped segments,
        # mode=auto lets the service pick native or generated transcripts
        params = {"url": source_url, "text": "true", "mode": "auto"}
        try:
            response = await self._client.get(
                f"{self._base_url}/v1/transcript",
                params=params,
                headers={"x-api-key": self._api_key},
            )
        except httpx.HTTPError as e:
            logger.exception("SupaData request failed", extra={"source_url": source_url})
            raise ProviderError("Could not reach the transcription service", e) from e

        if not response.is_success:
            message = error_message_from(response)
            logger.warning(
                "SupaData returned an error",
                extra={"status": response.status_code, "error_message": message},
            )
            raise ProviderHttpError(response.status_code, response.text, message)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderMalformedResponse() from e

        transcript = None
        if isinstance(data, dict):
            transcript = data.get("content") or data.get("text")
        if isinstance(transcript, list):
            transcript = " ".join(
                seg.get("text", "") for seg in transcript if isinstance(seg, dict)
            ).strip()
        if not transcript or not isinstance(transcript, str):
            raise ProviderMalformedResponse()

        logger.info("Transcript received", extra={"provider": self.name, "length": len(transcript)})
        return transcript
