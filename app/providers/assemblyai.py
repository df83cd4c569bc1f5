"""AssemblyAI implementation of the job-based transcription provider."""

import asyncio
import logging
from collections.abc import AsyncIterator

import httpx

from ..exceptions import (
    JobCreationError,
    ProviderMalformedResponse,
    StatusQueryError,
    UploadError,
)
from ..models import JobStatus, StagedMedia, TranscriptionJob
from .base import JobBasedTranscriptionProvider

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 256 * 1024

STATUS_MAP = {
    "queued": JobStatus.QUEUED,
    "processing": JobStatus.PROCESSING,
    "completed": JobStatus.COMPLETED,
    "error": JobStatus.FAILED,
}


async def read_chunks(path: str) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while chunk := await asyncio.to_thread(f.read, UPLOAD_CHUNK_SIZE):
            yield chunk


class AssemblyAIProvider(JobBasedTranscriptionProvider):
    """Handles audio transcription through the AssemblyAI REST API."""

    name = "assemblyai"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        **poll_options,
    ):
        super().__init__(**poll_options)
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    @property
    def _headers(self) -> dict[str, str]:
        return {"authorization": self._api_key}

    async def upload(self, staged: StagedMedia) -> str:
        try:
            response = await self._client.post(
                f"{self._base_url}/v2/upload",
                headers={**self._headers, "content-type": "application/octet-stream"},
                content=read_chunks(staged.path),
            )
        except httpx.HTTPError as e:
            logger.exception("AssemblyAI upload failed", extra={"path": staged.path})
            raise UploadError(None, e) from e

        if not response.is_success:
            logger.warning(
                "AssemblyAI rejected the upload",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            raise UploadError(response.status_code)

        upload_url = self._json(response).get("upload_url")
        if not upload_url:
            raise ProviderMalformedResponse("Upload response did not include an upload URL")

        logger.info("Media uploaded", extra={"size_bytes": staged.size_bytes})
        return upload_url

    async def submit(self, upload_ref: str) -> TranscriptionJob:
        try:
            response = await self._client.post(
                f"{self._base_url}/v2/transcript",
                headers=self._headers,
                json={"audio_url": upload_ref},
            )
        except httpx.HTTPError as e:
            logger.exception("AssemblyAI job creation failed")
            raise JobCreationError(None, e) from e

        if not response.is_success:
            logger.warning(
                "AssemblyAI refused to create the job",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            raise JobCreationError(response.status_code)

        job_id = self._json(response).get("id")
        if not job_id:
            raise ProviderMalformedResponse("Job creation response did not include an id")

        logger.info("Transcription job created", extra={"job_id": job_id})
        return TranscriptionJob(id=job_id, status=JobStatus.QUEUED)

    async def poll_status(self, job: TranscriptionJob) -> TranscriptionJob:
        try:
            response = await self._client.get(
                f"{self._base_url}/v2/transcript/{job.id}",
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise StatusQueryError(job.id, e) from e

        if not response.is_success:
            logger.warning(
                "AssemblyAI status query failed",
                extra={"job_id": job.id, "status": response.status_code},
            )
            raise StatusQueryError(job.id)

        data = self._json(response)
        status = STATUS_MAP.get(data.get("status"))
        if status is None:
            raise ProviderMalformedResponse(f"Unknown job status '{data.get('status')}'")

        if status is JobStatus.COMPLETED:
            text = data.get("text")
            if text is None:
                raise ProviderMalformedResponse("Completed job did not include any text")
            return job.model_copy(update={"status": status, "result_text": text})
        if status is JobStatus.FAILED:
            return job.model_copy(update={"status": status, "error_message": data.get("error")})
        return job.model_copy(update={"status": status})

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderMalformedResponse() from e
        if not isinstance(data, dict):
            raise ProviderMalformedResponse()
        return data
