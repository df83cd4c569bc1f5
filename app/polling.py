"""Polls a transcription job until it reaches a terminal state or the deadline."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from .exceptions import JobFailed, PollTimeout
from .models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)


async def poll_until_terminal(
    job: TranscriptionJob,
    poll_status: Callable[[TranscriptionJob], Awaitable[TranscriptionJob]],
    interval: float = 5.0,
    deadline: float = 60.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TranscriptionJob:
    """
    Waits ``interval`` seconds between status queries until the job completes.

    Each query is itself bounded by the time left before ``deadline``; no
    query starts once the deadline has passed. Errors raised by
    ``poll_status`` propagate untouched; a failed query is never retried.

    Returns:
        The completed job, with ``result_text`` set.

    Raises:
        JobFailed: If the provider reports the job as failed.
        PollTimeout: If ``deadline`` seconds pass without a terminal state.
    """
    started = clock()
    polls = 0

    def remaining() -> float:
        left = deadline - (clock() - started)
        if left <= 0:
            logger.warning(
                "Transcription job timed out",
                extra={"job_id": job.id, "polls": polls, "deadline_seconds": deadline},
            )
            raise PollTimeout(job.id, deadline)
        return left

    while not job.status.is_terminal:
        await sleep(min(interval, remaining()))
        left = remaining()
        try:
            job = await asyncio.wait_for(poll_status(job), timeout=left)
        except asyncio.TimeoutError as e:
            raise PollTimeout(job.id, deadline) from e
        polls += 1
        logger.info("Job status polled", extra={"job_id": job.id, "status": job.status.value, "polls": polls})

    if job.status is JobStatus.FAILED:
        raise JobFailed(job.id, job.error_message)
    return job
