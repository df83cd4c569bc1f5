import asyncio

import pytest

from app.exceptions import JobFailed, PollTimeout, StatusQueryError
from app.models import JobStatus, TranscriptionJob
from app.polling import poll_until_terminal


def _scripted(clock, *updates):
    """Status queries that replay ``updates`` and record when they happened."""
    calls = []
    remaining = list(updates)

    async def poll_status(job):
        calls.append(clock.now)
        update = remaining.pop(0) if remaining else {"status": JobStatus.PROCESSING}
        if isinstance(update, Exception):
            raise update
        return job.model_copy(update=update)

    return poll_status, calls


class TestPollUntilTerminal:
    @pytest.mark.asyncio
    async def test_completes_on_third_poll(self, clock):
        poll_status, calls = _scripted(
            clock,
            {"status": JobStatus.PROCESSING},
            {"status": JobStatus.PROCESSING},
            {"status": JobStatus.COMPLETED, "result_text": "done"},
        )

        job = await poll_until_terminal(
            TranscriptionJob(id="job-1"), poll_status, clock=clock, sleep=clock.sleep
        )

        assert job.status is JobStatus.COMPLETED
        assert job.result_text == "done"
        assert len(calls) == 3
        assert all(later - earlier >= 5 for earlier, later in zip([0.0] + calls, calls))

    @pytest.mark.asyncio
    async def test_failed_job_raises_with_provider_message(self, clock):
        poll_status, _ = _scripted(
            clock, {"status": JobStatus.FAILED, "error_message": "Audio file is empty"}
        )

        with pytest.raises(JobFailed) as exc_info:
            await poll_until_terminal(
                TranscriptionJob(id="job-1"), poll_status, clock=clock, sleep=clock.sleep
            )

        assert exc_info.value.message == "Audio file is empty"

    @pytest.mark.asyncio
    async def test_times_out_at_deadline(self, clock):
        poll_status, calls = _scripted(clock)

        with pytest.raises(PollTimeout) as exc_info:
            await poll_until_terminal(
                TranscriptionJob(id="job-1"), poll_status, clock=clock, sleep=clock.sleep
            )

        assert clock.now == 60.0
        assert len(calls) == 11
        assert max(calls) < 60.0
        assert "try again later" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_status_query_error_is_not_retried(self, clock):
        poll_status, calls = _scripted(
            clock, {"status": JobStatus.PROCESSING}, StatusQueryError("job-1")
        )

        with pytest.raises(StatusQueryError):
            await poll_until_terminal(
                TranscriptionJob(id="job-1"), poll_status, clock=clock, sleep=clock.sleep
            )

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_custom_interval_and_deadline(self, clock):
        poll_status, calls = _scripted(clock)

        with pytest.raises(PollTimeout):
            await poll_until_terminal(
                TranscriptionJob(id="job-1"),
                poll_status,
                interval=1.0,
                deadline=3.0,
                clock=clock,
                sleep=clock.sleep,
            )

        assert calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_already_terminal_job_is_not_polled(self, clock):
        poll_status, calls = _scripted(clock)
        job = TranscriptionJob(id="job-1", status=JobStatus.COMPLETED, result_text="cached")

        result = await poll_until_terminal(job, poll_status, clock=clock, sleep=clock.sleep)

        assert result.result_text == "cached"
        assert calls == []

    @pytest.mark.asyncio
    async def test_slow_queries_count_against_deadline(self, clock):
        issued = []

        async def poll_status(job):
            issued.append(clock.now)
            clock.now += 2.0
            return job.model_copy(update={"status": JobStatus.PROCESSING})

        with pytest.raises(PollTimeout):
            await poll_until_terminal(
                TranscriptionJob(id="job-1"), poll_status, clock=clock, sleep=clock.sleep
            )

        assert issued[:2] == [5.0, 12.0]
        assert max(issued) <= 60.0
        assert clock.now == 60.0

    @pytest.mark.asyncio
    async def test_hung_query_is_cut_off_at_deadline(self):
        async def poll_status(job):
            await asyncio.sleep(10)
            return job

        with pytest.raises(PollTimeout):
            await asyncio.wait_for(
                poll_until_terminal(
                    TranscriptionJob(id="job-1"), poll_status, interval=0.01, deadline=0.05
                ),
                timeout=2,
            )
