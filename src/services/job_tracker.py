"""Tracks a single long-running video generation job to a terminal state."""

import asyncio
import logging
import uuid
from typing import Optional

from models.generation_job import (
    FailureKind,
    GenerationJob,
    JobResult,
    JobStatus,
)
from services.artifact_store import ArtifactStore, DownloadFailed
from services.providers.base import ProviderUnavailable, VideoProvider
from utils.clock import SYSTEM_CLOCK, Clock
from utils.logging import clear_job_context, set_job_context

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0  # Provider jobs take minutes; no backoff needed
DEFAULT_MAX_WAIT = 600.0

GENERIC_FAILURE = "Video generation failed."
MISSING_URI_FAILURE = "Video URI not found in response."
CANCELLED_REASON = "Cancelled"


class JobTracker:
    """Owns exactly one generation job: submit, poll, materialize.

    Lifecycle: submitted -> polling -> done | failed. Polling runs on a
    fixed interval through the injected clock and is capped by ``max_wait``
    seconds of wall-clock time (0 disables the cap).
    """

    def __init__(
        self,
        provider: VideoProvider,
        artifact_store: ArtifactStore,
        model_name: str = "veo-2.0-generate-001",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: float = DEFAULT_MAX_WAIT,
        clock: Optional[Clock] = None,
    ):
        self.provider = provider
        self.artifact_store = artifact_store
        self.model_name = model_name
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.clock = clock or SYSTEM_CLOCK
        self.job: Optional[GenerationJob] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def submit(self, prompt: str) -> GenerationJob:
        """Start the job with the provider.

        Raises:
            RuntimeError: If this tracker already owns a job
            ProviderUnavailable: If the provider does not accept the job
        """
        if self.job is not None:
            raise RuntimeError(f"Tracker already owns job {self.job.job_id}")

        job = GenerationJob(
            job_id=uuid.uuid4().hex[:12],
            prompt=prompt,
            model=self.model_name,
        )
        self.job = job
        job.operation = await self.provider.submit_job(self.model_name, prompt, count=1)
        logger.info(f"Submitted video job {job.job_id} ({len(prompt)} char prompt)")
        return job

    async def await_completion(self, job: Optional[GenerationJob] = None) -> JobResult:
        """Poll until the job is terminal and materialize its artifact.

        Failures are returned as results, never raised. Task cancellation
        marks the job failed and propagates.
        """
        job = job or self.job
        if job is None or job.operation is None:
            raise RuntimeError("No submitted job to wait for. Call submit() first.")

        set_job_context(job.job_id)
        job.status = JobStatus.POLLING
        started = self.clock.monotonic()
        operation = job.operation

        try:
            while not operation.done:
                if self._cancelled:
                    return self._cancelled_result(job)
                if self.max_wait and self.clock.monotonic() - started >= self.max_wait:
                    return self._fail(
                        job,
                        f"Video generation did not finish within {self.max_wait:.0f} seconds.",
                        FailureKind.TIMED_OUT,
                    )

                await self.clock.sleep(self.poll_interval)
                if self._cancelled:
                    return self._cancelled_result(job)

                try:
                    operation = await self.provider.poll_job(operation)
                except ProviderUnavailable as e:
                    return self._fail(job, str(e), FailureKind.PROVIDER_UNAVAILABLE)
                job.operation = operation
                job.poll_count += 1
                logger.debug(f"Video job poll #{job.poll_count}: done={operation.done}")

            if operation.has_error or operation.error_message:
                return self._fail(
                    job,
                    operation.error_message or GENERIC_FAILURE,
                    FailureKind.GENERATION_FAILED,
                )

            if not operation.video_uri:
                return self._fail(job, MISSING_URI_FAILURE, FailureKind.ARTIFACT_MISSING)

            try:
                artifact = await self.artifact_store.materialize(operation.video_uri)
            except DownloadFailed as e:
                return self._fail(job, str(e), FailureKind.DOWNLOAD_FAILED)

            if self._cancelled:
                self.artifact_store.release(artifact)
                return self._cancelled_result(job)

            job.mark_done(operation.video_uri)
            logger.info(f"Video job finished after {job.poll_count} polls")
            return JobResult(job=job, artifact=artifact)

        except asyncio.CancelledError:
            if not job.is_terminal:
                job.mark_failed(CANCELLED_REASON, FailureKind.CANCELLED)
            logger.info("Video job cancelled while polling")
            raise
        finally:
            clear_job_context()

    async def run(self, prompt: str) -> JobResult:
        """Submit and wait; a rejected submission becomes a failed result."""
        try:
            job = await self.submit(prompt)
        except ProviderUnavailable as e:
            job = self.job or GenerationJob(
                job_id=uuid.uuid4().hex[:12], prompt=prompt, model=self.model_name
            )
            return self._fail(job, str(e), FailureKind.PROVIDER_UNAVAILABLE)
        return await self.await_completion(job)

    def cancel(self) -> None:
        """Stop polling. No further provider requests are made."""
        self._cancelled = True

    def _fail(self, job: GenerationJob, reason: str, kind: FailureKind) -> JobResult:
        job.mark_failed(reason, kind)
        logger.error(f"Video job {job.job_id} failed ({kind.value}): {reason}")
        return JobResult(job=job, error=reason, failure_kind=kind)

    def _cancelled_result(self, job: GenerationJob) -> JobResult:
        job.mark_failed(CANCELLED_REASON, FailureKind.CANCELLED)
        logger.info(f"Video job {job.job_id} cancelled")
        return JobResult(job=job, error=CANCELLED_REASON, failure_kind=FailureKind.CANCELLED)
