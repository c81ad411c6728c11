"""Job session: submission/polling state machine for one generation request.

Role in pipeline:
    - Receives a validated `GenerationRequest` (or raw parameters) from an
      adapter together with the caller credential.
    - Submits the job, polls its status and returns a `JobOutcome`.
    - Exposes in-progress/terminal state for display (`state`, `is_loading`,
      `job_id`, `images`, `error`).

State machine:
    IDLE -> SUBMITTED -> POLLING -> COMPLETED | ERRORED

    - Submission failure -> ERRORED.
    - First status read with `retries > 0` -> ERRORED (`TransientServiceError`),
      not retried locally.
    - Otherwise poll every `poll_interval_seconds` until a terminal status
      (`COMPLETED` or `FAILED`). `FAILED` -> ERRORED (`JobFailedError`).
    - `max_poll_attempts` status reads without a terminal status -> ERRORED
      (`PollTimeoutError`). Values `<= 0` disable the guard.
    - Unexpected exceptions are logged and end the run as ERRORED.

Concurrency:
    One job per session. Starting a run while one is in flight raises
    `JobInFlightError`. The only suspension points are HTTP I/O and the wait
    between status reads.

Cancellation:
    An optional `asyncio.Event` is checked before each network call and raced
    against every wait. Native task cancellation propagates after the session
    is marked ERRORED.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from sd_client.image.client import RunpodJobClient
from sd_client.image.errors import (
    AuthError,
    GenerationError,
    JobCancelledError,
    JobFailedError,
    JobInFlightError,
    PollTimeoutError,
    TransientServiceError,
)
from sd_client.image.job import JobOutcome, JobState, JobStatus, JobStatusSnapshot
from sd_client.image.parameters import GenerationRequest, parse_generation_request
from sd_client.image.provider_config import RunpodConfig, default_credential


logger = logging.getLogger(__name__)


class JobSession:
    """Session-scoped handle tracking at most one generation job."""

    def __init__(
        self,
        credential: str | None = None,
        config: RunpodConfig | None = None,
        client: RunpodJobClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config or (client.config if client else RunpodConfig.from_env())
        self.credential = credential if credential is not None else default_credential()
        self.client = client or RunpodJobClient(self.config)
        self._sleep = sleep

        self.state = JobState.IDLE
        self.job_id: str | None = None
        self.job: JobStatusSnapshot | None = None
        self.images: list[str] = []
        self.error: str | None = None
        self.error_kind: str | None = None
        self.status_reads = 0

    @property
    def is_loading(self) -> bool:
        return self.state in (JobState.SUBMITTED, JobState.POLLING)

    async def run_to_completion(
        self,
        request: GenerationRequest | Mapping[str, Any],
        credential: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> JobOutcome:
        """Submit `request`, poll until a terminal state and return the outcome.

        Args:
            request: Validated request, or raw parameters parsed with
                `parse_generation_request` before any network use.
            credential: Per-request credential; defaults to the session's.
            cancel: Optional cancel token.

        Returns:
            `JobOutcome` with the ordered image list, or an error message and
            classification. Never both.

        Raises:
            JobInFlightError: A run is already in progress in this session.
        """
        if self.is_loading:
            raise JobInFlightError()

        self._reset()
        credential = credential if credential is not None else self.credential

        try:
            if not isinstance(request, GenerationRequest):
                request = parse_generation_request(request)
            images = await self._run(request, credential, cancel)
        except GenerationError as exc:
            return self._fail(exc)
        except asyncio.CancelledError:
            self._fail(JobCancelledError())
            raise
        except Exception:
            logger.exception("Unexpected failure while running job %s", self.job_id or "<not submitted>")
            return self._fail(GenerationError())

        self.images = images
        self.state = JobState.COMPLETED
        logger.info("Job %s completed with %d image(s)", self.job_id, len(images))
        return JobOutcome(state=self.state, job_id=self.job_id, images=list(images))

    async def _run(
        self,
        request: GenerationRequest,
        credential: str | None,
        cancel: asyncio.Event | None,
    ) -> list[str]:
        if not credential:
            raise AuthError("An API key is required.")

        self._check_cancel(cancel)
        self.state = JobState.SUBMITTED
        self.job_id = await self.client.submit(credential, request)
        self.state = JobState.POLLING

        self._check_cancel(cancel)
        snapshot = await self._read_status(credential)
        if snapshot.retries > 0:
            raise TransientServiceError()

        max_attempts = self.config.max_poll_attempts
        while snapshot.status not in (JobStatus.COMPLETED, JobStatus.FAILED):
            if max_attempts > 0 and self.status_reads >= max_attempts:
                raise PollTimeoutError(
                    f"Job {self.job_id} did not finish after {self.status_reads} status checks."
                )
            await self._wait(cancel)
            snapshot = await self._read_status(credential)

        if snapshot.status is JobStatus.FAILED:
            message = None
            if snapshot.error:
                message = f"The image service reported that the job failed: {snapshot.error}"
            raise JobFailedError(message)

        return snapshot.image_refs

    async def _read_status(self, credential: str) -> JobStatusSnapshot:
        snapshot = await self.client.poll_once(credential, self.job_id)
        self.status_reads += 1
        self.job = snapshot
        return snapshot

    async def _wait(self, cancel: asyncio.Event | None) -> None:
        """Suspend for one poll interval, returning early if `cancel` is set."""
        self._check_cancel(cancel)
        interval = self.config.poll_interval_seconds
        if cancel is None:
            await self._sleep(interval)
            return

        sleeper = asyncio.ensure_future(self._sleep(interval))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()

        if waiter in done:
            raise JobCancelledError()

    def _check_cancel(self, cancel: asyncio.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise JobCancelledError()

    def _fail(self, exc: GenerationError) -> JobOutcome:
        self.state = JobState.ERRORED
        self.images = []
        self.error = exc.message
        self.error_kind = exc.kind
        logger.warning(
            "Job %s errored (%s): %s",
            self.job_id or "<not submitted>",
            exc.kind,
            exc.message,
        )
        return JobOutcome(
            state=self.state,
            job_id=self.job_id,
            error=exc.message,
            error_kind=exc.kind,
        )

    def _reset(self) -> None:
        self.state = JobState.IDLE
        self.job_id = None
        self.job = None
        self.images = []
        self.error = None
        self.error_kind = None
        self.status_reads = 0
