"""Image job package.

Module split:
    - `provider_config`: environment-driven endpoint, polling and key settings.
    - `parameters`: raw input -> validated `GenerationRequest`.
    - `job`: status snapshot and outcome contracts.
    - `client`: async HTTP transport for the `run` and `status` routes.
    - `service`: `JobSession` submission/polling state machine.

Non-goals:
    - No local image decoding or processing.
    - No persistence of jobs or credentials.
"""

from sd_client.image.job import JobOutcome, JobState, JobStatus
from sd_client.image.parameters import GenerationRequest, Scheduler, parse_generation_request
from sd_client.image.service import JobSession

__all__ = [
    "GenerationRequest",
    "JobOutcome",
    "JobSession",
    "JobState",
    "JobStatus",
    "Scheduler",
    "parse_generation_request",
]
