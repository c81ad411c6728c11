"""Error taxonomy for image job submission and polling.

Every error carries a short `kind` label (used by adapters for status/exit code
mapping) and a user-facing message. Transport-level failures are raised by
`sd_client.image.client`; `sd_client.image.service.JobSession` converts them
into a single message on the job outcome.
"""


class GenerationError(Exception):
    """Base class for all job-client failures."""

    kind = "error"
    default_message = "Image generation failed."

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(GenerationError):
    """Generation parameters were rejected before any network call."""

    kind = "validation"
    default_message = "Invalid generation parameters."

    def __init__(self, message: str | None = None, *, fields: dict[str, str] | None = None):
        super().__init__(message)
        self.fields = dict(fields or {})


class AuthError(GenerationError):
    """Credential missing or rejected by the service (HTTP 401/403)."""

    kind = "auth"
    default_message = "The API key was rejected. Please check it and try again."


class TransportError(GenerationError):
    """Network failure or timeout while talking to the service."""

    kind = "transport"
    default_message = "Could not reach the image service. Please try again."


class ServiceError(GenerationError):
    """The remote call failed with a non-2xx status or an unusable body."""

    kind = "service"
    default_message = "The image service returned an error."


class TransientServiceError(ServiceError):
    """First status read reported service-side retries."""

    kind = "transient"
    default_message = "An error occurred during the API call. Please try again."


class JobFailedError(ServiceError):
    """The service reported the job as FAILED."""

    kind = "failed"
    default_message = "The image service reported that the job failed."


class PollTimeoutError(GenerationError):
    """Polling gave up after the configured number of status reads."""

    kind = "timeout"
    default_message = "Timed out waiting for the image job to finish."


class JobCancelledError(GenerationError):
    """The caller's cancel token was set while the job was running."""

    kind = "cancelled"
    default_message = "Image generation was cancelled."


class JobInFlightError(GenerationError):
    """A job is already running in this session."""

    kind = "in_flight"
    default_message = "A generation job is already in progress."
