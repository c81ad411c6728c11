"""RunPod stable-diffusion HTTP client.

Processing flow:
    1. Attach the caller credential as a bearer header.
    2. `submit`: POST `{"input": payload}` to the endpoint `run` route and
       return the service-assigned job id.
    3. `poll_once`: GET the `status/{id}` route and parse one
       `JobStatusSnapshot`.

Error handling strategy:
    - Missing credential -> `AuthError` before any network call.
    - Network failures/timeouts -> `TransportError`.
    - HTTP 401/403 -> `AuthError`.
    - Other non-2xx, invalid JSON, ill-shaped bodies or unusable URLs ->
      `ServiceError`.

Determinism:
    Request construction is deterministic for fixed inputs/configuration.

Security considerations:
    Credentials are never logged; error messages carry status codes only.

Performance characteristics:
    One short-lived `httpx.AsyncClient` per call. Neither method sleeps.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import pydantic

from sd_client.image.errors import AuthError, ServiceError, TransportError
from sd_client.image.job import JobStatusSnapshot
from sd_client.image.parameters import GenerationRequest
from sd_client.image.provider_config import RunpodConfig


logger = logging.getLogger(__name__)


class RunpodJobClient:
    """Async transport for the `run` and `status` routes of one endpoint."""

    def __init__(
        self,
        config: RunpodConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Endpoint and timeout configuration; read from the
                environment when omitted.
            transport: Optional httpx transport override (tests use
                `httpx.MockTransport`).
        """
        self.config = config or RunpodConfig.from_env()
        self._transport = transport

    async def submit(self, credential: str | None, request: GenerationRequest) -> str:
        """Create a remote job and return its id.

        Raises:
            AuthError, TransportError, ServiceError: See module docstring.
        """
        data = await self._request_json(
            "POST",
            self.config.run_url,
            credential,
            json_body={"input": request.to_payload()},
        )

        job_id = data.get("id")
        if not isinstance(job_id, str) or not job_id:
            raise ServiceError("The image service did not return a job id.")

        logger.info("Submitted job %s (status=%s)", job_id, data.get("status"))
        return job_id

    async def poll_once(self, credential: str | None, job_id: str) -> JobStatusSnapshot:
        """Read the current status of `job_id` once.

        Has no side effects on the remote job; repeated reads of a completed
        job return the same output.
        """
        data = await self._request_json("GET", self.config.status_url(job_id), credential)

        try:
            snapshot = JobStatusSnapshot.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ServiceError(
                f"The image service returned an unexpected status for job {job_id}."
            ) from exc

        logger.debug(
            "Job %s status=%s retries=%d outputs=%d",
            job_id,
            snapshot.status.value,
            snapshot.retries,
            len(snapshot.output),
        )
        return snapshot

    async def _request_json(
        self,
        method: str,
        url: str,
        credential: str | None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute one authorized request and return the decoded JSON object."""
        if not credential:
            raise AuthError("An API key is required.")

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {credential}",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, json=json_body)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request to the image service timed out: {method} {url}") from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"Could not reach the image service: {type(exc).__name__}"
            ) from exc
        except httpx.InvalidURL as exc:
            raise ServiceError("The request URL for the image service is invalid.") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthError(status_code=status)
        if not response.is_success:
            raise ServiceError(
                f"Image request failed with status {status}.",
                status_code=status,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError("The image service returned invalid JSON.", status_code=status) from exc

        if not isinstance(data, dict):
            raise ServiceError("The image service returned an unexpected body.", status_code=status)
        return data
