"""
HTTP API adapter for the image job session.

Architectural role:
- Replaces the browser form's submit handler with a JSON endpoint.
- Forwards the caller credential (bearer header) without storing it.
- Delegates submission/polling to `sd_client.image.service.JobSession`.

Endpoint responsibilities:
- `GET /v1/schedulers`: list accepted scheduler names.
- `POST /v1/generate`: validate form fields, run one job to a terminal
  state and return its images.

Input validation behavior:
- Non-object JSON body -> HTTP 400.
- Missing bearer credential -> HTTP 401.
- Parameter validation errors -> HTTP 422 with a per-field map.

Error handling strategy:
- Job errors map to 401 (auth), 504 (poll timeout) or 502 (everything the
  remote service or network caused).
- Each request uses a fresh session; no job state outlives the request.

Side effects:
- Network calls to the configured endpoint.
- Emits debug logs of request fields only when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from sd_client.image.errors import ValidationError
from sd_client.image.parameters import SCHEDULER_NAMES, parse_generation_request
from sd_client.image.provider_config import RunpodConfig
from sd_client.image.service import JobSession

logger = logging.getLogger(__name__)

app = FastAPI(title="sd-client")
# Sensitive request debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

ERROR_STATUS_CODES = {
    "validation": 422,
    "auth": 401,
    "timeout": 504,
}


def get_job_session() -> JobSession:
    """Return a fresh job session per request."""
    return JobSession(credential="", config=RunpodConfig.from_env())


def bearer_token(request: Request):
    """Extract the bearer credential from the `Authorization` header."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def error_response(status_code: int, kind: str, message: str, **extra):
    body = {"error": {"kind": kind, "message": message, **extra}}
    return JSONResponse(status_code=status_code, content=body)


@app.get("/v1/schedulers")
async def list_schedulers():
    return {"schedulers": SCHEDULER_NAMES}


@app.post("/v1/generate")
async def generate(request: Request, session: JobSession = Depends(get_job_session)):
    """
    Run one generation job to completion.

    Lifecycle:
    1. Parse JSON object body and bearer credential.
    2. Validate parameters (no network use on failure).
    3. Submit and poll through the session.
    4. Return `{job_id, images}` or a structured error.
    """
    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "bad_request", "Request body must be JSON.")

    if not isinstance(body, dict):
        return error_response(400, "bad_request", "Request body must be a JSON object.")

    credential = bearer_token(request)
    if not credential:
        return error_response(401, "auth", "An API key is required.")

    if DEBUG:
        logger.debug("Generate request fields: %s", sorted(body))

    try:
        generation_request = parse_generation_request(body)
    except ValidationError as e:
        return error_response(422, e.kind, e.message, fields=e.fields)

    outcome = await session.run_to_completion(generation_request, credential=credential)

    if not outcome.ok:
        status_code = ERROR_STATUS_CODES.get(outcome.error_kind, 502)
        return error_response(status_code, outcome.error_kind, outcome.error, job_id=outcome.job_id)

    return {"job_id": outcome.job_id, "images": outcome.images}
