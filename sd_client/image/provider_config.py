"""Provider/runtime configuration for the image job client.

Architectural role:
    Centralizes endpoint selection, polling limits and credential lookup for
    `sd_client.image.client` and `sd_client.image.service`.

Determinism:
    Deterministic for a fixed process environment and key files. Defaults are
    resolved at import time; `RunpodConfig.from_env()` re-reads the environment
    on demand (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`. Callers decide whether a
    missing credential is fatal (the job client raises `AuthError`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import quote

from dotenv import load_dotenv

load_dotenv()


DEFAULT_BASE_URL = "https://api.runpod.ai/v1"
DEFAULT_ENDPOINT = "stable-diffusion-v1"

# Key file consulted when no credential is passed explicitly.
RUNPOD_KEY_FILE = "config/runpod.key"


@dataclass(frozen=True)
class RunpodConfig:
    """Runtime configuration for `RunpodJobClient` and `JobSession`.

    Relevant environment variables:
        - `RUNPOD_BASE_URL`
        - `RUNPOD_ENDPOINT`
        - `RUNPOD_TIMEOUT_SECONDS`
        - `RUNPOD_POLL_INTERVAL_SECONDS`
        - `RUNPOD_MAX_POLL_ATTEMPTS` (`0` or below disables the guard)
    """

    base_url: str = DEFAULT_BASE_URL
    endpoint: str = DEFAULT_ENDPOINT
    timeout_seconds: float = 30.0
    poll_interval_seconds: float = 1.0
    max_poll_attempts: int = 600

    @classmethod
    def from_env(cls) -> "RunpodConfig":
        """Build configuration from the current process environment."""
        return cls(
            base_url=os.getenv("RUNPOD_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/"),
            endpoint=os.getenv("RUNPOD_ENDPOINT", DEFAULT_ENDPOINT).strip().strip("/"),
            timeout_seconds=float(os.getenv("RUNPOD_TIMEOUT_SECONDS", "30")),
            poll_interval_seconds=float(os.getenv("RUNPOD_POLL_INTERVAL_SECONDS", "1")),
            max_poll_attempts=int(os.getenv("RUNPOD_MAX_POLL_ATTEMPTS", "600")),
        )

    @property
    def run_url(self) -> str:
        return f"{self.base_url}/{self.endpoint}/run"

    def status_url(self, job_id: str) -> str:
        # Job ids are opaque; keep them inside one path segment.
        return f"{self.base_url}/{self.endpoint}/status/{quote(job_id, safe='')}"


def load_key(path):
    """Resolve the RunPod bearer key.

    `RUNPOD_API_KEY` (derived from the `runpod.key` file stem) takes
    precedence over the key file.
    The key file holds the raw token; surrounding whitespace is dropped.

    Args:
        path: Key file path, normally `RUNPOD_KEY_FILE`.

    Returns:
        The token, or `None` when neither the variable nor a non-blank key
        file is available (the job client then fails with `AuthError`).
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value.strip()
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def default_credential():
    """Return the configured RunPod credential, if any."""
    return load_key(RUNPOD_KEY_FILE)
