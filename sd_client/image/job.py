"""Job status data contracts shared by the transport client and job session.

`JobStatusSnapshot` mirrors one status read from the service. `JobState` and
`JobOutcome` describe the local lifecycle of one generation request as seen by
adapters (CLI/HTTP) for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobStatus(str, Enum):
    IN_QUEUE = "IN_QUEUE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class ImageRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: str


class JobStatusSnapshot(BaseModel):
    """One status read of a remote job.

    Missing or null `output`/`retries` are normalized to empty/zero. Extra
    service fields are ignored except `error`, which is kept for messages.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    status: JobStatus
    retries: int = Field(default=0, ge=0)
    output: list[ImageRef] = Field(default_factory=list)
    error: str | None = None

    @field_validator("output", mode="before")
    @classmethod
    def _null_output(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("retries", mode="before")
    @classmethod
    def _null_retries(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def image_refs(self) -> list[str]:
        return [ref.image for ref in self.output]


class JobState(str, Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    ERRORED = "errored"


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of `JobSession.run_to_completion`.

    Exactly one of `images` (completed) or `error` (errored) is meaningful;
    errored outcomes never carry images.
    """

    state: JobState
    job_id: str | None = None
    images: list[str] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is JobState.COMPLETED
