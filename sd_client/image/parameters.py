"""Generation parameter model.

Processing flow:
    1. Accept raw user input (form text, CLI strings or JSON numbers).
    2. Strip text values and coerce numeric fields.
    3. Validate ranges and the scheduler enumeration.
    4. Produce a `GenerationRequest` whose `to_payload()` is the `input` object
       sent to the service.

Validation model:
    - Non-finite/NaN numbers are rejected.
    - Integer fields reject non-integral values.
    - `seed` is optional; empty input omits it from the payload and any integer
      (negative sentinels included) is forwarded unchanged.
    - Unknown keys are rejected.

Side effects:
    None. Pure transformation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sd_client.image.errors import ValidationError


class Scheduler(str, Enum):
    """Diffusion sampling schedulers accepted by the service."""

    DDIM = "DDIM"
    DDPM = "DDPM"
    DPM_M = "DPM-M"
    DPM_S = "DPM-S"
    EULER_A = "EULER-A"
    EULER_D = "EULER-D"
    HEUN = "HEUN"
    IPNDM = "IPNDM"
    KDPM2_A = "KDPM2-A"
    KDPM2_D = "KDPM2-D"
    PNDM = "PNDM"
    K_LMS = "K-LMS"


SCHEDULER_NAMES = [s.value for s in Scheduler]

NUMERIC_FIELDS = (
    "width",
    "height",
    "guidance_scale",
    "num_inference_steps",
    "num_outputs",
    "prompt_strength",
)


class GenerationRequest(BaseModel):
    """Well-formed request payload for one generation job."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False, frozen=True)

    prompt: str = ""
    negative_prompt: str = ""
    width: int = Field(default=512, gt=0)
    height: int = Field(default=512, gt=0)
    guidance_scale: float = Field(default=7.5, ge=0)
    num_inference_steps: int = Field(default=50, gt=0)
    num_outputs: int = Field(default=1, gt=0)
    prompt_strength: float = Field(default=0.8, ge=0, le=1)
    scheduler: Scheduler = Scheduler.EULER_A
    seed: int | None = None

    @field_validator(*NUMERIC_FIELDS, "scheduler", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("seed", mode="before")
    @classmethod
    def _blank_seed_is_absent(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        return value

    def to_payload(self) -> dict:
        """Return the JSON `input` object; `seed` only when it was provided."""
        exclude = {"seed"} if self.seed is None else None
        return self.model_dump(mode="json", exclude=exclude)


def parse_generation_request(raw: Mapping[str, Any]) -> GenerationRequest:
    """Translate raw user input into a `GenerationRequest`.

    Args:
        raw: Field values keyed by payload name. Missing keys fall back to the
            form defaults; `None` values are treated as missing.

    Returns:
        Validated, immutable request.

    Raises:
        ValidationError: With a per-field message map when any value is
            rejected. Raised before any network use.
    """
    values = {key: value for key, value in raw.items() if value is not None}
    try:
        return GenerationRequest(**values)
    except pydantic.ValidationError as exc:
        fields = {}
        for err in exc.errors():
            name = ".".join(str(part) for part in err.get("loc", ())) or "request"
            fields[name] = err.get("msg", "invalid value")
        detail = "; ".join(f"{name}: {msg}" for name, msg in fields.items())
        raise ValidationError(f"Invalid generation parameters: {detail}", fields=fields) from exc
