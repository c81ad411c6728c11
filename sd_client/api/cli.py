"""
Terminal adapter for one-shot image generation.

Architectural role:
- Collects generation parameters from command-line options.
- Runs one `JobSession.run_to_completion` call.
- Prints the job id and one image reference per line.

Request lifecycle:
1. Parse options (all numeric options stay text; coercion happens in
   `sd_client.image.parameters`).
2. Validate parameters before any network use.
3. Submit and poll through `JobSession`.
4. Print images or the error message.

Error handling strategy:
- Validation errors -> message on stderr, exit code 2.
- Any other job error -> message on stderr, exit code 1.
- Keyboard interrupts terminate without traceback output.

Side effects:
- Network calls to the configured endpoint.
- Writes to stdout/stderr. No files are written.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import os
import sys

from sd_client.image.errors import ValidationError
from sd_client.image.parameters import SCHEDULER_NAMES, parse_generation_request
from sd_client.image.provider_config import RunpodConfig
from sd_client.image.service import JobSession


def build_parser():
    """Return the argument parser for `sd-generate`."""
    parser = argparse.ArgumentParser(description="Generate images with Stable Diffusion on RunPod")
    parser.add_argument("prompt", help="Text prompt")
    parser.add_argument("--negative-prompt", default=None)
    parser.add_argument("--width", default=None)
    parser.add_argument("--height", default=None)
    parser.add_argument("--guidance-scale", default=None)
    parser.add_argument("--steps", dest="num_inference_steps", default=None, help="Number of inference steps")
    parser.add_argument("--outputs", dest="num_outputs", default=None, help="Number of images")
    parser.add_argument("--prompt-strength", default=None)
    parser.add_argument("--scheduler", default=None, help=" | ".join(SCHEDULER_NAMES))
    parser.add_argument("--seed", default=None, help="Random seed (omit for a random one)")
    parser.add_argument(
        "--api-key",
        default=None,
        help="RunPod API key (defaults to RUNPOD_API_KEY or config/runpod.key)",
    )
    return parser


PARAMETER_OPTIONS = (
    "prompt",
    "negative_prompt",
    "width",
    "height",
    "guidance_scale",
    "num_inference_steps",
    "num_outputs",
    "prompt_strength",
    "scheduler",
    "seed",
)


def main(argv=None):
    """
    Run one generation job and print its outcome.

    Returns:
        Process exit code (0 completed, 1 errored, 2 invalid parameters).
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())

    args = build_parser().parse_args(argv)
    raw = {name: getattr(args, name) for name in PARAMETER_OPTIONS}

    try:
        request = parse_generation_request(raw)
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        return 2

    session = JobSession(credential=args.api_key, config=RunpodConfig.from_env())

    try:
        outcome = asyncio.run(session.run_to_completion(request))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 1

    if outcome.job_id:
        print(f"Job ID: {outcome.job_id}")

    if not outcome.ok:
        print(outcome.error, file=sys.stderr)
        return 1

    for image in outcome.images:
        print(image)
    return 0


if __name__ == "__main__":
    sys.exit(main())
