from __future__ import annotations

import json

import httpx
import pytest

from sd_client.image.client import RunpodJobClient
from sd_client.image.provider_config import RunpodConfig
from sd_client.image.service import JobSession


BASE_URL = "https://runpod.test/v1"


class FakeRunpod:
    """Scripted stand-in for the remote endpoint behind `httpx.MockTransport`.

    `statuses` items are JSON dicts (HTTP 200), `httpx.Response` objects or
    callables taking the request; the last item repeats once the script is
    exhausted.
    """

    def __init__(self, statuses=(), job_id="job-123", submit=None):
        self.statuses = list(statuses)
        self.job_id = job_id
        self.submit = submit
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/run"):
            if isinstance(self.submit, httpx.Response):
                return self.submit
            if callable(self.submit):
                return self.submit(request)
            return httpx.Response(200, json={"id": self.job_id, "status": "IN_QUEUE"})

        if request.method == "GET" and "/status/" in path:
            item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            if isinstance(item, httpx.Response):
                return item
            if callable(item):
                return item(request)
            return httpx.Response(200, json=item)

        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def submits(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def status_reads(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def submitted_input(self, index: int = 0) -> dict:
        return json.loads(self.submits[index].content)["input"]


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_config(**overrides) -> RunpodConfig:
    values = {
        "base_url": BASE_URL,
        "endpoint": "stable-diffusion-v1",
        "timeout_seconds": 5.0,
        "poll_interval_seconds": 1.0,
        "max_poll_attempts": 600,
    }
    values.update(overrides)
    return RunpodConfig(**values)


def make_session(fake: FakeRunpod, sleep=None, credential="test-key", **config_overrides) -> JobSession:
    config = make_config(**config_overrides)
    client = RunpodJobClient(config, transport=fake.transport)
    return JobSession(credential=credential, config=config, client=client, sleep=sleep or SleepRecorder())


def status(value: str, retries: int = 0, output=None, **extra) -> dict:
    body = {"id": "job-123", "status": value, "retries": retries, **extra}
    if output is not None:
        body["output"] = [{"image": image} for image in output]
    return body


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _no_ambient_credentials(monkeypatch):
    monkeypatch.delenv("RUNPOD_API_KEY", raising=False)
