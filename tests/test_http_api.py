import httpx
import pytest
import pytest_asyncio

from conftest import FakeRunpod, make_session, status
from sd_client.api.http_api import app, get_job_session


@pytest.fixture
def fake():
    return FakeRunpod(statuses=[status("IN_PROGRESS"), status("COMPLETED", output=["https://img/1.png"])])


@pytest_asyncio.fixture
async def client(fake):
    app.dependency_overrides[get_job_session] = lambda: make_session(fake, credential="")
    try:
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


AUTH = {"Authorization": "Bearer caller-key"}


@pytest.mark.asyncio
async def test_generate_returns_images(client, fake):
    r = await client.post("/v1/generate", json={"prompt": "a fox", "width": "640", "seed": ""}, headers=AUTH)

    assert r.status_code == 200
    assert r.json() == {"job_id": "job-123", "images": ["https://img/1.png"]}
    assert fake.submitted_input()["width"] == 640
    assert "seed" not in fake.submitted_input()
    assert fake.submits[0].headers["authorization"] == "Bearer caller-key"


@pytest.mark.asyncio
async def test_generate_requires_bearer_credential(client, fake):
    r = await client.post("/v1/generate", json={"prompt": "a fox"})

    assert r.status_code == 401
    assert r.json()["error"]["kind"] == "auth"
    assert fake.requests == []


@pytest.mark.asyncio
async def test_generate_rejects_invalid_parameters(client, fake):
    r = await client.post("/v1/generate", json={"prompt": "a fox", "scheduler": "TURBO"}, headers=AUTH)

    assert r.status_code == 422
    error = r.json()["error"]
    assert error["kind"] == "validation"
    assert "scheduler" in error["fields"]
    assert fake.requests == []


@pytest.mark.asyncio
async def test_generate_rejects_non_object_body(client):
    r = await client.post("/v1/generate", json=["prompt"], headers=AUTH)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_remote_rejection_maps_to_401(client, fake):
    fake.submit = httpx.Response(403, json={"error": "forbidden"})

    r = await client.post("/v1/generate", json={"prompt": "a fox"}, headers=AUTH)

    assert r.status_code == 401
    assert r.json()["error"]["kind"] == "auth"


@pytest.mark.asyncio
async def test_failed_job_maps_to_502(client, fake):
    fake.statuses = [status("FAILED")]

    r = await client.post("/v1/generate", json={"prompt": "a fox"}, headers=AUTH)

    assert r.status_code == 502
    assert r.json()["error"]["kind"] == "failed"
    assert r.json()["error"]["job_id"] == "job-123"


@pytest.mark.asyncio
async def test_list_schedulers(client):
    r = await client.get("/v1/schedulers")

    assert r.status_code == 200
    assert r.json()["schedulers"][4] == "EULER-A"
    assert len(r.json()["schedulers"]) == 12
