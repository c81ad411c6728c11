import httpx

from conftest import FakeRunpod, make_session, status
from sd_client.api import cli


def patch_session(monkeypatch, fake):
    created = []

    def factory(credential=None, config=None):
        session = make_session(fake, credential=credential)
        created.append(session)
        return session

    monkeypatch.setattr(cli, "JobSession", factory)
    return created


def test_prints_job_id_and_images(monkeypatch, capsys):
    fake = FakeRunpod(statuses=[status("COMPLETED", output=["https://img/1.png", "https://img/2.png"])])
    patch_session(monkeypatch, fake)

    code = cli.main(["a red bicycle", "--outputs", "2", "--seed", "42", "--api-key", "k"])

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out == ["Job ID: job-123", "https://img/1.png", "https://img/2.png"]
    assert fake.submitted_input()["num_outputs"] == 2
    assert fake.submitted_input()["seed"] == 42


def test_invalid_scheduler_exits_before_network(monkeypatch, capsys):
    fake = FakeRunpod(statuses=[status("COMPLETED")])
    created = patch_session(monkeypatch, fake)

    code = cli.main(["x", "--scheduler", "FASTEST", "--api-key", "k"])

    assert code == 2
    assert "scheduler" in capsys.readouterr().err
    assert created == []
    assert fake.requests == []


def test_service_error_exits_with_message(monkeypatch, capsys):
    fake = FakeRunpod(submit=httpx.Response(401, json={"error": "nope"}))
    patch_session(monkeypatch, fake)

    code = cli.main(["x", "--api-key", "wrong"])

    captured = capsys.readouterr()
    assert code == 1
    assert "API key was rejected" in captured.err
    assert captured.out == ""
