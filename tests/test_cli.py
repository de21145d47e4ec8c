from __future__ import annotations

import json

import httpx
import pytest

from dashboard_sync import cli
from dashboard_sync.client import DashboardApiClient


@pytest.fixture
def patched_client(monkeypatch: pytest.MonkeyPatch, fake_backend):
    """Route the CLI's client through the in-process fake backend."""

    def build(settings):
        return DashboardApiClient(settings, transport=httpx.ASGITransport(app=fake_backend.app))

    monkeypatch.setattr(cli, "DashboardApiClient", build)
    return fake_backend


def test_parse_args_collects_resources() -> None:
    args = cli.parse_args(["--user-id", "learner-1", "--resource", "quizzes", "--resource", "quiz_stats"])

    assert args.user_id == "learner-1"
    assert args.resource == ["quizzes", "quiz_stats"]
    assert args.base_url is None


def test_parse_args_rejects_unknown_resource() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["--user-id", "learner-1", "--resource", "grades"])


@pytest.mark.asyncio
async def test_run_prints_snapshot(patched_client, settings, capsys) -> None:
    patched_client.respond("/api/quizzes/stats", {"data": {"completed_quizzes": 4, "average_score": 88}})
    args = cli.parse_args(["--user-id", "learner-1", "--resource", "quiz_stats"])

    code = await cli.run(args, settings)

    assert code == 0
    snapshot = json.loads(capsys.readouterr().out)
    quiz_stats = snapshot["resources"]["quiz_stats"]
    assert quiz_stats["status"] == "ready"
    assert quiz_stats["value"]["completed_quizzes"] == 4
    assert quiz_stats["error_message"] is None
    assert list(snapshot["resources"]) == ["quiz_stats"]


@pytest.mark.asyncio
async def test_run_reports_failed_resources(patched_client, settings, capsys) -> None:
    patched_client.respond("/api/challenges", {"data": {"challenges": []}})
    args = cli.parse_args(["--user-id", "learner-1", "--resource", "challenges", "--resource", "challenge_stats"])

    code = await cli.run(args, settings)

    assert code == 1
    resources = json.loads(capsys.readouterr().out)["resources"]
    assert resources["challenges"]["status"] == "ready"
    assert resources["challenges"]["value"] == []
    assert resources["challenge_stats"]["status"] == "error"
    assert resources["challenge_stats"]["error_message"] == "HTTP error! status: 404"


@pytest.mark.asyncio
async def test_run_rejects_blank_user_id(patched_client, settings, capsys) -> None:
    args = cli.parse_args(["--user-id", "  "])

    code = await cli.run(args, settings)

    assert code == 2
    assert capsys.readouterr().out == ""
    assert patched_client.calls == []


@pytest.mark.asyncio
async def test_base_url_flag_overrides_settings(monkeypatch: pytest.MonkeyPatch, fake_backend, settings) -> None:
    seen = []

    def build(resolved):
        seen.append(resolved.api_base_url)
        return DashboardApiClient(resolved, transport=httpx.ASGITransport(app=fake_backend.app))

    monkeypatch.setattr(cli, "DashboardApiClient", build)
    args = cli.parse_args(["--user-id", "learner-1", "--resource", "stats", "--base-url", "http://override.test"])

    await cli.run(args, settings)

    assert seen == ["http://override.test"]


def test_main_reports_invalid_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_settings():
        raise RuntimeError("Invalid dashboard sync configuration: bad timeout")

    monkeypatch.setattr(cli, "get_settings", broken_settings)
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)

    assert cli.main(["--user-id", "learner-1"]) == 2
