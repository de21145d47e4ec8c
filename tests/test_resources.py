from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from dashboard_sync.errors import InvalidIdentityError, NetworkError, SchemaError
from dashboard_sync.models import ResourceKind, SyncStatus
from dashboard_sync.resources import RESOURCES, create_dashboard, fetch_challenge_details

ENDPOINTS = {
    ResourceKind.STATS: "/api/dashboard/stats",
    ResourceKind.LEARNING_PATH: "/api/dashboard/learning-path",
    ResourceKind.QUIZZES: "/api/quizzes",
    ResourceKind.QUIZ_STATS: "/api/quizzes/stats",
    ResourceKind.CHALLENGES: "/api/challenges",
    ResourceKind.CHALLENGE_STATS: "/api/challenges/stats",
}


def _serve_all(fake_backend) -> None:
    fake_backend.respond(
        ENDPOINTS[ResourceKind.STATS],
        {"data": {"challenges": {"completed": 1, "total": 4}, "overall": {"progress": 25}}},
    )
    fake_backend.respond(
        ENDPOINTS[ResourceKind.LEARNING_PATH],
        {"data": [{"id": "lp-1", "title": "Variables", "status": "completed", "type": "quiz"}]},
    )
    fake_backend.respond(
        ENDPOINTS[ResourceKind.QUIZZES],
        {"data": {"quizzes": [{"id": "q-1", "title": "Loops 101", "total_points": 10, "time_limit_minutes": 15}]}},
    )
    fake_backend.respond(ENDPOINTS[ResourceKind.QUIZ_STATS], {"data": {"completed_quizzes": 1, "total_quizzes": 3}})
    fake_backend.respond(
        ENDPOINTS[ResourceKind.CHALLENGES],
        {"data": {"challenges": [{"id": "c-1", "title": "Echo", "tags": ["output"], "difficulty_level": "Easy"}]}},
    )
    fake_backend.respond(ENDPOINTS[ResourceKind.CHALLENGE_STATS], {"data": {"total_points_earned": 30}})


def test_every_resource_kind_is_registered() -> None:
    assert set(RESOURCES) == set(ResourceKind)
    for kind, path in ENDPOINTS.items():
        assert RESOURCES[kind].endpoint("learner-1") == (path, {"user_id": "learner-1"})


@pytest.mark.asyncio
async def test_session_fetches_every_resource_for_identity(api_client, fake_backend) -> None:
    _serve_all(fake_backend)
    session = create_dashboard(api_client)

    await session.set_identity("learner-1")

    for kind, path in ENDPOINTS.items():
        assert session[kind].status is SyncStatus.READY, kind
        assert fake_backend.calls_to(path) == [{"user_id": "learner-1"}]

    assert session[ResourceKind.STATS].value.challenges.completed == 1
    assert session[ResourceKind.STATS].value.overall.progress == 25
    assert session[ResourceKind.LEARNING_PATH].value[0].status == "Completed"
    assert session[ResourceKind.QUIZZES].value[0].category == "Control Flow"
    assert session[ResourceKind.QUIZ_STATS].value.total_quizzes == 3
    assert session[ResourceKind.CHALLENGES].value[0].category == "Basics"
    assert session[ResourceKind.CHALLENGE_STATS].value.total_points_earned == 30
    session.dispose()


@pytest.mark.asyncio
async def test_session_failures_are_independent(api_client, fake_backend) -> None:
    _serve_all(fake_backend)
    fake_backend.respond(ENDPOINTS[ResourceKind.QUIZZES], {"error": "down"}, status_code=503)
    session = create_dashboard(api_client, [ResourceKind.QUIZZES, ResourceKind.CHALLENGES])

    await session.set_identity("learner-1")

    assert session.kinds == [ResourceKind.QUIZZES, ResourceKind.CHALLENGES]
    assert session[ResourceKind.QUIZZES].status is SyncStatus.ERROR
    assert session[ResourceKind.QUIZZES].error_message == "HTTP error! status: 503"
    assert session[ResourceKind.QUIZZES].value == []
    assert session[ResourceKind.CHALLENGES].status is SyncStatus.READY
    assert fake_backend.calls_to(ENDPOINTS[ResourceKind.STATS]) == []


@pytest.mark.asyncio
async def test_session_refresh_all_refetches(api_client, fake_backend) -> None:
    _serve_all(fake_backend)
    session = create_dashboard(api_client, [ResourceKind.QUIZ_STATS])
    await session.set_identity("learner-1")

    fake_backend.respond(ENDPOINTS[ResourceKind.QUIZ_STATS], {"data": {"completed_quizzes": 2}})
    await session.refresh_all()

    assert session[ResourceKind.QUIZ_STATS].value.completed_quizzes == 2
    assert len(fake_backend.calls_to(ENDPOINTS[ResourceKind.QUIZ_STATS])) == 2


@pytest.mark.asyncio
async def test_session_dispose_stops_every_synchronizer(api_client) -> None:
    session = create_dashboard(api_client, identity_timeout_seconds=5)
    await session.set_identity(None)

    session.dispose()

    assert all(sync.disposed for sync in session)
    assert not any(sync.guard.armed for sync in session)



@pytest.mark.asyncio
async def test_session_started_without_identity_times_out_everywhere(api_client, fake_backend) -> None:
    session = create_dashboard(api_client, identity_timeout_seconds=0.05)
    assert all(sync.status is SyncStatus.IDLE for sync in session)

    await session.start()
    assert all(sync.guard.armed for sync in session)
    await asyncio.sleep(0.15)

    assert all(sync.status is SyncStatus.TIMED_OUT for sync in session)
    assert fake_backend.calls == []
    session.dispose()

# --- Challenge details -----------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_challenge_details(api_client, fake_backend) -> None:
    fake_backend.respond(
        "/api/challenges/sum-two",
        {
            "data": {
                "id": "sum-two",
                "title": "Sum two",
                "difficulty_level": "Hard",
                "problem_statement": "Add two numbers.",
                "starter_code": "def add(a, b):\n    ...\n",
                "examples": [{"input": "1 2", "output": "3"}],
                "updated_at": "2025-03-01T10:00:00Z",
            }
        },
    )

    detail = await fetch_challenge_details(api_client, "learner-1", "sum-two")

    assert detail.id == "sum-two"
    assert detail.difficulty == "High"
    assert detail.description == "Add two numbers...."
    assert detail.examples == [{"input": "1 2", "output": "3"}]
    assert detail.updated_at == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert fake_backend.calls_to("/api/challenges/sum-two") == [{"user_id": "learner-1"}]


@pytest.mark.asyncio
async def test_fetch_challenge_details_requires_identity(api_client, fake_backend) -> None:
    with pytest.raises(InvalidIdentityError):
        await fetch_challenge_details(api_client, " ", "sum-two")

    with pytest.raises(SchemaError):
        await fetch_challenge_details(api_client, "learner-1", "")

    assert fake_backend.calls == []


@pytest.mark.asyncio
async def test_fetch_challenge_details_propagates_failures(api_client, fake_backend) -> None:
    fake_backend.respond("/api/challenges/broken", {"detail": "missing"})

    with pytest.raises(SchemaError):
        await fetch_challenge_details(api_client, "learner-1", "broken")

    with pytest.raises(NetworkError) as excinfo:
        await fetch_challenge_details(api_client, "learner-1", "unknown")
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_client_forwards_query_params(client_for) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {}})

    client = client_for(httpx.MockTransport(handler))

    body = await client.get_json("/api/quizzes/stats", params={"user_id": "learner-1"})

    assert body == {"data": {}}
    assert seen[0].url.params["user_id"] == "learner-1"
