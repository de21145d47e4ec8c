"""Concrete resource definitions for the learner dashboard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from .client import DashboardApiClient, user_params
from .errors import SchemaError, TransformError
from .identity import require_identity
from .models import (
    ChallengeDetailVM,
    ChallengeStatsVM,
    ChallengeVM,
    DashboardStatsVM,
    LearningPathItemVM,
    QuizStatsVM,
    QuizVM,
    ResourceKind,
)
from .payloads import (
    ChallengeDetailEnvelope,
    ChallengeListEnvelope,
    ChallengeStatsEnvelope,
    DashboardStatsEnvelope,
    LearningPathEnvelope,
    QuizListEnvelope,
    QuizStatsEnvelope,
)
from .synchronizer import ResourceDefinition, ResourceSynchronizer, envelope_validator, user_endpoint
from .transformers import (
    default_dashboard_stats,
    transform_challenge_detail,
    transform_challenge_stats,
    transform_challenges,
    transform_dashboard_stats,
    transform_learning_path,
    transform_quiz_stats,
    transform_quizzes,
)

logger = logging.getLogger(__name__)

DASHBOARD_STATS: ResourceDefinition[Any, DashboardStatsVM] = ResourceDefinition(
    kind=ResourceKind.STATS,
    endpoint=user_endpoint("/api/dashboard/stats"),
    validate=envelope_validator(DashboardStatsEnvelope),
    transform=transform_dashboard_stats,
    default=default_dashboard_stats,
)

LEARNING_PATH: ResourceDefinition[Any, List[LearningPathItemVM]] = ResourceDefinition(
    kind=ResourceKind.LEARNING_PATH,
    endpoint=user_endpoint("/api/dashboard/learning-path"),
    validate=envelope_validator(LearningPathEnvelope),
    transform=transform_learning_path,
    default=list,
)

QUIZZES: ResourceDefinition[Any, List[QuizVM]] = ResourceDefinition(
    kind=ResourceKind.QUIZZES,
    endpoint=user_endpoint("/api/quizzes"),
    validate=envelope_validator(QuizListEnvelope),
    transform=transform_quizzes,
    default=list,
)

QUIZ_STATS: ResourceDefinition[Any, QuizStatsVM] = ResourceDefinition(
    kind=ResourceKind.QUIZ_STATS,
    endpoint=user_endpoint("/api/quizzes/stats"),
    validate=envelope_validator(QuizStatsEnvelope),
    transform=transform_quiz_stats,
    default=QuizStatsVM,
)

CHALLENGES: ResourceDefinition[Any, List[ChallengeVM]] = ResourceDefinition(
    kind=ResourceKind.CHALLENGES,
    endpoint=user_endpoint("/api/challenges"),
    validate=envelope_validator(ChallengeListEnvelope),
    transform=transform_challenges,
    default=list,
)

CHALLENGE_STATS: ResourceDefinition[Any, ChallengeStatsVM] = ResourceDefinition(
    kind=ResourceKind.CHALLENGE_STATS,
    endpoint=user_endpoint("/api/challenges/stats"),
    validate=envelope_validator(ChallengeStatsEnvelope),
    transform=transform_challenge_stats,
    default=ChallengeStatsVM,
)

RESOURCES: Dict[ResourceKind, ResourceDefinition[Any, Any]] = {
    definition.kind: definition
    for definition in (DASHBOARD_STATS, LEARNING_PATH, QUIZZES, QUIZ_STATS, CHALLENGES, CHALLENGE_STATS)
}

_validate_challenge_detail = envelope_validator(ChallengeDetailEnvelope)


async def fetch_challenge_details(
    client: DashboardApiClient,
    identity: Any,
    challenge_id: Any,
) -> ChallengeDetailVM:
    """One-shot lookup of a single challenge; raises ``SyncError`` subclasses."""
    user_id = require_identity(identity)
    if not isinstance(challenge_id, str) or not challenge_id.strip():
        raise SchemaError("A valid challenge id is required.")
    path = f"/api/challenges/{quote(challenge_id.strip(), safe='')}"
    body = await client.get_json(path, params=user_params(user_id))
    data = _validate_challenge_detail(body)
    try:
        return transform_challenge_detail(data)
    except ValidationError as exc:
        raise TransformError(f"Failed to transform challenge {challenge_id}: {exc}") from exc


class DashboardSession:
    """Holds one synchronizer per resource kind bound to the same identity.

    The synchronizers share only the client and the identity value; each
    writes its own state slot and may complete in any order.
    """

    def __init__(self, synchronizers: Dict[ResourceKind, ResourceSynchronizer[Any]]) -> None:
        self._synchronizers = dict(synchronizers)

    def __getitem__(self, kind: ResourceKind) -> ResourceSynchronizer[Any]:
        return self._synchronizers[kind]

    def __iter__(self):
        return iter(self._synchronizers.values())

    @property
    def kinds(self) -> List[ResourceKind]:
        return list(self._synchronizers)

    async def start(self, identity: Any = None) -> None:
        """Mount every synchronizer; an unresolved identity arms each deadline."""
        await self.set_identity(identity)

    async def set_identity(self, identity: Any) -> None:
        await asyncio.gather(*(sync.set_identity(identity) for sync in self._synchronizers.values()))

    async def refresh_all(self) -> None:
        await asyncio.gather(*(sync.refresh() for sync in self._synchronizers.values()))

    def dispose(self) -> None:
        for sync in self._synchronizers.values():
            sync.dispose()


def create_dashboard(
    client: DashboardApiClient,
    kinds: Optional[Iterable[ResourceKind]] = None,
    *,
    identity_timeout_seconds: Optional[float] = None,
) -> DashboardSession:
    selected = list(kinds) if kinds is not None else list(RESOURCES)
    synchronizers = {
        kind: ResourceSynchronizer(
            RESOURCES[kind],
            client,
            identity_timeout_seconds=identity_timeout_seconds,
        )
        for kind in selected
    }
    logger.debug("Created dashboard session for %s", ", ".join(kind.value for kind in selected))
    return DashboardSession(synchronizers)


__all__ = [
    "CHALLENGES",
    "CHALLENGE_STATS",
    "DASHBOARD_STATS",
    "DashboardSession",
    "LEARNING_PATH",
    "QUIZZES",
    "QUIZ_STATS",
    "RESOURCES",
    "create_dashboard",
    "fetch_challenge_details",
]
