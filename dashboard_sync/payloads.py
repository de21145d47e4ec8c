"""Pydantic models mirroring the backend response envelopes.

Every field below the envelope is optional and lenient: the backend may omit
or garble counters and metadata during rollouts, so a scalar that fails to
parse becomes ``None`` and the transformers default it like a missing one.
Only the envelope shape itself (``data`` present, of the right container type)
is enforced here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, ValidatorFunctionWrapHandler, WrapValidator


def _none_on_error(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


def _string_tags(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    if isinstance(value, list):
        value = [tag for tag in value if isinstance(tag, str)]
    return _none_on_error(value, handler)


_LENIENT = WrapValidator(_none_on_error)

LenientInt = Annotated[Optional[int], _LENIENT]
LenientFloat = Annotated[Optional[float], _LENIENT]
LenientStr = Annotated[Optional[str], _LENIENT]
LenientBool = Annotated[Optional[bool], _LENIENT]
LenientDatetime = Annotated[Optional[datetime], _LENIENT]
LenientList = Annotated[Optional[List[Any]], _LENIENT]
TagList = Annotated[Optional[List[str]], WrapValidator(_string_tags)]


class RawPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class ChallengeCountsPayload(RawPayload):
    completed: LenientInt = None
    progress: LenientFloat = None
    this_week: LenientInt = None
    total: LenientInt = None


class QuizCountsPayload(RawPayload):
    attempted: LenientInt = None
    progress: LenientFloat = None
    this_week: LenientInt = None
    total: LenientInt = None


class OverallProgressPayload(RawPayload):
    completed_items: LenientInt = None
    message: LenientStr = None
    progress: LenientFloat = None
    total_items: LenientInt = None


class DashboardStatsPayload(RawPayload):
    challenges: Annotated[Optional[ChallengeCountsPayload], _LENIENT] = None
    quizzes: Annotated[Optional[QuizCountsPayload], _LENIENT] = None
    overall: Annotated[Optional[OverallProgressPayload], _LENIENT] = None


class LearningPathItemPayload(RawPayload):
    id: LenientStr = None
    title: LenientStr = None
    status: LenientStr = None
    type: LenientStr = None


class ClassStatisticsPayload(RawPayload):
    total_submissions: LenientInt = None
    pass_rate: LenientFloat = None
    users_passed: LenientInt = None
    users_attempted: LenientInt = None


class UserPerformancePayload(RawPayload):
    best_score: LenientFloat = None
    attempts_count: LenientInt = None


class QuizPayload(RawPayload):
    id: LenientStr = None
    title: LenientStr = None
    description: LenientStr = None
    status: LenientStr = None
    total_points: LenientInt = None
    time_limit_minutes: LenientInt = None
    total_questions: LenientInt = None
    published_at: LenientDatetime = None
    due_date: LenientDatetime = None
    allow_multiple_attempts: LenientBool = None
    class_statistics: Annotated[Optional[ClassStatisticsPayload], _LENIENT] = None
    user_performance: Annotated[Optional[UserPerformancePayload], _LENIENT] = None


class QuizListPayload(RawPayload):
    quizzes: List[QuizPayload]


class QuizStatsPayload(RawPayload):
    completed_quizzes: LenientInt = None
    average_score: LenientFloat = None
    total_quizzes: LenientInt = None
    user_global_rank: LenientInt = None


class ChallengeUserProgressPayload(RawPayload):
    status: LenientStr = None
    attempts_count: LenientInt = None
    best_score: LenientFloat = None
    completed_at: LenientDatetime = None


class ChallengeStatisticsPayload(RawPayload):
    users_completed: LenientInt = None
    users_attempted: LenientInt = None
    pass_rate: LenientFloat = None
    total_submissions: LenientInt = None


class ChallengePayload(RawPayload):
    id: LenientStr = None
    title: LenientStr = None
    slug: LenientStr = None
    short_description: LenientStr = None
    problem_statement: LenientStr = None
    difficulty_level: LenientStr = None
    tags: TagList = None
    estimated_time: LenientInt = None
    reward_points: LenientInt = None
    created_at: LenientDatetime = None
    published_at: LenientDatetime = None
    user_progress: Annotated[Optional[ChallengeUserProgressPayload], _LENIENT] = None
    statistics: Annotated[Optional[ChallengeStatisticsPayload], _LENIENT] = None


class ChallengeListPayload(RawPayload):
    challenges: List[ChallengePayload]


class ChallengeStatsPayload(RawPayload):
    completed_challenges: LenientInt = None
    total_points_earned: LenientInt = None
    success_rate: LenientFloat = None
    user_global_rank: LenientInt = None


class ChallengeDetailPayload(ChallengePayload):
    summary: LenientStr = None
    status: LenientStr = None
    test_cases: LenientList = None
    constraints: LenientList = None
    examples: LenientList = None
    hints: LenientList = None
    starter_code: LenientStr = None
    template_code: LenientStr = None
    updated_at: LenientDatetime = None
    total_submissions: LenientInt = None


class DashboardStatsEnvelope(RawPayload):
    data: DashboardStatsPayload


class LearningPathEnvelope(RawPayload):
    data: List[LearningPathItemPayload]


class QuizListEnvelope(RawPayload):
    data: QuizListPayload


class QuizStatsEnvelope(RawPayload):
    data: QuizStatsPayload


class ChallengeListEnvelope(RawPayload):
    data: ChallengeListPayload


class ChallengeStatsEnvelope(RawPayload):
    data: ChallengeStatsPayload


class ChallengeDetailEnvelope(RawPayload):
    data: ChallengeDetailPayload


__all__ = [
    "ChallengeDetailEnvelope",
    "ChallengeDetailPayload",
    "ChallengeListEnvelope",
    "ChallengePayload",
    "ChallengeStatsEnvelope",
    "ChallengeStatsPayload",
    "DashboardStatsEnvelope",
    "DashboardStatsPayload",
    "LearningPathEnvelope",
    "LearningPathItemPayload",
    "QuizListEnvelope",
    "QuizPayload",
    "QuizStatsEnvelope",
    "QuizStatsPayload",
]
