"""View models produced by the transformers, plus synchronizer state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

DEFAULT_PROGRESS_MESSAGE = "Just getting started!"

DifficultyKind = Literal["Low", "Medium", "High"]
QuizStatusKind = Literal["available", "completed", "overdue", "upcoming"]
LearningPathStatusKind = Literal["Completed", "InProgress", "NotStarted"]
LearningPathCategoryKind = Literal["challenge", "quiz"]


class ResourceKind(str, Enum):
    STATS = "stats"
    LEARNING_PATH = "learning_path"
    QUIZZES = "quizzes"
    QUIZ_STATS = "quiz_stats"
    CHALLENGES = "challenges"
    CHALLENGE_STATS = "challenge_stats"


class SyncStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    ERROR = "error"
    TIMED_OUT = "timed_out"


class ChallengeProgressStats(BaseModel):
    completed: int = 0
    progress: float = 0
    this_week: int = 0
    total: int = 0


class QuizProgressStats(BaseModel):
    attempted: int = 0
    progress: float = 0
    this_week: int = 0
    total: int = 0


class OverallProgressStats(BaseModel):
    completed_items: int = 0
    message: str = DEFAULT_PROGRESS_MESSAGE
    progress: float = 0
    total_items: int = 0


class DashboardStatsVM(BaseModel):
    challenges: ChallengeProgressStats = Field(default_factory=ChallengeProgressStats)
    quizzes: QuizProgressStats = Field(default_factory=QuizProgressStats)
    overall: OverallProgressStats = Field(default_factory=OverallProgressStats)


class LearningPathItemVM(BaseModel):
    id: str
    title: str
    status: LearningPathStatusKind
    progress: int = Field(ge=0, le=100)
    category: Optional[LearningPathCategoryKind] = None
    original_status: Optional[str] = None
    original_type: Optional[str] = None


class QuizVM(BaseModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: DifficultyKind
    status: QuizStatusKind
    total_marks: int = 0
    duration_minutes: int = 0
    questions: int = 0
    date_posted: Optional[date] = None
    due_date: Optional[datetime] = None
    class_progress: float = Field(default=0, ge=0, le=100)
    user_score: Optional[float] = None
    attempts: int = 0
    tags: List[str] = Field(default_factory=list)
    pass_rate: float = 0
    users_passed: int = 0
    users_attempted: int = 0
    allow_multiple_attempts: bool = False


class QuizStatsVM(BaseModel):
    completed_quizzes: int = 0
    average_score: float = 0
    total_quizzes: int = 0
    user_global_rank: Optional[int] = None


class ChallengeVM(BaseModel):
    id: str
    title: str
    description: str
    difficulty: str
    category: str
    is_completed: bool = False
    is_in_progress: bool = False
    passed_students: int = Field(default=0, ge=0)
    total_attempts: int = Field(default=1, ge=1)
    points: int = 0
    estimated_time_minutes: int = 0
    user_attempts: int = 0
    user_best_score: float = 0
    tags: List[str] = Field(default_factory=list)
    pass_rate: float = 0
    total_submissions: int = 0
    slug: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


class ChallengeDetailVM(ChallengeVM):
    problem_statement: Optional[str] = None
    summary: Optional[str] = None
    publication_status: Optional[str] = None
    test_cases: List[Any] = Field(default_factory=list)
    constraints: List[Any] = Field(default_factory=list)
    examples: List[Any] = Field(default_factory=list)
    hints: List[Any] = Field(default_factory=list)
    starter_code: Optional[str] = None
    updated_at: Optional[datetime] = None


class ChallengeStatsVM(BaseModel):
    completed_challenges: int = 0
    total_points_earned: int = 0
    success_rate: float = 0
    user_global_rank: Optional[int] = None


T = TypeVar("T")


@dataclass(frozen=True)
class SyncState(Generic[T]):
    """Immutable snapshot of one synchronizer.

    ``value`` always holds usable data: the resource default whenever the
    status is not READY (except while FETCHING, which keeps the previous
    snapshot).
    """

    status: SyncStatus
    value: T
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    last_fetched_at: Optional[datetime] = None

    @property
    def is_loading(self) -> bool:
        return self.status in (SyncStatus.IDLE, SyncStatus.FETCHING)

    @property
    def requires_reauthentication(self) -> bool:
        return self.status is SyncStatus.TIMED_OUT or self.error_kind == "invalid_identity"


__all__ = [
    "DEFAULT_PROGRESS_MESSAGE",
    "ChallengeDetailVM",
    "ChallengeProgressStats",
    "ChallengeStatsVM",
    "ChallengeVM",
    "DashboardStatsVM",
    "DifficultyKind",
    "LearningPathCategoryKind",
    "LearningPathItemVM",
    "LearningPathStatusKind",
    "OverallProgressStats",
    "QuizProgressStats",
    "QuizStatsVM",
    "QuizStatusKind",
    "QuizVM",
    "ResourceKind",
    "SyncState",
    "SyncStatus",
]
