"""Pure mappings from validated backend payloads to display-ready view models.

Classification is driven by ordered rule tables evaluated top-down; the first
matching rule wins and each table carries a fixed default. Every scalar is
defaulted on its own so one missing counter never blanks a whole card.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .models import (
    DEFAULT_PROGRESS_MESSAGE,
    ChallengeDetailVM,
    ChallengeProgressStats,
    ChallengeStatsVM,
    ChallengeVM,
    DashboardStatsVM,
    DifficultyKind,
    LearningPathCategoryKind,
    LearningPathItemVM,
    LearningPathStatusKind,
    OverallProgressStats,
    QuizProgressStats,
    QuizStatsVM,
    QuizStatusKind,
    QuizVM,
)
from .payloads import (
    ChallengeCountsPayload,
    ChallengeDetailPayload,
    ChallengeListPayload,
    ChallengePayload,
    ChallengeStatsPayload,
    DashboardStatsPayload,
    LearningPathItemPayload,
    OverallProgressPayload,
    QuizCountsPayload,
    QuizListPayload,
    QuizPayload,
    QuizStatsPayload,
)

V = TypeVar("V")

IN_PROGRESS_PLACEHOLDER = 65
UPCOMING_THRESHOLD_DAYS = 7
MAX_QUIZ_TAGS = 3
DESCRIPTION_PREVIEW_CHARS = 100

KeywordRule = Tuple[Tuple[str, ...], str]

# Topic rules precede the level words ("basic", "fundamental") so that
# "Control Flow Basics" lands in Control Flow rather than Basics.
QUIZ_CATEGORY_RULES: Tuple[KeywordRule, ...] = (
    (("control", "loop", "condition"), "Control Flow"),
    (("function", "method"), "Functions"),
    (("data structure", "list", "dict"), "Data Structures"),
    (("object", "class", "oop"), "OOP"),
    (("error", "exception", "debug"), "Error Handling"),
    (("basic", "fundamental"), "Basics"),
    (("isixhosa", "xhosa"), "IsiXhosa"),
    (("python",), "Python"),
)
QUIZ_DEFAULT_CATEGORY = "Programming"

# (max total points, max minutes, difficulty); both bounds inclusive.
QUIZ_DIFFICULTY_RULES: Tuple[Tuple[int, int, DifficultyKind], ...] = (
    (30, 30, "Low"),
    (50, 60, "Medium"),
)
QUIZ_DEFAULT_DIFFICULTY: DifficultyKind = "High"

QUIZ_TITLE_TAG_RULES: Tuple[KeywordRule, ...] = (
    (("isixhosa", "xhosa"), "IsiXhosa"),
    (("python",), "Python"),
)

CHALLENGE_DIFFICULTY_MAP: Dict[str, str] = {
    "Easy": "Low",
    "Medium": "Medium",
    "Hard": "High",
}

CHALLENGE_TAG_CATEGORIES: Dict[str, str] = {
    "basics": "Basics",
    "beginner": "Basics",
    "output": "Basics",
    "input": "Basics",
    "algorithms": "Algorithms",
    "binary-search": "Algorithms",
    "divide-and-conquer": "Algorithms",
    "arrays": "Data Structures",
    "hash-table": "Data Structures",
    "arithmetic": "Functions",
}
CHALLENGE_DEFAULT_CATEGORY = "General"

LEARNING_PATH_STATUS_RULES: Dict[str, Tuple[LearningPathStatusKind, int]] = {
    "completed": ("Completed", 100),
    "in_progress": ("InProgress", IN_PROGRESS_PLACEHOLDER),
}
LEARNING_PATH_DEFAULT_STATUS: Tuple[LearningPathStatusKind, int] = ("NotStarted", 0)
LEARNING_PATH_CATEGORIES: Dict[str, LearningPathCategoryKind] = {"challenge": "challenge", "quiz": "quiz"}

_KNOWN_QUIZ_STATUSES = {"available", "completed", "overdue", "upcoming"}


def _or(value: Optional[V], default: V) -> V:
    return default if value is None else value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def match_keyword_rules(text: str, rules: Iterable[KeywordRule], default: str) -> str:
    """Return the category of the first rule with a keyword contained in ``text``."""
    lowered = text.lower()
    for keywords, category in rules:
        if any(keyword in lowered for keyword in keywords):
            return category
    return default


# --- Dashboard stats -------------------------------------------------------


def default_dashboard_stats() -> DashboardStatsVM:
    return DashboardStatsVM()


def transform_dashboard_stats(data: DashboardStatsPayload, now: Optional[datetime] = None) -> DashboardStatsVM:
    challenges = data.challenges or ChallengeCountsPayload()
    quizzes = data.quizzes or QuizCountsPayload()
    overall = data.overall or OverallProgressPayload()
    return DashboardStatsVM(
        challenges=ChallengeProgressStats(
            completed=_or(challenges.completed, 0),
            progress=_or(challenges.progress, 0),
            this_week=_or(challenges.this_week, 0),
            total=_or(challenges.total, 0),
        ),
        quizzes=QuizProgressStats(
            attempted=_or(quizzes.attempted, 0),
            progress=_or(quizzes.progress, 0),
            this_week=_or(quizzes.this_week, 0),
            total=_or(quizzes.total, 0),
        ),
        overall=OverallProgressStats(
            completed_items=_or(overall.completed_items, 0),
            message=overall.message or DEFAULT_PROGRESS_MESSAGE,
            progress=_or(overall.progress, 0),
            total_items=_or(overall.total_items, 0),
        ),
    )


# --- Learning path ---------------------------------------------------------


def derive_learning_path_status(raw_status: Optional[str]) -> Tuple[LearningPathStatusKind, int]:
    return LEARNING_PATH_STATUS_RULES.get(raw_status or "", LEARNING_PATH_DEFAULT_STATUS)


def learning_path_category(raw_type: Optional[str]) -> Optional[LearningPathCategoryKind]:
    """Map the raw item type onto challenge/quiz; anything else has no category."""
    return LEARNING_PATH_CATEGORIES.get((raw_type or "").strip().lower())


def _learning_path_item(item: LearningPathItemPayload) -> LearningPathItemVM:
    status, progress = derive_learning_path_status(item.status)
    return LearningPathItemVM(
        id=_or(item.id, ""),
        title=_or(item.title, ""),
        status=status,
        progress=progress,
        category=learning_path_category(item.type),
        original_status=item.status,
        original_type=item.type,
    )


def transform_learning_path(
    data: Sequence[LearningPathItemPayload],
    now: Optional[datetime] = None,
) -> List[LearningPathItemVM]:
    return [_learning_path_item(item) for item in data]


# --- Quizzes ---------------------------------------------------------------


def classify_quiz_category(title: Optional[str], description: Optional[str]) -> str:
    return match_keyword_rules(f"{title or ''} {description or ''}", QUIZ_CATEGORY_RULES, QUIZ_DEFAULT_CATEGORY)


def classify_quiz_difficulty(total_points: Optional[int], time_limit_minutes: Optional[int]) -> DifficultyKind:
    points = _or(total_points, 0)
    minutes = _or(time_limit_minutes, 0)
    for max_points, max_minutes, difficulty in QUIZ_DIFFICULTY_RULES:
        if points <= max_points and minutes <= max_minutes:
            return difficulty
    return QUIZ_DEFAULT_DIFFICULTY


def days_until(due: datetime, now: datetime) -> int:
    """Whole days until ``due``, rounded up (a partial day counts as one)."""
    delta = _as_utc(due) - _as_utc(now)  # type: ignore[operator]
    return math.ceil(delta.total_seconds() / 86400)


def derive_quiz_status(raw_status: Optional[str], due_date: Optional[datetime], now: datetime) -> QuizStatusKind:
    status = raw_status if raw_status in _KNOWN_QUIZ_STATUSES else "available"
    due = _as_utc(due_date)
    current = _as_utc(now)
    if status == "overdue" or (due is not None and due < current and status != "completed"):
        return "overdue"
    if status == "available" and due is not None and days_until(due, current) > UPCOMING_THRESHOLD_DAYS:  # type: ignore[arg-type]
        return "upcoming"
    return status  # type: ignore[return-value]


def build_quiz_tags(
    category: str,
    title: str,
    status: str,
    attempts: int,
    user_score: Optional[float],
    total_points: int,
) -> List[str]:
    tags = [category]
    if status == "completed":
        percentage = _round_half_up((user_score or 0) / total_points * 100) if total_points > 0 else 0
        tags.append(f"{percentage}%")
    elif status == "overdue":
        tags.append("Overdue")
    elif status == "available" and attempts == 0:
        tags.append("Not Started")
    lowered = title.lower()
    for keywords, tag in QUIZ_TITLE_TAG_RULES:
        if any(keyword in lowered for keyword in keywords):
            tags.append(tag)
    return tags[:MAX_QUIZ_TAGS]


def _quiz(item: QuizPayload, now: datetime) -> QuizVM:
    title = _or(item.title, "")
    description = _or(item.description, "")
    total_points = _or(item.total_points, 0)
    category = classify_quiz_category(title, description)
    status = derive_quiz_status(item.status, item.due_date, now)

    class_stats = item.class_statistics
    performance = item.user_performance
    pass_rate = _or(class_stats.pass_rate, 0) if class_stats else 0
    total_submissions = _or(class_stats.total_submissions, 0) if class_stats else 0
    attempts = _or(performance.attempts_count, 0) if performance else 0
    user_score = performance.best_score if performance else None
    published_at = _as_utc(item.published_at)

    return QuizVM(
        id=_or(item.id, ""),
        title=title,
        description=description,
        category=category,
        difficulty=classify_quiz_difficulty(item.total_points, item.time_limit_minutes),
        status=status,
        total_marks=total_points,
        duration_minutes=_or(item.time_limit_minutes, 0),
        questions=_or(item.total_questions, 0),
        date_posted=published_at.date() if published_at else None,
        due_date=_as_utc(item.due_date),
        class_progress=_clamp_percent(pass_rate) if total_submissions > 0 else 0,
        user_score=user_score,
        attempts=attempts,
        tags=build_quiz_tags(category, title, status, attempts, user_score, total_points),
        pass_rate=pass_rate,
        users_passed=_or(class_stats.users_passed, 0) if class_stats else 0,
        users_attempted=_or(class_stats.users_attempted, 0) if class_stats else 0,
        allow_multiple_attempts=bool(item.allow_multiple_attempts),
    )


def quiz_due_date_key(quiz: QuizVM) -> Tuple[bool, datetime]:
    return (quiz.due_date is None, quiz.due_date or datetime.min.replace(tzinfo=timezone.utc))


def transform_quizzes(data: QuizListPayload, now: Optional[datetime] = None) -> List[QuizVM]:
    current = now or datetime.now(timezone.utc)
    quizzes = [_quiz(item, current) for item in data.quizzes]
    quizzes.sort(key=quiz_due_date_key)
    return quizzes


def transform_quiz_stats(data: QuizStatsPayload, now: Optional[datetime] = None) -> QuizStatsVM:
    return QuizStatsVM(
        completed_quizzes=_or(data.completed_quizzes, 0),
        average_score=_or(data.average_score, 0),
        total_quizzes=_or(data.total_quizzes, 0),
        user_global_rank=data.user_global_rank,
    )


# --- Challenges ------------------------------------------------------------


def map_challenge_difficulty(level: Optional[str]) -> str:
    if level is None:
        return ""
    return CHALLENGE_DIFFICULTY_MAP.get(level, level)


def classify_challenge_category(tags: Optional[Sequence[str]]) -> str:
    for tag in tags or ():
        category = CHALLENGE_TAG_CATEGORIES.get(tag.lower())
        if category:
            return category
    return CHALLENGE_DEFAULT_CATEGORY


def _challenge_description(item: ChallengePayload) -> str:
    if item.short_description:
        return item.short_description
    if item.problem_statement:
        return item.problem_statement[:DESCRIPTION_PREVIEW_CHARS] + "..."
    return ""


def _challenge_fields(item: ChallengePayload) -> Dict[str, object]:
    progress = item.user_progress
    statistics = item.statistics
    progress_status = progress.status if progress else None
    users_completed = _or(statistics.users_completed, 0) if statistics else 0
    users_attempted = _or(statistics.users_attempted, 0) if statistics else 0
    return {
        "id": _or(item.id, ""),
        "title": _or(item.title, ""),
        "description": _challenge_description(item),
        "difficulty": map_challenge_difficulty(item.difficulty_level),
        "category": classify_challenge_category(item.tags),
        "is_completed": progress_status == "completed",
        "is_in_progress": progress_status == "in_progress",
        "passed_students": max(users_completed, 0),
        "total_attempts": max(users_attempted, users_completed, 1),
        "points": _or(item.reward_points, 0),
        "estimated_time_minutes": _or(item.estimated_time, 0),
        "user_attempts": _or(progress.attempts_count, 0) if progress else 0,
        "user_best_score": _or(progress.best_score, 0) if progress else 0,
        "tags": list(item.tags or []),
        "pass_rate": _or(statistics.pass_rate, 0) if statistics else 0,
        "total_submissions": _or(statistics.total_submissions, 0) if statistics else 0,
        "slug": item.slug,
        "completed_at": _as_utc(progress.completed_at) if progress else None,
        "created_at": _as_utc(item.created_at),
        "published_at": _as_utc(item.published_at),
    }


def challenge_progress_rank(challenge: ChallengeVM) -> int:
    """In progress first, then not started, then completed."""
    if challenge.is_in_progress:
        return 1
    if not challenge.is_completed:
        return 2
    return 3


def challenge_progress_key(challenge: ChallengeVM) -> Tuple[int, bool, float]:
    created = challenge.created_at
    return (
        challenge_progress_rank(challenge),
        created is None,
        -created.timestamp() if created else 0.0,
    )


def transform_challenges(data: ChallengeListPayload, now: Optional[datetime] = None) -> List[ChallengeVM]:
    challenges = [ChallengeVM(**_challenge_fields(item)) for item in data.challenges]
    challenges.sort(key=challenge_progress_key)
    return challenges


def transform_challenge_stats(data: ChallengeStatsPayload, now: Optional[datetime] = None) -> ChallengeStatsVM:
    return ChallengeStatsVM(
        completed_challenges=_or(data.completed_challenges, 0),
        total_points_earned=_or(data.total_points_earned, 0),
        success_rate=_or(data.success_rate, 0),
        user_global_rank=data.user_global_rank,
    )


def transform_challenge_detail(data: ChallengeDetailPayload, now: Optional[datetime] = None) -> ChallengeDetailVM:
    fields = _challenge_fields(data)
    if data.total_submissions is not None:
        fields["total_submissions"] = data.total_submissions
    return ChallengeDetailVM(
        **fields,
        problem_statement=data.problem_statement,
        summary=data.summary,
        publication_status=data.status,
        test_cases=list(data.test_cases or []),
        constraints=list(data.constraints or []),
        examples=list(data.examples or []),
        hints=list(data.hints or []),
        starter_code=data.starter_code or data.template_code,
        updated_at=_as_utc(data.updated_at),
    )


__all__ = [
    "CHALLENGE_TAG_CATEGORIES",
    "IN_PROGRESS_PLACEHOLDER",
    "QUIZ_CATEGORY_RULES",
    "QUIZ_DIFFICULTY_RULES",
    "challenge_progress_key",
    "classify_challenge_category",
    "classify_quiz_category",
    "classify_quiz_difficulty",
    "days_until",
    "quiz_due_date_key",
    "default_dashboard_stats",
    "derive_learning_path_status",
    "learning_path_category",
    "derive_quiz_status",
    "map_challenge_difficulty",
    "match_keyword_rules",
    "transform_challenge_detail",
    "transform_challenge_stats",
    "transform_challenges",
    "transform_dashboard_stats",
    "transform_learning_path",
    "transform_quiz_stats",
    "transform_quizzes",
]
