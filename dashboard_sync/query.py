"""Stateless filtering, sorting and aggregation over materialized view models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .models import ChallengeVM, QuizStatsVM, QuizVM
from .transformers import challenge_progress_key, quiz_due_date_key

ALL = "All"

Item = TypeVar("Item", QuizVM, ChallengeVM)


def _matches_search(search_term: str, fields: Iterable[str]) -> bool:
    needle = (search_term or "").lower()
    if not needle:
        return True
    return any(needle in (field or "").lower() for field in fields)


def _matches_choice(selected: Optional[str], actual: str) -> bool:
    return not selected or selected == ALL or actual == selected


def filter_quizzes(
    quizzes: Sequence[QuizVM],
    search_term: str = "",
    category: str = ALL,
    status: str = ALL,
) -> List[QuizVM]:
    """Quizzes whose title, description or tags contain ``search_term``."""
    return [
        quiz
        for quiz in quizzes
        if _matches_search(search_term, (quiz.title, quiz.description, *quiz.tags))
        and _matches_choice(category, quiz.category)
        and _matches_choice(status, quiz.status)
    ]


def filter_challenges(
    challenges: Sequence[ChallengeVM],
    search_term: str = "",
    category: str = ALL,
    difficulty: str = ALL,
) -> List[ChallengeVM]:
    return [
        challenge
        for challenge in challenges
        if _matches_search(search_term, (challenge.title, challenge.description))
        and _matches_choice(category, challenge.category)
        and _matches_choice(difficulty, challenge.difficulty)
    ]


def _date_posted_descending(quiz: QuizVM) -> Tuple[bool, int]:
    posted: Optional[date] = quiz.date_posted
    return (posted is None, -posted.toordinal() if posted else 0)


_QUIZ_SORT_KEYS: Dict[str, Callable[[QuizVM], object]] = {
    "due_date": quiz_due_date_key,
    "date_posted": _date_posted_descending,
    "total_marks": lambda quiz: -quiz.total_marks,
    "class_progress": lambda quiz: -quiz.class_progress,
}
_QUIZ_SORT_ALIASES = {
    "dueDate": "due_date",
    "datePosted": "date_posted",
    "totalMarks": "total_marks",
    "progress": "class_progress",
}

_CHALLENGE_SORT_KEYS: Dict[str, Callable[[ChallengeVM], object]] = {
    "progress": challenge_progress_key,
    "newest": lambda challenge: (
        challenge.created_at is None,
        -(challenge.created_at.timestamp()) if challenge.created_at else 0.0,
    ),
    "points": lambda challenge: -challenge.points,
}


def sort_quizzes(quizzes: Sequence[QuizVM], key: Optional[str]) -> List[QuizVM]:
    """Stable sort; unknown keys keep the original order."""
    resolved = _QUIZ_SORT_ALIASES.get(key or "", key or "")
    sort_key = _QUIZ_SORT_KEYS.get(resolved)
    if sort_key is None:
        return list(quizzes)
    return sorted(quizzes, key=sort_key)  # type: ignore[arg-type]


def sort_challenges(challenges: Sequence[ChallengeVM], key: Optional[str]) -> List[ChallengeVM]:
    sort_key = _CHALLENGE_SORT_KEYS.get(key or "")
    if sort_key is None:
        return list(challenges)
    return sorted(challenges, key=sort_key)  # type: ignore[arg-type]


def available_categories(items: Iterable[Item]) -> List[str]:
    return [ALL, *sorted({item.category for item in items})]


@dataclass(frozen=True)
class QuizSummary:
    completed_quizzes: int
    total_quizzes: int
    average_score: int
    user_global_rank: Optional[int]
    total_points_earned: float
    total_points_possible: int


def summarize_quizzes(quizzes: Sequence[QuizVM], stats: Optional[QuizStatsVM] = None) -> QuizSummary:
    """Aggregate figures for the quiz overview; recomputed on every call."""
    stats = stats or QuizStatsVM()
    scored = [quiz for quiz in quizzes if quiz.user_score is not None]
    return QuizSummary(
        completed_quizzes=stats.completed_quizzes,
        total_quizzes=stats.total_quizzes or len(quizzes),
        average_score=int(round(stats.average_score)),
        user_global_rank=stats.user_global_rank,
        total_points_earned=sum(quiz.user_score or 0 for quiz in scored),
        total_points_possible=sum(quiz.total_marks for quiz in scored),
    )


__all__ = [
    "ALL",
    "QuizSummary",
    "available_categories",
    "filter_challenges",
    "filter_quizzes",
    "sort_challenges",
    "sort_quizzes",
    "summarize_quizzes",
]
