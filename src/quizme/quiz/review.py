"""Post-submission review: wrong answers and topics worth revisiting."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Literal

from ..catalog.models import Question
from .models import QuizAttempt
from .scoring import is_correct

__all__ = [
    "UNANSWERED_LABEL",
    "ReviewTopic",
    "ScoreBand",
    "incorrect_questions",
    "review_topics",
    "score_percentage",
    "score_band",
]

UNANSWERED_LABEL = "Not answered"

ScoreBand = Literal["good", "fair", "poor"]


@dataclass(frozen=True)
class ReviewTopic:
    """A topic and how many of its questions were missed."""

    topic: str
    wrong: int


def incorrect_questions(attempt: QuizAttempt) -> list[Question]:
    return [
        question
        for question in attempt.questions
        if not is_correct(question, attempt.user_answers)
    ]


def review_topics(
    attempt: QuizAttempt, limit: int | None = None
) -> list[ReviewTopic]:
    """Group missed questions by topic, most missed first.

    Ties keep the order in which topics first appear in the attempt.
    """

    counts = Counter(
        question.topic for question in incorrect_questions(attempt)
    )
    ranked = [
        ReviewTopic(topic, wrong) for topic, wrong in counts.most_common()
    ]
    if limit is not None:
        return ranked[:limit]
    return ranked


def score_percentage(attempt: QuizAttempt) -> float:
    if attempt.total <= 0:
        return 0.0
    return attempt.score / attempt.total * 100


def score_band(attempt: QuizAttempt) -> ScoreBand:
    percentage = score_percentage(attempt)
    if percentage >= 80:
        return "good"
    if percentage >= 50:
        return "fair"
    return "poor"
