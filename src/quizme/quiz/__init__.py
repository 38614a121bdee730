"""Quiz sessions: lifecycle, scoring and result review."""

from .models import QuizAttempt, QuizSession
from .scoring import answers_match, is_correct, normalize_answer, score_answers
from .review import (
    UNANSWERED_LABEL,
    ReviewTopic,
    incorrect_questions,
    review_topics,
    score_band,
    score_percentage,
)
from .controller import (
    PRACTICE_LIMIT,
    QuizSessionController,
    SessionError,
    SessionState,
    select_practice_questions,
)

__all__ = [
    "QuizAttempt",
    "QuizSession",
    "answers_match",
    "is_correct",
    "normalize_answer",
    "score_answers",
    "UNANSWERED_LABEL",
    "ReviewTopic",
    "incorrect_questions",
    "review_topics",
    "score_band",
    "score_percentage",
    "PRACTICE_LIMIT",
    "QuizSessionController",
    "SessionError",
    "SessionState",
    "select_practice_questions",
]
