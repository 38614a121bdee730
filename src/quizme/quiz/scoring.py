"""Answer comparison and scoring."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..catalog.models import Question

__all__ = ["normalize_answer", "answers_match", "is_correct", "score_answers"]


def normalize_answer(value: str | None) -> str:
    return (value or "").strip().casefold()


def answers_match(user_answer: str | None, correct_answer: str) -> bool:
    """Trimmed, case-insensitive equality. Missing answers never match."""

    if user_answer is None:
        return False
    return normalize_answer(user_answer) == normalize_answer(correct_answer)


def is_correct(question: Question, user_answers: Mapping[str, str]) -> bool:
    return answers_match(user_answers.get(question.id), question.answer)


def score_answers(
    questions: Sequence[Question], user_answers: Mapping[str, str]
) -> int:
    return sum(
        1 for question in questions if is_correct(question, user_answers)
    )
