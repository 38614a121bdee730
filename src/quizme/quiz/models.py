"""Session and attempt records for quiz runs."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, MutableMapping, Sequence

from ..catalog.models import Question

__all__ = ["QuizSession", "QuizAttempt"]


@dataclass(frozen=True)
class QuizSession:
    """Resumable state of an in-progress quiz.

    ``questions`` is a snapshot taken at start; later catalog edits never
    reach it. Every update returns a new session.
    """

    questions: tuple[Question, ...]
    user_answers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    current_index: int = 0
    start_time: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))
        object.__setattr__(
            self, "user_answers", MappingProxyType(dict(self.user_answers))
        )

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.current_index]

    def answered_count(self) -> int:
        return len(self.user_answers)

    def answer_for(self, question_id: str) -> str | None:
        return self.user_answers.get(question_id)

    def with_answer(self, question_id: str, value: str) -> "QuizSession":
        answers = dict(self.user_answers)
        answers[question_id] = value
        return dataclasses.replace(self, user_answers=answers)

    def with_index(self, index: int) -> "QuizSession":
        return dataclasses.replace(self, current_index=index)

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "questions": [question.to_dict() for question in self.questions],
            "userAnswers": dict(self.user_answers),
            "currentIndex": self.current_index,
            "startTime": self.start_time,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizSession":
        try:
            questions = _questions_from(payload["questions"])
            answers = _answers_from(payload.get("userAnswers", {}))
            index = int(payload.get("currentIndex", 0))
            start_time = int(payload.get("startTime", 0))
        except KeyError as exc:
            raise ValueError(
                f"Session payload missing required field: {exc}"
            ) from exc
        if questions and not 0 <= index < len(questions):
            index = 0
        return cls(
            questions=questions,
            user_answers=answers,
            current_index=index,
            start_time=start_time,
        )


@dataclass(frozen=True)
class QuizAttempt:
    """Immutable record of one submitted quiz."""

    questions: tuple[Question, ...]
    user_answers: Mapping[str, str]
    score: int
    total: int
    timestamp: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))
        object.__setattr__(
            self, "user_answers", MappingProxyType(dict(self.user_answers))
        )

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "questions": [question.to_dict() for question in self.questions],
            "userAnswers": dict(self.user_answers),
            "score": self.score,
            "total": self.total,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizAttempt":
        try:
            return cls(
                questions=_questions_from(payload["questions"]),
                user_answers=_answers_from(payload.get("userAnswers", {})),
                score=int(payload["score"]),
                total=int(payload["total"]),
                timestamp=int(payload.get("timestamp", 0)),
            )
        except KeyError as exc:
            raise ValueError(
                f"Attempt payload missing required field: {exc}"
            ) from exc


def _questions_from(raw: Any) -> tuple[Question, ...]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise ValueError("Question snapshot must be a list.")
    return tuple(Question.from_dict(item) for item in raw)


def _answers_from(raw: Any) -> dict[str, str]:
    if not isinstance(raw, Mapping):
        raise ValueError("User answers must be a mapping.")
    return {str(key): str(value) for key, value in raw.items()}
