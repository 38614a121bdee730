"""Immutable subject → chapter → question data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, MutableMapping, Sequence

__all__ = [
    "QuestionType",
    "Question",
    "QuestionDraft",
    "Chapter",
    "Subject",
    "Library",
    "TRUE_LITERAL",
    "FALSE_LITERAL",
    "TRUE_FALSE_LITERALS",
    "MULTIPLE_CHOICE_OPTION_COUNT",
    "DEFAULT_TOPIC",
]

TRUE_LITERAL = "Đúng"
FALSE_LITERAL = "Sai"
TRUE_FALSE_LITERALS: tuple[str, str] = (TRUE_LITERAL, FALSE_LITERAL)
MULTIPLE_CHOICE_OPTION_COUNT = 4
DEFAULT_TOPIC = "Chung"


class QuestionType(Enum):
    """Supported question formats, valued by their wire names."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    FILL_IN_THE_BLANK = "FILL_IN_THE_BLANK"

    @classmethod
    def from_value(cls, value: "str | QuestionType") -> "QuestionType":
        if isinstance(value, QuestionType):
            return value
        normalized = str(value).strip().upper().replace("-", "_")
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown question type '{value}'. Expected one of: {expected}."
        )

    @property
    def has_options(self) -> bool:
        return self is QuestionType.MULTIPLE_CHOICE


@dataclass(frozen=True)
class Question:
    """A stored question. Replaced wholesale, never edited in place."""

    id: str
    text: str
    type: QuestionType
    answer: str
    topic: str
    options: tuple[str, ...] | None = None

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "id": self.id,
            "text": self.text,
            "type": self.type.value,
            "answer": self.answer,
            "topic": self.topic,
        }
        if self.options is not None:
            payload["options"] = list(self.options)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        try:
            identifier = str(payload["id"])
            text = str(payload["text"])
            qtype = QuestionType.from_value(payload["type"])
            answer = str(payload["answer"])
        except KeyError as exc:
            raise ValueError(
                f"Question payload missing required field: {exc}"
            ) from exc
        return cls(
            id=identifier,
            text=text,
            type=qtype,
            answer=answer,
            topic=str(payload.get("topic") or DEFAULT_TOPIC),
            options=_coerce_options(payload.get("options")),
        )


@dataclass
class QuestionDraft:
    """A question that has not been committed to the catalog yet."""

    text: str
    type: QuestionType
    answer: str
    topic: str = DEFAULT_TOPIC
    options: list[str] | None = None

    def with_id(self, identifier: str) -> Question:
        options = None
        if self.options is not None:
            options = tuple(str(option) for option in self.options)
        return Question(
            id=identifier,
            text=self.text,
            type=self.type,
            answer=self.answer,
            topic=self.topic,
            options=options,
        )

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "text": self.text,
            "type": self.type.value,
            "answer": self.answer,
            "topic": self.topic,
        }
        if self.options is not None:
            payload["options"] = list(self.options)
        return payload


@dataclass(frozen=True)
class Chapter:
    """Named, ordered question set within a subject."""

    id: str
    name: str
    questions: tuple[Question, ...] = ()

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "questions": [question.to_dict() for question in self.questions],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Chapter":
        try:
            return cls(
                id=str(payload["id"]),
                name=str(payload["name"]),
                questions=tuple(
                    Question.from_dict(item)
                    for item in payload.get("questions", [])
                ),
            )
        except KeyError as exc:
            raise ValueError(
                f"Chapter payload missing required field: {exc}"
            ) from exc


@dataclass(frozen=True)
class Subject:
    """Top-level grouping of chapters."""

    id: str
    name: str
    chapters: tuple[Chapter, ...] = ()

    def find_chapter(self, name: str) -> Chapter | None:
        for chapter in self.chapters:
            if chapter.name == name:
                return chapter
        return None

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "chapters": [chapter.to_dict() for chapter in self.chapters],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Subject":
        try:
            return cls(
                id=str(payload["id"]),
                name=str(payload["name"]),
                chapters=tuple(
                    Chapter.from_dict(item)
                    for item in payload.get("chapters", [])
                ),
            )
        except KeyError as exc:
            raise ValueError(
                f"Subject payload missing required field: {exc}"
            ) from exc


@dataclass(frozen=True)
class Library:
    """Root of the catalog: the ordered list of subjects."""

    subjects: tuple[Subject, ...] = field(default_factory=tuple)

    def find_subject(self, name: str) -> Subject | None:
        for subject in self.subjects:
            if subject.name == name:
                return subject
        return None

    def iter_questions(self) -> Iterator[Question]:
        for subject in self.subjects:
            for chapter in subject.chapters:
                yield from chapter.questions

    def to_list(self) -> list[MutableMapping[str, Any]]:
        return [subject.to_dict() for subject in self.subjects]

    @classmethod
    def from_list(cls, payload: Sequence[Mapping[str, Any]]) -> "Library":
        if not isinstance(payload, list):
            raise ValueError("Subject library must be a list.")
        return cls(subjects=tuple(Subject.from_dict(item) for item in payload))


def _coerce_options(raw: Any) -> tuple[str, ...] | None:
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise ValueError("Question options must be a list of strings.")
    return tuple(str(option) for option in raw)
