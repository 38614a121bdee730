"""In-memory question catalog with copy-on-write appends."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import TYPE_CHECKING, Callable, Sequence

from ..core.logging import null_logger
from .models import Chapter, Library, Question, QuestionDraft, Subject

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..store import QuizStore

__all__ = [
    "IdFactory",
    "QuestionCatalog",
    "append_questions",
    "default_id_factory",
]

IdFactory = Callable[[], str]


def default_id_factory() -> str:
    return uuid.uuid4().hex


def append_questions(
    library: Library,
    subject_name: str,
    chapter_name: str,
    new_questions: Sequence[QuestionDraft],
    *,
    id_factory: IdFactory = default_id_factory,
) -> tuple[Library, tuple[Question, ...]]:
    """Return a new library with ``new_questions`` appended.

    The subject and chapter are matched by exact name and created when
    missing. Only the touched subject and chapter are rebuilt; every other
    node is shared with ``library``, which is left untouched.
    """

    subjects = list(library.subjects)
    subject_index = _index_by_name(subjects, subject_name)
    if subject_index is None:
        subjects.append(Subject(id=id_factory(), name=subject_name))
        subject_index = len(subjects) - 1
    subject = subjects[subject_index]

    chapters = list(subject.chapters)
    chapter_index = _index_by_name(chapters, chapter_name)
    if chapter_index is None:
        chapters.append(
            Chapter(id=f"{subject.id}-{id_factory()}", name=chapter_name)
        )
        chapter_index = len(chapters) - 1
    chapter = chapters[chapter_index]

    created = tuple(
        draft.with_id(f"{chapter.id}-{id_factory()}-{position}")
        for position, draft in enumerate(new_questions)
    )
    chapters[chapter_index] = dataclasses.replace(
        chapter, questions=chapter.questions + created
    )
    subjects[subject_index] = dataclasses.replace(
        subject, chapters=tuple(chapters)
    )
    return Library(subjects=tuple(subjects)), created


def _index_by_name(
    items: Sequence[Subject | Chapter], name: str
) -> int | None:
    for index, item in enumerate(items):
        if item.name == name:
            return index
    return None


class QuestionCatalog:
    """Own the current library snapshot and write changes through."""

    def __init__(
        self,
        store: "QuizStore | None" = None,
        *,
        library: Library | None = None,
        id_factory: IdFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        if library is None:
            library = store.load_library() if store is not None else Library()
        self._library = library
        self._id_factory = id_factory or default_id_factory
        self._logger = logger or null_logger("quizme.catalog")

    @property
    def library(self) -> Library:
        return self._library

    def append_questions(
        self,
        subject_name: str,
        chapter_name: str,
        new_questions: Sequence[QuestionDraft],
    ) -> tuple[Question, ...]:
        """Append a batch to ``subject_name``/``chapter_name``.

        Returns the stored questions with their assigned ids.
        """

        library, created = append_questions(
            self._library,
            subject_name,
            chapter_name,
            new_questions,
            id_factory=self._id_factory,
        )
        if self._store is not None:
            self._store.save_library(library)
        self._library = library
        self._logger.info(
            "Appended questions",
            extra={
                "subject": subject_name,
                "chapter": chapter_name,
                "count": len(created),
            },
        )
        return created

    def find_subject(self, name: str) -> Subject | None:
        return self._library.find_subject(name)

    def find_chapter(
        self, subject_name: str, chapter_name: str
    ) -> Chapter | None:
        subject = self.find_subject(subject_name)
        if subject is None:
            return None
        return subject.find_chapter(chapter_name)

    def subject_names(self) -> list[str]:
        return [subject.name for subject in self._library.subjects]

    def chapter_names(self, subject_name: str) -> list[str]:
        subject = self.find_subject(subject_name)
        if subject is None:
            return []
        return [chapter.name for chapter in subject.chapters]

    def all_questions(self) -> list[Question]:
        return list(self._library.iter_questions())

    def question_count(self) -> int:
        return sum(1 for _ in self._library.iter_questions())

    def has_questions(self) -> bool:
        return any(True for _ in self._library.iter_questions())
