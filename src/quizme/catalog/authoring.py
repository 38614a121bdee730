"""Validation applied before drafts reach the catalog."""

from __future__ import annotations

from typing import Sequence

from .catalog import QuestionCatalog
from .models import (
    DEFAULT_TOPIC,
    MULTIPLE_CHOICE_OPTION_COUNT,
    TRUE_FALSE_LITERALS,
    Question,
    QuestionDraft,
    QuestionType,
)

__all__ = [
    "AuthoringError",
    "require_location",
    "validate_draft",
    "build_manual_draft",
    "add_manual_question",
    "commit_drafts",
]


class AuthoringError(ValueError):
    """Raised when authored content is incomplete or inconsistent."""


def require_location(subject_name: str, chapter_name: str) -> tuple[str, str]:
    """Return stripped subject/chapter names, rejecting blanks."""

    subject = (subject_name or "").strip()
    chapter = (chapter_name or "").strip()
    if not subject or not chapter:
        raise AuthoringError(
            "A subject and a chapter name are required before saving."
        )
    return subject, chapter


def validate_draft(draft: QuestionDraft) -> None:
    """Validate a draft question.

    - text and answer are required
    - multiple choice needs exactly four non-empty options and the answer
      must be one of them
    - true/false answers must be one of the canonical literals
    Raises AuthoringError with a message fit for the user.
    """

    if not draft.text.strip():
        raise AuthoringError("Question text is required.")
    if not draft.answer.strip():
        raise AuthoringError("A correct answer is required.")
    if draft.type is QuestionType.MULTIPLE_CHOICE:
        options = draft.options or []
        if len(options) != MULTIPLE_CHOICE_OPTION_COUNT or any(
            not option.strip() for option in options
        ):
            raise AuthoringError(
                f"Multiple choice questions need all "
                f"{MULTIPLE_CHOICE_OPTION_COUNT} options filled in."
            )
        if draft.answer not in options:
            raise AuthoringError(
                "The correct answer must be one of the options."
            )
    elif draft.options is not None:
        raise AuthoringError(
            "Only multiple choice questions carry options."
        )
    if (
        draft.type is QuestionType.TRUE_FALSE
        and draft.answer not in TRUE_FALSE_LITERALS
    ):
        literals = " or ".join(f'"{value}"' for value in TRUE_FALSE_LITERALS)
        raise AuthoringError(f"True/false answers must be {literals}.")


def build_manual_draft(
    *,
    text: str,
    question_type: QuestionType | str,
    answer: str,
    topic: str = "",
    options: Sequence[str] | None = None,
) -> QuestionDraft:
    """Assemble a draft from form fields the way the authoring form does."""

    qtype = QuestionType.from_value(question_type)
    return QuestionDraft(
        text=text,
        type=qtype,
        answer=answer,
        topic=topic.strip() or DEFAULT_TOPIC,
        options=list(options or []) if qtype.has_options else None,
    )


def add_manual_question(
    catalog: QuestionCatalog,
    subject_name: str,
    chapter_name: str,
    draft: QuestionDraft,
) -> Question:
    subject, chapter = require_location(subject_name, chapter_name)
    validate_draft(draft)
    (created,) = catalog.append_questions(subject, chapter, [draft])
    return created


def commit_drafts(
    catalog: QuestionCatalog,
    subject_name: str,
    chapter_name: str,
    drafts: Sequence[QuestionDraft],
) -> tuple[Question, ...]:
    """Save a batch of generated drafts.

    Generated content is not checked for correctness; only the destination
    is required. An empty batch writes nothing.
    """

    subject, chapter = require_location(subject_name, chapter_name)
    if not drafts:
        return ()
    return catalog.append_questions(subject, chapter, list(drafts))
