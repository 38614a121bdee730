"""Draft batches returned by generation, and the stale-response guard."""

from __future__ import annotations

import itertools
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from ..catalog.authoring import AuthoringError, commit_drafts
from ..catalog.models import (
    MULTIPLE_CHOICE_OPTION_COUNT,
    TRUE_FALSE_LITERALS,
    Question,
    QuestionDraft,
    QuestionType,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..catalog.catalog import QuestionCatalog

__all__ = ["RequestTracker", "DraftBatch"]

_EDITABLE_FIELDS = frozenset({"text", "answer", "topic", "options"})


class RequestTracker:
    """Hand out tickets so only the newest pending request is honoured.

    Issuing a ticket or cancelling makes every earlier ticket stale. A
    response that arrives with a stale ticket must be dropped.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current: Optional[int] = None

    def issue(self) -> int:
        self._current = next(self._counter)
        return self._current

    def is_current(self, ticket: int) -> bool:
        return self._current is not None and ticket == self._current

    def complete(self, ticket: int) -> bool:
        """Close ``ticket`` if it is current. Returns whether it was."""

        if not self.is_current(ticket):
            return False
        self._current = None
        return True

    def cancel(self) -> None:
        self._current = None

    @property
    def pending(self) -> bool:
        return self._current is not None


class DraftBatch:
    """Editable list of unsaved drafts. Nothing here touches the store."""

    def __init__(self, tracker: RequestTracker | None = None) -> None:
        self.tracker = tracker or RequestTracker()
        self._drafts: list[QuestionDraft] = []

    def __len__(self) -> int:
        return len(self._drafts)

    def __iter__(self) -> Iterator[QuestionDraft]:
        return iter(self._drafts)

    def __getitem__(self, index: int) -> QuestionDraft:
        return self._drafts[index]

    @property
    def drafts(self) -> tuple[QuestionDraft, ...]:
        return tuple(self._drafts)

    def replace(self, drafts: Iterable[QuestionDraft], ticket: int) -> bool:
        """Swap in a generation result when ``ticket`` is still current.

        A previous batch is discarded outright, never merged.
        """

        if not self.tracker.complete(ticket):
            return False
        self._drafts = list(drafts)
        return True

    def edit(self, index: int, **changes: Any) -> QuestionDraft:
        """Change text, answer, topic or options of one draft.

        Options can only change on multiple choice drafts and must stay at
        four entries. When the answer named a replaced option it follows
        that option to its new text.
        """

        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise KeyError(f"Unknown draft field(s): {sorted(unknown)}")
        draft = self._drafts[index]
        if "options" in changes:
            options = _checked_options(draft, changes["options"])
            changes["options"] = options
            if "answer" not in changes and draft.options is not None:
                old_options = list(draft.options)
                if draft.answer in old_options[: len(options)]:
                    position = old_options.index(draft.answer)
                    changes["answer"] = options[position]
        updated = replace(draft, **changes)
        if {"answer", "options"} & set(changes):
            _check_answer(updated)
        self._drafts[index] = updated
        return updated

    def remove(self, index: int) -> QuestionDraft:
        return self._drafts.pop(index)

    def clear(self) -> None:
        self._drafts = []
        self.tracker.cancel()

    def commit(
        self, catalog: "QuestionCatalog", subject: str, chapter: str
    ) -> tuple[Question, ...]:
        """Save every draft as generated or edited, then empty the batch.

        Only the destination is checked here; edits are checked as they
        are made.
        """

        created = commit_drafts(catalog, subject, chapter, self._drafts)
        self._drafts = []
        return created


def _checked_options(draft: QuestionDraft, raw: Any) -> list[str]:
    if draft.type is not QuestionType.MULTIPLE_CHOICE:
        raise AuthoringError("Only multiple choice questions carry options.")
    options = [str(option).strip() for option in raw or []]
    if len(options) != MULTIPLE_CHOICE_OPTION_COUNT or not all(options):
        raise AuthoringError(
            f"Multiple choice questions need all "
            f"{MULTIPLE_CHOICE_OPTION_COUNT} options filled in."
        )
    return options


def _check_answer(draft: QuestionDraft) -> None:
    if not draft.answer.strip():
        raise AuthoringError("A correct answer is required.")
    if (
        draft.type is QuestionType.MULTIPLE_CHOICE
        and draft.options is not None
        and draft.answer not in draft.options
    ):
        raise AuthoringError("The correct answer must be one of the options.")
    if (
        draft.type is QuestionType.TRUE_FALSE
        and draft.answer not in TRUE_FALSE_LITERALS
    ):
        literals = " or ".join(f'"{value}"' for value in TRUE_FALSE_LITERALS)
        raise AuthoringError(f"True/false answers must be {literals}.")
