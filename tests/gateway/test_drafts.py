from __future__ import annotations

import pytest

from fixtures import make_draft

from quizme.catalog.catalog import QuestionCatalog
from quizme.catalog.authoring import AuthoringError
from quizme.catalog.models import QuestionType
from quizme.gateway.drafts import DraftBatch, RequestTracker


def _true_false():
    return make_draft(
        "Sky is blue",
        qtype=QuestionType.TRUE_FALSE,
        answer="Đúng",
        options=None,
    )


def test_tracker_only_honours_latest_ticket():
    tracker = RequestTracker()
    first = tracker.issue()
    second = tracker.issue()

    assert tracker.pending
    assert not tracker.is_current(first)
    assert tracker.is_current(second)
    assert tracker.complete(second)
    assert not tracker.pending
    assert not tracker.complete(second)


def test_tracker_cancel_invalidates_outstanding_ticket():
    tracker = RequestTracker()
    ticket = tracker.issue()

    tracker.cancel()

    assert not tracker.is_current(ticket)
    assert not tracker.pending


def test_stale_result_is_discarded():
    batch = DraftBatch()
    stale = batch.tracker.issue()
    fresh = batch.tracker.issue()

    assert batch.replace([make_draft("fresh")], fresh)
    assert not batch.replace([make_draft("stale")], stale)
    assert [draft.text for draft in batch] == ["fresh"]


def test_replace_discards_previous_batch():
    batch = DraftBatch()
    batch.replace([make_draft("a"), make_draft("b")], batch.tracker.issue())
    batch.replace([make_draft("c")], batch.tracker.issue())

    assert [draft.text for draft in batch.drafts] == ["c"]


def test_cancelled_request_result_is_ignored():
    batch = DraftBatch()
    ticket = batch.tracker.issue()
    batch.clear()

    assert not batch.replace([make_draft()], ticket)
    assert len(batch) == 0


def test_edit_and_remove():
    batch = DraftBatch()
    batch.replace(
        [make_draft("a"), make_draft("b"), make_draft("c")],
        batch.tracker.issue(),
    )

    edited = batch.edit(0, answer="5", topic="Sums")
    removed = batch.remove(1)

    assert edited.answer == "5"
    assert edited.topic == "Sums"
    assert removed.text == "b"
    assert [draft.text for draft in batch] == ["a", "c"]
    with pytest.raises(KeyError):
        batch.edit(0, difficulty="hard")
    with pytest.raises(IndexError):
        batch.remove(5)


def test_type_is_not_editable(catalog: QuestionCatalog):
    batch = DraftBatch()
    batch.replace([make_draft()], batch.tracker.issue())

    with pytest.raises(KeyError):
        batch.edit(0, type="TRUE_FALSE")

    (question,) = batch.commit(catalog, "Math", "Algebra")
    assert question.type is QuestionType.MULTIPLE_CHOICE
    assert question.options == ("3", "4", "5", "6")


def test_options_edit_moves_answer_to_renamed_option(
    catalog: QuestionCatalog,
):
    batch = DraftBatch()
    batch.replace([make_draft()], batch.tracker.issue())

    edited = batch.edit(0, options=["three", "four", "five", "six"])

    assert edited.answer == "four"
    (question,) = batch.commit(catalog, "Math", "Algebra")
    assert question.options == ("three", "four", "five", "six")
    assert question.answer == "four"


@pytest.mark.parametrize(
    "options",
    [["a", "b"], ["a", "b", "c", "d", "e"], ["a", "b", " ", "d"], []],
)
def test_options_edit_requires_four_entries(options):
    batch = DraftBatch()
    batch.replace([make_draft()], batch.tracker.issue())

    with pytest.raises(AuthoringError, match="4 options"):
        batch.edit(0, options=options)

    assert batch[0].options == ["3", "4", "5", "6"]
    assert batch[0].answer == "4"


def test_options_edit_rejected_for_other_types():
    batch = DraftBatch()
    batch.replace([_true_false()], batch.tracker.issue())

    with pytest.raises(AuthoringError, match="Only multiple choice"):
        batch.edit(0, options=["a", "b", "c", "d"])

    assert batch[0].options is None


def test_answer_must_match_options_or_literals():
    batch = DraftBatch()
    batch.replace([make_draft(), _true_false()], batch.tracker.issue())

    with pytest.raises(AuthoringError, match="one of the options"):
        batch.edit(0, answer="7")
    with pytest.raises(AuthoringError, match="one of the options"):
        batch.edit(0, options=["a", "b", "c", "d"], answer="z")
    with pytest.raises(AuthoringError, match="True/false"):
        batch.edit(1, answer="maybe")

    edited = batch.edit(0, options=["a", "b", "c", "d"], answer="c")
    assert edited.answer == "c"
    assert batch.edit(1, answer="Sai").answer == "Sai"


def test_commit_saves_and_empties(catalog: QuestionCatalog):
    batch = DraftBatch()
    batch.replace([make_draft("a"), make_draft("b")], batch.tracker.issue())

    created = batch.commit(catalog, "Math", "Algebra")

    assert [question.text for question in created] == ["a", "b"]
    assert len(batch) == 0
    assert catalog.question_count() == 2


def test_commit_requires_location(catalog: QuestionCatalog):
    batch = DraftBatch()
    batch.replace([make_draft()], batch.tracker.issue())

    with pytest.raises(AuthoringError):
        batch.commit(catalog, "Math", "")

    assert len(batch) == 1
    assert not catalog.has_questions()
