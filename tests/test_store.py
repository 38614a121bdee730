from __future__ import annotations

import json

import pytest

from fixtures import make_question

from quizme.catalog.models import (
    Chapter,
    Library,
    QuestionType,
    Subject,
)
from quizme.quiz.models import QuizAttempt, QuizSession
from quizme.store import (
    ACTIVE_SESSION_KEY,
    ATTEMPTS_KEY,
    SUBJECTS_KEY,
    JsonStore,
    QuizStore,
    StoreError,
)


def _library() -> Library:
    question = make_question(
        "q1",
        text="Thủ đô của Việt Nam?",
        qtype=QuestionType.MULTIPLE_CHOICE,
        answer="Hà Nội",
        topic="Địa lý",
        options=("Hà Nội", "Huế", "Đà Nẵng", "Sài Gòn"),
    )
    chapter = Chapter(id="s1-c1", name="Cities", questions=(question,))
    subject = Subject(id="s1", name="Geo", chapters=(chapter,))
    return Library(subjects=(subject,))


def test_json_store_missing_key_returns_default(tmp_path):
    store = JsonStore(tmp_path / "kv")

    assert store.get("nothing") is None
    assert store.get("nothing", []) == []
    assert not store.has("nothing")


def test_json_store_set_get_delete(tmp_path):
    store = JsonStore(tmp_path / "kv")

    store.set("alpha", {"n": 1})
    assert store.has("alpha")
    assert store.get("alpha") == {"n": 1}
    assert not list((tmp_path / "kv").glob("*.lock"))

    store.delete("alpha")
    assert store.get("alpha") is None
    store.delete("alpha")


def test_json_store_rejects_bad_keys(tmp_path):
    store = JsonStore(tmp_path / "kv")

    with pytest.raises(StoreError):
        store.path_for("../escape")


def test_json_store_corrupt_file_raises(tmp_path):
    store = JsonStore(tmp_path / "kv")
    store.path_for("broken").write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreError):
        store.get("broken")


def test_library_round_trip_keeps_unicode(store: QuizStore):
    library = _library()

    store.save_library(library)

    assert store.load_library() == library
    raw = store.path_for(SUBJECTS_KEY).read_text(encoding="utf-8")
    assert "Thủ đô" in raw
    assert json.loads(raw)[0]["chapters"][0]["questions"][0]["options"][0] == (
        "Hà Nội"
    )


def test_empty_store_has_empty_library(store: QuizStore):
    assert store.load_library() == Library()
    assert store.load_attempts() == []
    assert store.latest_attempt() is None
    assert store.load_session() is None


def test_append_attempt_grows_history(store: QuizStore):
    question = make_question("q1", answer="4")
    first = QuizAttempt(
        questions=(question,),
        user_answers={"q1": "4"},
        score=1,
        total=1,
        timestamp=1,
    )
    second = QuizAttempt(
        questions=(question,),
        user_answers={},
        score=0,
        total=1,
        timestamp=2,
    )

    assert store.append_attempt(first) == 1
    assert store.append_attempt(second) == 2

    assert store.load_attempts() == [first, second]
    assert store.latest_attempt() == second


def test_session_uses_wire_keys(store: QuizStore):
    session = QuizSession(
        questions=(make_question("q1"), make_question("q2")),
        user_answers={"q1": "x"},
        current_index=1,
        start_time=1700000000000,
    )

    store.save_session(session)
    raw = json.loads(
        store.path_for(ACTIVE_SESSION_KEY).read_text(encoding="utf-8")
    )

    assert raw["userAnswers"] == {"q1": "x"}
    assert raw["currentIndex"] == 1
    assert raw["startTime"] == 1700000000000
    assert store.load_session() == session

    store.clear_session()
    assert store.load_session() is None


def test_invalid_payloads_raise_store_error(store: QuizStore):
    store.set(SUBJECTS_KEY, {"not": "a list"})
    with pytest.raises(StoreError):
        store.load_library()

    store.set(ATTEMPTS_KEY, [{"questions": []}])
    with pytest.raises(StoreError):
        store.load_attempts()

    store.set(ACTIVE_SESSION_KEY, {"userAnswers": {}})
    with pytest.raises(StoreError):
        store.load_session()
