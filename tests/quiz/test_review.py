from __future__ import annotations

from fixtures import make_question

from quizme.quiz.models import QuizAttempt
from quizme.quiz.review import (
    ReviewTopic,
    incorrect_questions,
    review_topics,
    score_band,
    score_percentage,
)


def _attempt(answers, *, topics=("A", "B", "A", "C", "B", "A")):
    questions = tuple(
        make_question(f"q{n}", answer="ok", topic=topic)
        for n, topic in enumerate(topics)
    )
    score = sum(1 for q in questions if answers.get(q.id) == "ok")
    return QuizAttempt(
        questions=questions,
        user_answers=answers,
        score=score,
        total=len(questions),
        timestamp=0,
    )


def test_review_topics_ranks_by_wrong_count():
    attempt = _attempt({"q3": "ok"})

    assert review_topics(attempt) == [
        ReviewTopic("A", 3),
        ReviewTopic("B", 2),
    ]
    assert review_topics(attempt, limit=1) == [ReviewTopic("A", 3)]


def test_review_topic_ties_keep_first_seen_order():
    attempt = _attempt({}, topics=("C", "B", "A"))

    assert [item.topic for item in review_topics(attempt)] == ["C", "B", "A"]


def test_incorrect_questions_includes_unanswered():
    attempt = _attempt({"q0": "ok", "q1": "wrong"})

    assert [q.id for q in incorrect_questions(attempt)] == [
        "q1",
        "q2",
        "q3",
        "q4",
        "q5",
    ]


def test_score_percentage_and_band():
    perfect = _attempt({f"q{n}": "ok" for n in range(6)})
    half = _attempt({f"q{n}": "ok" for n in range(3)})
    poor = _attempt({})

    assert score_percentage(perfect) == 100
    assert score_band(perfect) == "good"
    assert score_percentage(half) == 50
    assert score_band(half) == "fair"
    assert score_band(poor) == "poor"


def test_score_percentage_with_no_questions():
    empty = QuizAttempt(
        questions=(), user_answers={}, score=0, total=0, timestamp=0
    )

    assert score_percentage(empty) == 0.0
    assert review_topics(empty) == []
