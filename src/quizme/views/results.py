"""Rendering for submitted attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..catalog.models import Question
from ..gateway.backends import GatewayError
from ..quiz.models import QuizAttempt
from ..quiz.review import (
    UNANSWERED_LABEL,
    review_topics,
    score_band,
    score_percentage,
)
from ..quiz.scoring import is_correct

Explainer = Callable[[Question, str], str]

EXPLANATION_UNAVAILABLE = "Could not load an explanation right now."
TOP_TOPIC_LIMIT = 3

_BAND_STYLES = {"good": "green", "fair": "yellow", "poor": "red"}


def render_attempt(
    console: Console,
    attempt: QuizAttempt,
    *,
    explain: Explainer | None = None,
) -> None:
    """Show score, topics to revisit and a per-question review.

    When ``explain`` is given every incorrect answer gets an explanation
    panel; failed lookups show a generic message instead.
    """

    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))

    style = _BAND_STYLES[score_band(attempt)]
    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", Text(f"{attempt.score}/{attempt.total}", style))
    overview.add_row(
        "Percentage", Text(f"{score_percentage(attempt):.0f}%", style)
    )
    console.print(overview)

    topics = review_topics(attempt, limit=TOP_TOPIC_LIMIT)
    if topics:
        console.print(Text("Topics to review", style="bold"))
        for item in topics:
            noun = "question" if item.wrong == 1 else "questions"
            console.print(
                Text(f"  - {item.topic} ({item.wrong} {noun} missed)")
            )
    else:
        console.print(Text("Every answer was correct.", style="bold green"))

    response_table = Table(title="Responses", box=box.SIMPLE, expand=True)
    response_table.add_column("#", justify="right")
    response_table.add_column("Question", overflow="fold")
    response_table.add_column("Your answer")
    response_table.add_column("Correct answer")
    response_table.add_column("Result", justify="center")
    for idx, question in enumerate(attempt.questions, start=1):
        given = attempt.user_answers.get(question.id)
        correct = is_correct(question, attempt.user_answers)
        outcome = "✅" if correct else "❌"
        response_table.add_row(
            str(idx),
            Text(question.text),
            Text(given if given is not None else UNANSWERED_LABEL),
            Text(question.answer),
            outcome,
        )
    console.print(response_table)

    if explain is None:
        return
    for idx, question in enumerate(attempt.questions, start=1):
        if is_correct(question, attempt.user_answers):
            continue
        given = attempt.user_answers.get(question.id, UNANSWERED_LABEL)
        try:
            explanation = explain(question, given)
        except GatewayError:
            explanation = EXPLANATION_UNAVAILABLE
        console.print(
            Panel(
                Text(explanation),
                title=f"Explanation: question {idx}",
                border_style="red",
            )
        )


def render_history(console: Console, attempts: Sequence[QuizAttempt]) -> None:
    """List past attempts, newest first."""

    if not attempts:
        console.print(
            Panel(
                "No quizzes have been submitted yet.",
                title="History",
                border_style="yellow",
            )
        )
        return
    table = Table(title="History", box=box.SIMPLE, expand=False)
    table.add_column("#", justify="right")
    table.add_column("Submitted")
    table.add_column("Score", justify="right")
    table.add_column("Percentage", justify="right")
    for position in range(len(attempts), 0, -1):
        attempt = attempts[position - 1]
        submitted = datetime.fromtimestamp(attempt.timestamp / 1000)
        table.add_row(
            str(position),
            submitted.strftime("%Y-%m-%d %H:%M"),
            f"{attempt.score}/{attempt.total}",
            f"{score_percentage(attempt):.0f}%",
        )
    console.print(table)
