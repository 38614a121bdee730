"""Rich-powered quiz taking screen.

The loop renders the current question, reads one command per prompt and
forwards answers and navigation to the session controller, which persists
every change. Leaving with ``quit`` suspends the session so it can be resumed
later; ``submit`` scores it and returns the recorded attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..catalog.models import TRUE_FALSE_LITERALS, Question, QuestionType
from ..quiz.controller import QuizSessionController, SessionState
from ..quiz.models import QuizAttempt, QuizSession

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "quit", "empty"]

_CHOICE_KEYS = "ABCD"


@dataclass(frozen=True)
class TakerResult:
    """Return value from ``run_taker``."""

    exit_action: ExitAction
    attempt: QuizAttempt | None = None


@dataclass(frozen=True)
class TakerCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "prev", "goto", "submit", "quit", "choose", "fill"]
    value: str | None = None
    index: int | None = None


def choices_for(question: Question) -> list[tuple[str, str]]:
    """Return ``(key, text)`` pairs offered for ``question``.

    Multiple choice questions without usable options get no keys and are
    answered as free text.
    """

    if question.type is QuestionType.MULTIPLE_CHOICE:
        options = question.options or ()
        if len(options) > len(_CHOICE_KEYS):
            return []
    elif question.type is QuestionType.TRUE_FALSE:
        options = TRUE_FALSE_LITERALS
    else:
        return []
    return list(zip(_CHOICE_KEYS, options))


def parse_taker_command(raw: str | None) -> TakerCommand | None:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.startswith("="):
        return TakerCommand("fill", value=text[1:].strip())
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return TakerCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return TakerCommand("prev")
    if lowered in {"submit", "s"}:
        return TakerCommand("submit")
    if lowered in {"quit", "q", "exit"}:
        return TakerCommand("quit")
    parts = lowered.split()
    if parts[0] in {"g", "goto"} and len(parts) == 2 and parts[1].isdigit():
        return TakerCommand("goto", index=int(parts[1]) - 1)
    if len(text) == 1 and text.upper() in _CHOICE_KEYS:
        return TakerCommand("choose", value=text.upper())
    return None


def run_taker(
    controller: QuizSessionController,
    console: Console,
    input_provider: InputProvider,
) -> TakerResult:
    """Run the taking screen until the user submits or leaves."""

    if controller.state is not SessionState.IN_PROGRESS:
        if controller.active_session is None:
            console.print(
                Panel(
                    "There is no quiz to take.",
                    title="Quiz",
                    border_style="yellow",
                )
            )
            return TakerResult("empty")
        controller.resume()

    while True:
        session = controller.active_session
        assert session is not None
        _render_question(console, session)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            controller.suspend()
            return TakerResult("quit")
        command = parse_taker_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            controller.suspend()
            console.print(
                "\n[bold yellow]Quiz saved. Resume it with "
                "`quizme take --resume`.[/]"
            )
            return TakerResult("quit")
        if command.type == "submit":
            return TakerResult("submitted", controller.submit())
        _apply_command(command, controller, session, console)


def _apply_command(
    command: TakerCommand,
    controller: QuizSessionController,
    session: QuizSession,
    console: Console,
) -> None:
    question = session.current
    if command.type == "next":
        controller.next_question()
    elif command.type == "prev":
        controller.previous_question()
    elif command.type == "goto" and command.index is not None:
        if 0 <= command.index < session.total:
            controller.navigate(command.index)
        else:
            console.print(
                f"[red]Pick a question between 1 and {session.total}.[/]"
            )
    elif command.type == "choose" and command.value:
        choices = dict(choices_for(question))
        if command.value not in choices:
            console.print(
                f"[red]'{command.value}' is not a valid choice for this "
                "question.[/]"
            )
            return
        controller.record_answer(question.id, choices[command.value])
        console.print(f"Selected [bold]{command.value}[/].")
    elif command.type == "fill":
        if choices_for(question):
            console.print("[red]Answer this question with a choice letter.[/]")
            return
        controller.record_answer(question.id, command.value or "")
        console.print("Answer saved.")


def _render_question(console: Console, session: QuizSession) -> None:
    question = session.current
    header = Text.assemble(
        (f"Question {session.current_index + 1}", "bold cyan"),
        (f" / {session.total}", "dim"),
        (f"  [{question.topic}]", "magenta"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    current_answer = session.answer_for(question.id)
    choices = choices_for(question)
    if choices:
        table = Table(show_header=False, box=box.SIMPLE, expand=True)
        table.add_column("Key", justify="center", style="cyan")
        table.add_column("Choice")
        for key, option in choices:
            selected = option == current_answer
            row_text = Text("• " if selected else "  ")
            row_text += Text(option, style="bold green" if selected else "")
            table.add_row(key, row_text)
        console.print(table)
        answer_hint = f"choices [{', '.join(key for key, _ in choices)}]"
    else:
        shown = current_answer if current_answer else "(blank)"
        console.print(Text(f"Your answer: {shown}", style="green"))
        answer_hint = "= your answer"

    console.print(_palette(session))
    console.print(
        Text(
            f"Answered {session.answered_count()}/{session.total} | "
            f"Commands: {answer_hint}, n (next), p (prev), g <num>, "
            "submit, quit",
            style="dim",
        )
    )


def _palette(session: QuizSession) -> Text:
    palette = Text()
    for position, question in enumerate(session.questions):
        if position:
            palette.append(" ")
        label = str(position + 1)
        if position == session.current_index:
            style = "bold reverse"
        elif session.answer_for(question.id) is not None:
            style = "green"
        else:
            style = "dim"
        palette.append(label, style=style)
    return palette
