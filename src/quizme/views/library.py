"""Library overview and quiz setup screens."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from ..catalog.catalog import QuestionCatalog
from ..quiz.models import QuizSession


def _count_label(count: int) -> str:
    return f"{count} question" if count == 1 else f"{count} questions"


def render_library(console: Console, catalog: QuestionCatalog) -> None:
    library = catalog.library
    if not library.subjects:
        console.print(
            Panel(
                "The library is empty. Add questions with `quizme add` or "
                "`quizme generate`.",
                title="Library",
                border_style="yellow",
            )
        )
        return

    tree = Tree(
        f"[bold]Library[/] ({_count_label(catalog.question_count())})"
    )
    for subject in library.subjects:
        subject_total = sum(
            len(chapter.questions) for chapter in subject.chapters
        )
        branch = tree.add(
            f"[bold cyan]{escape(subject.name)}[/] "
            f"[dim]({_count_label(subject_total)})[/]"
        )
        for chapter in subject.chapters:
            branch.add(
                f"{escape(chapter.name)} "
                f"[dim]({_count_label(len(chapter.questions))})[/]"
            )
    console.print(tree)


def render_setup(
    console: Console,
    catalog: QuestionCatalog,
    session: QuizSession | None,
) -> None:
    """Selection screen: resume banner, library and how to start a quiz."""

    if session is not None:
        console.print(
            Panel(
                f"You have an unfinished quiz: "
                f"{session.answered_count()}/{session.total} answered, "
                f"at question {session.current_index + 1}.\n"
                "Run `quizme take --resume` to continue where you stopped.",
                title="Resume",
                border_style="green",
            )
        )
    render_library(console, catalog)
    if catalog.has_questions():
        console.print(
            "Start a quiz with `quizme take --subject NAME --chapter NAME` "
            "or `quizme take --random`."
        )
