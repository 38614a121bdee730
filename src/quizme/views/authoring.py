"""Review screen for generated drafts before they are saved."""

from __future__ import annotations

from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..gateway.drafts import DraftBatch

InputProvider = Callable[[], str]
ReviewDecision = Literal["save", "discard"]

OPTION_SEPARATOR = "|"

_HELP = (
    "Commands: rm N, edit N FIELD VALUE "
    "(fields: text, answer, topic, options as A | B | C | D), "
    "save, discard"
)


def review_drafts(
    console: Console,
    batch: DraftBatch,
    input_provider: InputProvider,
) -> ReviewDecision:
    """Let the user prune and fix drafts, then decide to save or discard.

    Nothing is written here; on ``save`` the caller commits the batch. On
    ``discard`` (or an interrupted prompt) the batch is cleared.
    """

    while True:
        _render_batch(console, batch)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Review interrupted.[/]")
            batch.clear()
            return "discard"
        parts = (raw or "").strip().split(maxsplit=3)
        if not parts:
            continue
        action = parts[0].lower()
        if action == "save":
            return "save"
        if action == "discard":
            batch.clear()
            return "discard"
        if action == "rm" and len(parts) == 2:
            _remove(console, batch, parts[1])
            continue
        if action == "edit" and len(parts) == 4:
            _edit(console, batch, parts[1], parts[2].lower(), parts[3])
            continue
        console.print("[red]Unrecognized command. Try again.[/]")


def _position(console: Console, batch: DraftBatch, raw: str) -> int | None:
    if raw.isdigit() and 1 <= int(raw) <= len(batch):
        return int(raw) - 1
    console.print(f"[red]Pick a draft between 1 and {len(batch)}.[/]")
    return None


def _remove(console: Console, batch: DraftBatch, raw: str) -> None:
    index = _position(console, batch, raw)
    if index is None:
        return
    batch.remove(index)
    console.print(f"Removed draft {index + 1}.")


def _edit(
    console: Console,
    batch: DraftBatch,
    raw_index: str,
    field_name: str,
    value: str,
) -> None:
    index = _position(console, batch, raw_index)
    if index is None:
        return
    new_value: object = value.strip()
    if field_name == "options":
        new_value = [
            part.strip() for part in value.split(OPTION_SEPARATOR)
        ]
    try:
        batch.edit(index, **{field_name: new_value})
    except (KeyError, ValueError) as exc:
        console.print(Text(f"Could not edit draft: {exc}", style="red"))
        return
    console.print(f"Updated {field_name} of draft {index + 1}.")


def _render_batch(console: Console, batch: DraftBatch) -> None:
    console.print()
    if not len(batch):
        console.print(
            Panel(
                "No drafts left. Type `discard` to leave.",
                title="Drafts",
                border_style="yellow",
            )
        )
        return
    table = Table(title="Generated drafts", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Question", overflow="fold")
    table.add_column("Options", overflow="fold")
    table.add_column("Answer")
    table.add_column("Topic")
    for idx, draft in enumerate(batch, start=1):
        options = f" {OPTION_SEPARATOR} ".join(draft.options or [])
        table.add_row(
            str(idx),
            draft.type.value,
            Text(draft.text),
            Text(options),
            Text(draft.answer),
            Text(draft.topic),
        )
    console.print(table)
    console.print(Text(_HELP, style="dim"))
