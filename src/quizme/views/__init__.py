"""Rich terminal views for QuizMe."""

from .authoring import review_drafts
from .library import render_library, render_setup
from .results import render_attempt, render_history
from .taker import TakerResult, parse_taker_command, run_taker

__all__ = [
    "review_drafts",
    "render_library",
    "render_setup",
    "render_attempt",
    "render_history",
    "TakerResult",
    "parse_taker_command",
    "run_taker",
]
