"""Quiz session state machine with write-through persistence.

The controller owns the single active session. It starts quizzes from a
question list, records answers and navigation, and on submit turns the
session into an immutable attempt. Every change is written to the store so a
later process can resume exactly where the user stopped.
"""

from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

from ..catalog.models import Question
from ..core.logging import null_logger
from .models import QuizAttempt, QuizSession
from .scoring import score_answers

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..store import QuizStore

__all__ = [
    "PRACTICE_LIMIT",
    "SessionError",
    "SessionState",
    "QuizSessionController",
    "select_practice_questions",
]

PRACTICE_LIMIT = 20

Clock = Callable[[], float]


class SessionError(RuntimeError):
    """Raised when a session operation is not valid in the current state."""


class SessionState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    IN_PROGRESS = "in_progress"
    SUSPENDED = "suspended"


def select_practice_questions(
    pool: Sequence[Question],
    *,
    limit: int = PRACTICE_LIMIT,
    rng: random.Random | None = None,
) -> list[Question]:
    """Draw up to ``limit`` questions uniformly without replacement.

    The result is shuffled; when the pool is not larger than ``limit`` every
    question is returned.
    """

    rnd = rng or random.Random()
    size = min(len(pool), max(0, limit))
    return rnd.sample(list(pool), size)


class QuizSessionController:
    """Drive the idle → selecting → in progress → idle lifecycle."""

    def __init__(
        self,
        store: "QuizStore",
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        practice_limit: int = PRACTICE_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or time.time
        self._rng = rng or random.Random()
        self._practice_limit = min(practice_limit, PRACTICE_LIMIT)
        self._logger = logger or null_logger("quizme.quiz")
        self._session = store.load_session()
        self._state = (
            SessionState.SUSPENDED
            if self._session is not None
            else SessionState.IDLE
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_session(self) -> QuizSession | None:
        return self._session

    def begin_selection(self) -> None:
        if self._state is SessionState.IN_PROGRESS:
            self.suspend()
        self._transition(SessionState.SELECTING)

    def start_quiz(self, questions: Sequence[Question]) -> QuizSession:
        """Start a new quiz, replacing any existing session outright."""

        if not questions:
            raise SessionError("Cannot start a quiz without questions.")
        session = QuizSession(
            questions=tuple(questions),
            user_answers={},
            current_index=0,
            start_time=self._now_ms(),
        )
        replaced = self._session is not None
        self._persist(session)
        self._transition(SessionState.IN_PROGRESS)
        self._logger.info(
            "Started quiz",
            extra={"total": session.total, "replaced_session": replaced},
        )
        return session

    def start_random_practice(self, pool: Sequence[Question]) -> QuizSession:
        questions = select_practice_questions(
            pool, limit=self._practice_limit, rng=self._rng
        )
        return self.start_quiz(questions)

    def suspend(self) -> None:
        """Leave the taking screen while keeping every recorded answer."""

        if self._session is None:
            self._transition(SessionState.IDLE)
            return
        self._transition(SessionState.SUSPENDED)

    def resume(self) -> QuizSession:
        if self._session is None:
            raise SessionError("There is no quiz to resume.")
        self._transition(SessionState.IN_PROGRESS)
        return self._session

    def record_answer(self, question_id: str, value: str) -> QuizSession:
        """Upsert an answer. Values are not checked against the options."""

        session = self._require_in_progress()
        updated = session.with_answer(question_id, value)
        self._persist(updated)
        return updated

    def navigate(self, index: int) -> QuizSession:
        session = self._require_in_progress()
        if not 0 <= index < session.total:
            raise SessionError(
                f"Question index {index} is out of range "
                f"(0..{session.total - 1})."
            )
        updated = session.with_index(index)
        self._persist(updated)
        return updated

    def next_question(self) -> QuizSession:
        session = self._require_in_progress()
        last = session.total - 1
        return self.navigate(min(session.current_index + 1, last))

    def previous_question(self) -> QuizSession:
        session = self._require_in_progress()
        return self.navigate(max(session.current_index - 1, 0))

    def submit(
        self, user_answers: Mapping[str, str] | None = None
    ) -> QuizAttempt:
        """Score the session, record the attempt and clear the session."""

        session = self._require_in_progress()
        answers = dict(
            session.user_answers if user_answers is None else user_answers
        )
        attempt = QuizAttempt(
            questions=session.questions,
            user_answers=answers,
            score=score_answers(session.questions, answers),
            total=session.total,
            timestamp=self._now_ms(),
        )
        history_size = self._store.append_attempt(attempt)
        self._store.clear_session()
        self._session = None
        self._transition(SessionState.IDLE)
        self._logger.info(
            "Submitted quiz",
            extra={
                "score": attempt.score,
                "total": attempt.total,
                "history_size": history_size,
            },
        )
        return attempt

    def abandon(self) -> None:
        """Drop the active session without recording an attempt."""

        if self._session is not None:
            self._store.clear_session()
            self._logger.info("Abandoned quiz")
        self._session = None
        self._transition(SessionState.IDLE)

    def _require_in_progress(self) -> QuizSession:
        session = self._session
        if self._state is not SessionState.IN_PROGRESS or session is None:
            raise SessionError(
                "No quiz is in progress. Start or resume one first."
            )
        return session

    def _persist(self, session: QuizSession) -> None:
        self._store.save_session(session)
        self._session = session

    def _transition(self, state: SessionState) -> None:
        if state is not self._state:
            self._logger.debug(
                "Session state change",
                extra={"from": self._state.value, "to": state.value},
            )
        self._state = state

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
