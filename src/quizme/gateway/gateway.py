"""Question generation and answer explanations over a completion backend."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from ..catalog.models import (
    DEFAULT_TOPIC,
    TRUE_FALSE_LITERALS,
    Question,
    QuestionDraft,
    QuestionType,
)
from ..core.logging import null_logger
from .backends import CompletionBackend, GatewayError

__all__ = [
    "AIGateway",
    "EXPLANATION_FAILURE",
    "MIN_GENERATE_COUNT",
    "MAX_GENERATE_COUNT",
    "clamp_count",
    "parse_drafts",
]

MIN_GENERATE_COUNT = 1
MAX_GENERATE_COUNT = 20
EXPLANATION_FAILURE = (
    "Sorry, no explanation could be generated for this question."
)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)


def clamp_count(count: int) -> int:
    return max(MIN_GENERATE_COUNT, min(MAX_GENERATE_COUNT, int(count)))


def _build_generation_prompts(
    source_text: str, count: int
) -> tuple[str, str]:
    sys_prompt = (
        "You write study quiz questions from source material. "
        "Reply with JSON only."
    )
    true_literal, false_literal = TRUE_FALSE_LITERALS
    schema_line = (
        '{"text": str, "type": "MULTIPLE_CHOICE" | "TRUE_FALSE" | '
        '"FILL_IN_THE_BLANK", "options": [str, str, str, str], '
        '"answer": str, "topic": str}\n'
    )
    constraints = (
        "Constraints: include \"options\" with exactly 4 entries only for "
        "MULTIPLE_CHOICE and make \"answer\" equal one of them; "
        f'TRUE_FALSE answers are "{true_literal}" or "{false_literal}"; '
        "FILL_IN_THE_BLANK answers are a short word or phrase; "
        "\"topic\" is a short label for the concept being tested; "
        "write in the language of the source text."
    )
    user_prompt = (
        "Create quiz questions from the text below. "
        "Output a JSON array of objects.\n\n"
        f"Schema:\n{schema_line}"
        f"Count: {count}\n"
        f"{constraints}\n\n"
        f"Source text:\n{source_text.strip()}"
    )
    return sys_prompt, user_prompt


def _build_explanation_prompts(
    question: Question, user_answer: str
) -> tuple[str, str]:
    sys_prompt = (
        "You are a patient tutor. Explain mistakes briefly and clearly."
    )
    user_prompt = (
        f"Question: {question.text}\n"
        f"Correct answer: {question.answer}\n"
        f"Student's answer: {user_answer}\n\n"
        "Explain in a few sentences why the correct answer is right and why "
        "the student's answer is wrong. "
        "Reply in the language of the question."
    )
    return sys_prompt, user_prompt


def _extract_json_array(content: str) -> List[Any]:
    fenced = _FENCE_RE.search(content)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise GatewayError(
            "Generated questions were not valid JSON."
        ) from exc
    if not isinstance(data, list):
        raise GatewayError("Generated questions must be a JSON array.")
    return data


def _draft_from_record(record: Any, position: int) -> QuestionDraft:
    if not isinstance(record, dict):
        raise GatewayError(f"Generated item {position} is not an object.")
    text = str(record.get("text") or "").strip()
    answer = record.get("answer")
    if not text or answer is None:
        raise GatewayError(
            f"Generated item {position} is missing text or answer."
        )
    try:
        qtype = QuestionType.from_value(record.get("type", ""))
    except ValueError as exc:
        raise GatewayError(f"Generated item {position}: {exc}") from exc
    options: Optional[list[str]] = None
    raw_options = record.get("options")
    if qtype.has_options and isinstance(raw_options, list):
        options = [str(option) for option in raw_options]
    return QuestionDraft(
        text=text,
        type=qtype,
        answer=str(answer),
        topic=str(record.get("topic") or "").strip() or DEFAULT_TOPIC,
        options=options,
    )


def parse_drafts(content: str) -> list[QuestionDraft]:
    """Turn a model reply into drafts.

    Only the shape is checked: a JSON array (optionally fenced) of objects
    with text, type and answer. Whether answers are right is up to the user.
    """

    if not content:
        raise GatewayError("The model returned an empty reply.")
    records = _extract_json_array(content)
    return [
        _draft_from_record(record, position)
        for position, record in enumerate(records, start=1)
    ]


class AIGateway:
    """Single-shot generation and explanation calls. No retries."""

    def __init__(
        self,
        backend: CompletionBackend,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend = backend
        self._logger = logger or null_logger("quizme.gateway")

    def generate_questions(
        self, source_text: str, count: int
    ) -> list[QuestionDraft]:
        if not source_text.strip():
            raise GatewayError(
                "Source text is required to generate questions."
            )
        target = clamp_count(count)
        sys_prompt, user_prompt = _build_generation_prompts(
            source_text, target
        )
        self._logger.info(
            "Requesting generated questions",
            extra={"count": target, "source_chars": len(source_text)},
        )
        try:
            drafts = parse_drafts(
                self._backend.complete(sys_prompt, user_prompt)
            )
        except GatewayError as exc:
            self._logger.error(
                "Question generation failed", extra={"reason": str(exc)}
            )
            raise
        self._logger.info(
            "Received generated questions", extra={"drafts": len(drafts)}
        )
        return drafts

    def explain_answer(self, question: Question, user_answer: str) -> str:
        """Explain why ``user_answer`` is wrong. Never touches stored data."""

        sys_prompt, user_prompt = _build_explanation_prompts(
            question, user_answer
        )
        try:
            content = self._backend.complete(sys_prompt, user_prompt)
        except GatewayError as exc:
            self._logger.error(
                "Explanation request failed",
                extra={"question_id": question.id, "reason": str(exc)},
            )
            raise
        return content.strip() or EXPLANATION_FAILURE
