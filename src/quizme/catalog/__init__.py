"""Question catalog: data model, copy-on-write appends and authoring."""

from .models import (
    DEFAULT_TOPIC,
    FALSE_LITERAL,
    MULTIPLE_CHOICE_OPTION_COUNT,
    TRUE_FALSE_LITERALS,
    TRUE_LITERAL,
    Chapter,
    Library,
    Question,
    QuestionDraft,
    QuestionType,
    Subject,
)
from .catalog import (
    IdFactory,
    QuestionCatalog,
    append_questions,
    default_id_factory,
)
from .authoring import (
    AuthoringError,
    add_manual_question,
    build_manual_draft,
    commit_drafts,
    require_location,
    validate_draft,
)

__all__ = [
    "DEFAULT_TOPIC",
    "FALSE_LITERAL",
    "MULTIPLE_CHOICE_OPTION_COUNT",
    "TRUE_FALSE_LITERALS",
    "TRUE_LITERAL",
    "Chapter",
    "Library",
    "Question",
    "QuestionDraft",
    "QuestionType",
    "Subject",
    "IdFactory",
    "QuestionCatalog",
    "append_questions",
    "default_id_factory",
    "AuthoringError",
    "add_manual_question",
    "build_manual_draft",
    "commit_drafts",
    "require_location",
    "validate_draft",
]
