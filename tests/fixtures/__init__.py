"""Shared testing fixtures and stubs for the quizme test suite."""

from .console import make_console, make_provider  # noqa: F401
from .http import RecordingTransport, chat_completion_body  # noqa: F401
from .library import make_draft, make_question  # noqa: F401
from .openai import OpenAIStub, OpenAIStubFactory  # noqa: F401

__all__ = [
    "OpenAIStub",
    "OpenAIStubFactory",
    "RecordingTransport",
    "chat_completion_body",
    "make_console",
    "make_draft",
    "make_provider",
    "make_question",
]
