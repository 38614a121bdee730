from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import OpenAIStubFactory, RecordingTransport  # noqa: E402

from quizme.catalog.catalog import QuestionCatalog  # noqa: E402
from quizme.core import ai  # noqa: E402
from quizme.store import QuizStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Keep tests away from the real workspace and credentials."""

    for key in (
        "QUIZME_CONFIG",
        "QUIZME_AI_BACKEND",
        "QUIZME_PROXY_URL",
        "QUIZME_MODEL",
        "QUIZME_TEMPERATURE",
        "QUIZME_TIMEOUT",
        "QUIZME_LOG_LEVEL",
        "QUIZME_PROXY_TIMEOUT",
        "AI_ENDPOINT",
        "AI_API_KEY",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("QUIZME_DATA_HOME", str(tmp_path / "quizme-home"))
    monkeypatch.setattr(ai, "load_dotenv", lambda *args, **kwargs: False)
    yield


@pytest.fixture
def store(tmp_path: Path) -> QuizStore:
    return QuizStore(tmp_path / "store")


@pytest.fixture
def catalog(store: QuizStore) -> QuestionCatalog:
    return QuestionCatalog(store)


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> OpenAIStubFactory:
    """Patch the OpenAI constructor and expose the created stubs."""

    factory = OpenAIStubFactory()
    monkeypatch.setattr(ai, "OpenAI", factory)
    return factory


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
