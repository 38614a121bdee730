from __future__ import annotations

import json
import logging

import pytest

from fixtures import make_console, make_provider

from quizme import cli
from quizme.config import AIBackend, ConfigOverrides, load_config
from quizme.gateway.backends import GatewayError, OpenAIBackend, ProxyBackend
from quizme.store import SUBJECTS_KEY, QuizStore


class ScriptedBackend:
    def __init__(self, *replies: str, error: Exception | None = None):
        self.replies = list(replies)
        self.error = error
        self.calls = 0

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


GENERATED = json.dumps(
    [
        {
            "text": "2 + 2 = ?",
            "type": "MULTIPLE_CHOICE",
            "options": ["3", "4", "5", "6"],
            "answer": "4",
            "topic": "Arithmetic",
        },
        {"text": "The sky is green", "type": "TRUE_FALSE", "answer": "Sai"},
    ]
)


@pytest.fixture(autouse=True)
def _reset_cli_logger():
    yield
    logger = logging.getLogger(cli.LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def harness(monkeypatch, tmp_path):
    class Harness:
        def __init__(self) -> None:
            self.console = make_console()
            self.inputs: list[str] = []
            self.backend = ScriptedBackend()
            self.workspace = tmp_path / "ws"

        def run(self, *args: str) -> int:
            return cli.main(["--workspace", str(self.workspace), *args])

        @property
        def output(self) -> str:
            return self.console.export_text(clear=False)

        @property
        def store(self) -> QuizStore:
            return QuizStore(self.workspace / "store")

    state = Harness()
    monkeypatch.setattr(cli, "make_console", lambda: state.console)
    monkeypatch.setattr(
        cli,
        "make_input_provider",
        lambda console: make_provider(state.inputs),
    )
    monkeypatch.setattr(cli, "build_backend", lambda config: state.backend)
    return state


def _add_mc(harness, subject="Math", chapter="Algebra") -> int:
    return harness.run(
        "add",
        "--subject",
        subject,
        "--chapter",
        chapter,
        "--text",
        "2 + 2 = ?",
        "--answer",
        "4",
        "--topic",
        "Arithmetic",
        *("--option", "3", "--option", "4", "--option", "5"),
        *("--option", "6"),
    )


def test_version_flag(monkeypatch, capsys):
    monkeypatch.setattr(cli.metadata, "version", lambda name: "9.9-test")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert "quizme 9.9-test" in capsys.readouterr().out


def test_init_reports_layout(harness):
    assert harness.run("init") == cli.EXIT_OK

    output = harness.output
    assert "Workspace ready at" in output
    assert "store" in output
    assert (harness.workspace / "logs" / "quizme.log").exists()


def test_add_then_library(harness):
    assert _add_mc(harness) == cli.EXIT_OK
    assert harness.run("library") == cli.EXIT_OK

    assert "Added question" in harness.output
    assert "Algebra (1 question)" in harness.output
    chapter = harness.store.load_library().subjects[0].chapters[0]
    (question,) = chapter.questions
    assert question.options == ("3", "4", "5", "6")


def test_add_rejects_invalid_question(harness, capsys):
    code = harness.run(
        "add",
        "--subject",
        "Math",
        "--chapter",
        "Algebra",
        "--text",
        "Is it?",
        "--type",
        "TRUE_FALSE",
        "--answer",
        "maybe",
    )

    assert code == cli.EXIT_USAGE
    assert "True/false answers must be" in capsys.readouterr().err
    assert not harness.store.has(SUBJECTS_KEY)


def test_generate_review_and_save(harness):
    harness.backend = ScriptedBackend(GENERATED)
    harness.inputs = ["rm 2", "save"]

    code = harness.run(
        "generate",
        "--subject",
        "Science",
        "--chapter",
        "Basics",
        "--text",
        "Two plus two is four.",
        "--count",
        "2",
    )

    assert code == cli.EXIT_OK
    assert "Saved 1 question(s) to Science / Basics." in harness.output
    library = harness.store.load_library()
    assert [s.name for s in library.subjects] == ["Science"]
    assert len(library.subjects[0].chapters[0].questions) == 1


def test_generate_discard_writes_nothing(harness):
    harness.backend = ScriptedBackend(GENERATED)
    harness.inputs = ["discard"]

    code = harness.run(
        "generate", "--subject", "S", "--chapter", "C", "--text", "x"
    )

    assert code == cli.EXIT_OK
    assert "Drafts discarded." in harness.output
    assert not harness.store.has(SUBJECTS_KEY)


def test_generate_reads_source_file(harness, tmp_path):
    source = tmp_path / "notes.txt"
    source.write_text("Notes about arithmetic.", encoding="utf-8")
    harness.backend = ScriptedBackend(GENERATED)
    harness.inputs = ["save"]

    code = harness.run(
        "generate", "--subject", "S", "--chapter", "C", "--file", str(source)
    )

    assert code == cli.EXIT_OK
    assert harness.backend.calls == 1


def test_generate_failure_is_reported(harness, capsys):
    harness.backend = ScriptedBackend(error=GatewayError("Proxy error: 502"))

    code = harness.run(
        "generate", "--subject", "S", "--chapter", "C", "--text", "x"
    )

    assert code == cli.EXIT_FAILURE
    assert "Proxy error: 502" in capsys.readouterr().err
    log_text = (harness.workspace / "logs" / "quizme.log").read_text()
    assert "Command failed" in log_text


def test_generate_count_out_of_range(harness):
    code = harness.run(
        "generate",
        "--subject",
        "S",
        "--chapter",
        "C",
        "--text",
        "x",
        "--count",
        "21",
    )

    assert code == cli.EXIT_USAGE
    assert harness.backend.calls == 0


def test_take_chapter_submit_and_results(harness):
    _add_mc(harness)
    harness.inputs = ["B", "submit"]

    assert harness.run(
        "take", "--subject", "Math", "--chapter", "Algebra"
    ) == cli.EXIT_OK
    assert "Quiz Results" in harness.output
    assert "1/1" in harness.output
    assert len(harness.store.load_attempts()) == 1
    assert harness.store.load_session() is None

    assert harness.run("results", "--history") == cli.EXIT_OK
    assert "History" in harness.output


def test_take_quit_then_resume(harness):
    _add_mc(harness)
    harness.inputs = ["C", "quit"]
    harness.run("take", "--subject", "Math", "--chapter", "Algebra")

    session = harness.store.load_session()
    assert session is not None
    assert list(session.user_answers.values()) == ["5"]

    harness.inputs = ["B", "submit"]
    assert harness.run("take", "--resume") == cli.EXIT_OK
    (attempt,) = harness.store.load_attempts()
    assert attempt.score == 1


def test_take_without_arguments_shows_setup(harness):
    _add_mc(harness)

    assert harness.run("take") == cli.EXIT_OK

    assert "Start a quiz with" in harness.output


def test_take_unknown_chapter_and_empty_resume(harness, capsys):
    assert (
        harness.run("take", "--subject", "Math", "--chapter", "Nope")
        == cli.EXIT_USAGE
    )
    assert harness.run("take", "--resume") == cli.EXIT_USAGE
    assert harness.run("take", "--random") == cli.EXIT_USAGE
    err = capsys.readouterr().err
    assert "No chapter named 'Nope'" in err
    assert "no quiz to resume" in err


def test_abandon_discards_session(harness):
    _add_mc(harness)
    harness.inputs = ["quit"]
    harness.run("take", "--random")
    assert harness.store.load_session() is not None

    assert harness.run("abandon") == cli.EXIT_OK
    assert harness.store.load_session() is None
    assert harness.store.load_attempts() == []
    assert harness.run("abandon") == cli.EXIT_OK
    assert "There is no unfinished quiz." in harness.output


def test_results_with_explanations(harness):
    _add_mc(harness)
    harness.inputs = ["A", "submit"]
    harness.run("take", "--subject", "Math", "--chapter", "Algebra")
    harness.backend = ScriptedBackend("Four is two plus two.")

    assert harness.run("results", "--explain") == cli.EXIT_OK

    assert "Explanation: question 1" in harness.output
    assert "Four is two plus two." in harness.output


def test_results_when_nothing_submitted(harness):
    assert harness.run("results") == cli.EXIT_OK

    assert "No quizzes have been submitted yet." in harness.output


def test_bad_config_file_exits_with_usage(harness, tmp_path, capsys):
    bad = tmp_path / "bad.toml"
    bad.write_text("[quiz]\npractice_limit = 0\n", encoding="utf-8")

    code = harness.run("--config", str(bad), "library")

    assert code == cli.EXIT_USAGE
    assert "practice_limit" in capsys.readouterr().err


def test_config_init_writes_template(tmp_path, capsys):
    target = tmp_path / "conf" / "quizme.toml"

    assert cli.main(["config", "init", "--path", str(target)]) == 0
    assert "[ai]" in target.read_text(encoding="utf-8")
    assert "Wrote quizme config" in capsys.readouterr().out

    assert cli.main(["config", "init", "--path", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err
    assert (
        cli.main(["config", "init", "--path", str(target), "--force"]) == 0
    )


def test_config_init_defaults_to_workspace(tmp_path):
    workspace = tmp_path / "ws"

    assert cli.main(["config", "init", "--workspace", str(workspace)]) == 0
    assert (workspace / "config" / "quizme.toml").exists()


def test_build_backend_follows_config(tmp_path):
    build = cli.build_backend
    proxy_config = load_config(env={}, workspace_path=tmp_path).config
    openai_config = load_config(
        env={},
        workspace_path=tmp_path,
        overrides=ConfigOverrides(backend=AIBackend.OPENAI, model="m"),
    ).config

    assert isinstance(build(proxy_config), ProxyBackend)
    backend = build(openai_config)
    assert isinstance(backend, OpenAIBackend)
    assert backend.model == "m"
