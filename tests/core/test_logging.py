from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from quizme.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "quizme.test",
        log_dir=log_dir,
        level="INFO",
        filename="test.log",
    )

    logger.info("appended", extra={"subject": "Math", "count": 3})

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "details": {"items": [Path(log_dir), 1], "k": "v"},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    first = json.loads(lines[0])
    assert first["message"] == "appended"
    assert first["level"] == "INFO"
    assert first["extra"] == {"subject": "Math", "count": 3}

    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["obj"] == "helper"
    assert last["extra"]["details"]["items"] == [str(log_dir), 1]

    _close(logger)


def test_configure_logger_respects_level(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "quizme.test_level",
        log_dir=tmp_path / "logs",
        level="WARNING",
        filename="level.log",
    )

    logger.info("hidden")
    logger.warning("shown")
    for handler in logger.handlers:
        handler.flush()

    messages = [
        json.loads(line)["message"]
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert messages == ["shown"]

    _close(logger)


def test_configure_logger_reuses_file_handler(tmp_path):
    name = "quizme.test_reuse"
    logger, first = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )
    _, second = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )

    file_handlers = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_quizme_file", False)
    ]
    assert len(file_handlers) == 1
    assert first == second

    _close(logger)


def test_console_handler_toggle(tmp_path):
    name = "quizme.test_toggle"
    log_dir = tmp_path / "logs"

    logger, _ = core_logging.configure_logger(
        name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    core_logging.configure_logger(
        name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    console_handlers = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_quizme_console", False)
    ]
    assert len(console_handlers) == 1

    core_logging.configure_logger(
        name, log_dir=log_dir, verbose=False, filename="toggle.log"
    )
    assert not any(
        getattr(handler, "_quizme_console", False)
        for handler in logger.handlers
    )

    _close(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))

    logger, log_path = core_logging.configure_logger(
        "quizme.test_blocked",
        log_dir=target,
        filename="blocked.log",
    )

    assert log_path.parent == tmp_path / "tmp" / "quizme-logs"
    assert log_path.exists()

    _close(logger)


def test_null_logger_has_handler():
    logger = core_logging.null_logger("quizme.test_null")

    assert any(
        isinstance(handler, logging.NullHandler) for handler in logger.handlers
    )
