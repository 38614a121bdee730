"""Key/value JSON persistence for the library, attempts and active session."""

from __future__ import annotations

import json
import os
import re
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .catalog.models import Library
from .quiz.models import QuizAttempt, QuizSession

__all__ = [
    "StoreError",
    "JsonStore",
    "QuizStore",
    "SUBJECTS_KEY",
    "ATTEMPTS_KEY",
    "ACTIVE_SESSION_KEY",
]

SUBJECTS_KEY = "quizme-subjects"
ATTEMPTS_KEY = "quizme-attempts"
ACTIVE_SESSION_KEY = "quizme-active-session"

_LOCK_SUFFIX = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0
_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class StoreError(RuntimeError):
    """Raised when a stored value cannot be read or written."""


class JsonStore:
    """Persist JSON-serializable values under string keys.

    Every key maps to ``<root>/<key>.json``. Reads of a missing key return the
    caller's default; writes replace the file atomically.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise StoreError(f"Invalid store key: {key!r}")
        return self._root / f"{key}.json"

    def has(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def get(self, key: str, default: Any = None) -> Any:
        target = self.path_for(key)
        if not target.is_file():
            return default
        try:
            return json.loads(target.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(
                f"Failed to parse stored value: {target}"
            ) from exc

    def set(self, key: str, value: Any) -> None:
        target = self.path_for(key)
        with _FileLock(target.with_name(target.name + _LOCK_SUFFIX)):
            _atomic_write_json(target, value)

    def delete(self, key: str) -> None:
        target = self.path_for(key)
        with _FileLock(target.with_name(target.name + _LOCK_SUFFIX)):
            target.unlink(missing_ok=True)


class QuizStore(JsonStore):
    """Typed accessors over the three QuizMe storage keys."""

    def load_library(self) -> Library:
        with _decoding(SUBJECTS_KEY):
            return Library.from_list(self.get(SUBJECTS_KEY, []))

    def save_library(self, library: Library) -> None:
        self.set(SUBJECTS_KEY, library.to_list())

    def load_attempts(self) -> list[QuizAttempt]:
        raw = self.get(ATTEMPTS_KEY, [])
        if not isinstance(raw, list):
            raise StoreError("Attempt history must be a list.")
        with _decoding(ATTEMPTS_KEY):
            return [QuizAttempt.from_dict(item) for item in raw]

    def append_attempt(self, attempt: QuizAttempt) -> int:
        """Append ``attempt`` to the history and return the new length."""

        raw = self.get(ATTEMPTS_KEY, [])
        if not isinstance(raw, list):
            raise StoreError("Attempt history must be a list.")
        raw.append(attempt.to_dict())
        self.set(ATTEMPTS_KEY, raw)
        return len(raw)

    def latest_attempt(self) -> QuizAttempt | None:
        attempts = self.load_attempts()
        return attempts[-1] if attempts else None

    def load_session(self) -> QuizSession | None:
        raw = self.get(ACTIVE_SESSION_KEY)
        if raw is None:
            return None
        with _decoding(ACTIVE_SESSION_KEY):
            return QuizSession.from_dict(raw)

    def save_session(self, session: QuizSession) -> None:
        self.set(ACTIVE_SESSION_KEY, session.to_dict())

    def clear_session(self) -> None:
        self.delete(ACTIVE_SESSION_KEY)


class _FileLock:
    """Filesystem lock using exclusive file creation."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def __enter__(self) -> "_FileLock":
        deadline = time.time() + _LOCK_TIMEOUT_SECONDS
        while True:
            try:
                fd = os.open(
                    self._path,
                    os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                )
                os.close(fd)
                return self
            except FileExistsError:
                if time.time() > deadline:
                    raise StoreError(
                        f"Timed out waiting for store lock: {self._path}"
                    )
                time.sleep(0.05)

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)


@contextmanager
def _decoding(key: str) -> Iterator[None]:
    try:
        yield
    except (TypeError, ValueError) as exc:
        raise StoreError(
            f"Stored value for '{key}' is invalid: {exc}"
        ) from exc


def _atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:
        pass
