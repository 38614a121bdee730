"""Configuration loader for QuizMe commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from .core import config as core_config
from .core import workspace as workspace_mod
from .quiz.controller import PRACTICE_LIMIT

CONFIG_FILENAME = "quizme.toml"
CONFIG_ENV = "QUIZME_CONFIG"
ENV_PREFIX = "QUIZME_"
TEMPLATE_PACKAGE = "quizme"
TEMPLATE_FILENAME = "config_template.toml"

_DEFAULT_PROXY_URL = "http://127.0.0.1:8787/api/proxy"
_DEFAULT_MODEL = "gpt-4o-mini"
_DEFAULT_TEMPERATURE = 0.2
_DEFAULT_MAX_TOKENS = 1600
_DEFAULT_TIMEOUT = 60.0
_DEFAULT_PRACTICE_LIMIT = PRACTICE_LIMIT
_DEFAULT_GENERATE_COUNT = 5
_DEFAULT_PROXY_HOST = "127.0.0.1"
_DEFAULT_PROXY_PORT = 8787
_DEFAULT_LOG_LEVEL = "INFO"


class QuizMeConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


class AIBackend(Enum):
    """Where completion requests are sent."""

    PROXY = "proxy"
    OPENAI = "openai"

    @classmethod
    def from_value(cls, value: "str | AIBackend") -> "AIBackend":
        if isinstance(value, AIBackend):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise QuizMeConfigError(
            f"Unknown AI backend '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class AISettings:
    backend: AIBackend
    proxy_url: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float


@dataclass(frozen=True)
class QuizMeConfig:
    """Fully resolved configuration for a command run."""

    ai: AISettings
    practice_limit: int
    generate_count: int
    proxy_host: str
    proxy_port: int
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    backend: Optional[AIBackend] = None
    proxy_url: Optional[str] = None
    model: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizMeConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    default_path = layout.path_for("config") / CONFIG_FILENAME
    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    defaults = _default_table()
    loaded_path: Optional[Path]
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(defaults, parsed)
        except core_config.TomlConfigError as exc:
            raise QuizMeConfigError(str(exc)) from exc
    else:
        loaded_path = None
        if config_path is not None or _has_env_config(env_map):
            raise QuizMeConfigError(
                f"Config file not found: {requested_path}"
            )

    ai_table = defaults["ai"]
    quiz_table = defaults["quiz"]
    proxy_table = defaults["proxy"]

    backend = AIBackend.from_value(
        _pick_first(
            overrides.backend,
            _parse_env_string(env_map, "AI_BACKEND"),
            ai_table["backend"],
        )
    )
    ai = AISettings(
        backend=backend,
        proxy_url=_require_string(
            "ai.proxy_url",
            _pick_first(
                overrides.proxy_url,
                _parse_env_string(env_map, "PROXY_URL"),
                ai_table["proxy_url"],
            ),
        ),
        model=_require_string(
            "ai.model",
            _pick_first(
                overrides.model,
                _parse_env_string(env_map, "MODEL"),
                ai_table["model"],
            ),
        ),
        temperature=_require_number(
            "ai.temperature",
            _pick_first(
                _parse_env_string(env_map, "TEMPERATURE"),
                ai_table["temperature"],
            ),
            minimum=0.0,
        ),
        max_tokens=_require_int(
            "ai.max_tokens", ai_table["max_tokens"], minimum=1
        ),
        timeout=_require_number(
            "ai.timeout",
            _pick_first(
                _parse_env_string(env_map, "TIMEOUT"), ai_table["timeout"]
            ),
            minimum=1.0,
        ),
    )

    config = QuizMeConfig(
        ai=ai,
        practice_limit=_require_int(
            "quiz.practice_limit",
            quiz_table["practice_limit"],
            minimum=1,
            maximum=PRACTICE_LIMIT,
        ),
        generate_count=_require_int(
            "quiz.generate_count",
            quiz_table["generate_count"],
            minimum=1,
            maximum=20,
        ),
        proxy_host=_require_string("proxy.host", proxy_table["host"]),
        proxy_port=_require_int(
            "proxy.port", proxy_table["port"], minimum=1, maximum=65535
        ),
        log_level=_resolve_log_level(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            defaults["logging"]["level"],
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def template_text() -> str:
    """Return the packaged ``quizme.toml`` template."""

    try:
        return core_config.read_packaged_template(
            TEMPLATE_PACKAGE, TEMPLATE_FILENAME
        )
    except core_config.TomlConfigError as exc:
        raise QuizMeConfigError(str(exc)) from exc


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "ai": {
            "backend": AIBackend.PROXY.value,
            "proxy_url": _DEFAULT_PROXY_URL,
            "model": _DEFAULT_MODEL,
            "temperature": _DEFAULT_TEMPERATURE,
            "max_tokens": _DEFAULT_MAX_TOKENS,
            "timeout": _DEFAULT_TIMEOUT,
        },
        "quiz": {
            "practice_limit": _DEFAULT_PRACTICE_LIMIT,
            "generate_count": _DEFAULT_GENERATE_COUNT,
        },
        "proxy": {
            "host": _DEFAULT_PROXY_HOST,
            "port": _DEFAULT_PROXY_PORT,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = env_map.get(CONFIG_ENV)
    if env_candidate and env_candidate.strip():
        return Path(env_candidate.strip()).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    env_candidate = env_map.get(CONFIG_ENV)
    return bool(env_candidate and env_candidate.strip())


def _require_string(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizMeConfigError(f"{name} must be a non-empty string.")
    return value.strip()


def _require_number(name: str, value: object, *, minimum: float) -> float:
    if isinstance(value, bool):
        raise QuizMeConfigError(f"{name} must be a number.")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise QuizMeConfigError(f"{name} must be a number.") from exc
    if number < minimum:
        raise QuizMeConfigError(f"{name} must be at least {minimum}.")
    return number


def _require_int(
    name: str,
    value: object,
    *,
    minimum: int,
    maximum: Optional[int] = None,
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizMeConfigError(f"{name} must be an integer.")
    if value < minimum:
        raise QuizMeConfigError(f"{name} must be at least {minimum}.")
    if maximum is not None and value > maximum:
        raise QuizMeConfigError(f"{name} must be at most {maximum}.")
    return value


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, str) or not candidate.strip():
        raise QuizMeConfigError("logging.level must be a non-empty string.")
    return candidate.strip().upper()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
