"""Core shared helpers for QuizMe components."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    read_packaged_template,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger, null_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "read_packaged_template",
    "write_toml_template",
    "JsonLogFormatter",
    "configure_logger",
    "null_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
