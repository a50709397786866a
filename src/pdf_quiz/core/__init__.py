"""Shared helpers: OpenAI client, configuration, logging, workspace."""

from __future__ import annotations

from .ai import load_client
from .config import ConfigError, QuizConfig, load_config
from .logging import JsonLogFormatter, configure_logger, get_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "ConfigError",
    "QuizConfig",
    "load_config",
    "JsonLogFormatter",
    "configure_logger",
    "get_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
