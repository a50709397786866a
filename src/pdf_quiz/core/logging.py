"""JSON-lines logging for the pdf-quiz server and terminal client."""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "ROOT_LOGGER",
    "JsonLogFormatter",
    "configure_logger",
    "get_logger",
]

ROOT_LOGGER = "pdf_quiz"

# Attributes present on every LogRecord; anything else came in via ``extra``.
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``pdf_quiz`` or one of its children."""

    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logger(
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    filename: str = "pdf-quiz.log",
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    console: Console | None = None,
) -> tuple[logging.Logger, Path]:
    """Attach the JSON file handler (and optional console) to ``pdf_quiz``.

    Safe to call repeatedly; existing managed handlers are reused.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    file_level = logging.DEBUG if verbose else _coerce_level(level)
    handler = _managed_handler(logger, "_pdf_quiz_file")
    if handler is None:
        handler, path = _open_file_handler(
            log_dir, filename, max_bytes=max_bytes, backup_count=backup_count
        )
        handler.setFormatter(JsonLogFormatter())
        handler._pdf_quiz_file = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    else:
        path = Path(handler.baseFilename)  # type: ignore[attr-defined]
    handler.setLevel(file_level)

    console_handler = _managed_handler(logger, "_pdf_quiz_console")
    if verbose and console_handler is None:
        console_handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        console_handler.setLevel(logging.DEBUG)
        console_handler._pdf_quiz_console = True  # type: ignore[attr-defined]
        logger.addHandler(console_handler)
    elif not verbose and console_handler is not None:
        logger.removeHandler(console_handler)
        console_handler.close()

    return logger, path


def _managed_handler(
    logger: logging.Logger, marker: str
) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _open_file_handler(
    log_dir: Path,
    filename: str,
    *,
    max_bytes: int,
    backup_count: int,
) -> tuple[RotatingFileHandler, Path]:
    for directory in (log_dir, _fallback_log_dir()):
        path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except PermissionError:
            continue
        try:
            path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        return handler, path
    raise PermissionError(f"No writable log directory for {filename}")


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "pdf-quiz-logs"
