"""TOML configuration for pdf-quiz.

The file groups settings per collaborator (OpenAI, generation contract, HTTP
server, HTTP client, logging). Every key has a default so the file itself is
optional; unknown keys are rejected so typos surface early.
"""

from __future__ import annotations

import copy
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ required for tomllib support") from exc

from .workspace import WorkspaceLayout

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "ConfigError",
    "OpenAISettings",
    "GenerationSettings",
    "ServerSettings",
    "ClientSettings",
    "LoggingSettings",
    "QuizConfig",
    "config_template",
    "default_tree",
    "load_config",
    "resolve_config_path",
    "write_template",
]

CONFIG_FILENAME = "pdf_quiz.toml"
CONFIG_PATH_ENV = "PDF_QUIZ_CONFIG"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class OpenAISettings:
    model: str
    temperature: float
    max_output_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class GenerationSettings:
    enforce_contract: bool


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    max_body_bytes: int


@dataclass(frozen=True)
class ClientSettings:
    server_url: str
    request_timeout_seconds: int


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizConfig:
    openai: OpenAISettings
    generation: GenerationSettings
    server: ServerSettings
    client: ClientSettings
    logging: LoggingSettings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted, type(value).__name__
                    )
                )
            _merge_dict(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    return _require_string(value, field=field)


def _build_openai(section: Mapping[str, Any]) -> OpenAISettings:
    return OpenAISettings(
        model=_require_string(section.get("model"), field="openai.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field="openai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=_require_positive_int(
            section.get("max_output_tokens"),
            field="openai.max_output_tokens",
        ),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="openai.request_timeout_seconds",
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field="openai.api_base"
        ),
    )


def _build_server(section: Mapping[str, Any]) -> ServerSettings:
    port = _require_positive_int(section.get("port"), field="server.port")
    if port > 65535:
        raise ConfigError("'server.port' must be at most 65535.")
    return ServerSettings(
        host=_require_string(section.get("host"), field="server.host"),
        port=port,
        max_body_bytes=_require_positive_int(
            section.get("max_body_bytes"), field="server.max_body_bytes"
        ),
    )


def _build_client(section: Mapping[str, Any]) -> ClientSettings:
    url = _require_string(section.get("server_url"), field="client.server_url")
    if not url.startswith(("http://", "https://")):
        raise ConfigError("'client.server_url' must be an http(s) URL.")
    return ClientSettings(
        server_url=url.rstrip("/"),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="client.request_timeout_seconds",
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingSettings:
    level = _require_string(section.get("level"), field="logging.level").upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingSettings(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> QuizConfig:
    generation = tree["generation"]
    return QuizConfig(
        openai=_build_openai(tree["openai"]),
        generation=GenerationSettings(
            enforce_contract=_require_bool(
                generation.get("enforce_contract"),
                field="generation.enforce_contract",
            )
        ),
        server=_build_server(tree["server"]),
        client=_build_client(tree["client"]),
        logging=_build_logging(tree["logging"]),
    )


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    layout: WorkspaceLayout | None = None,
) -> Optional[Path]:
    """Return the config file to read, or ``None`` to use defaults only."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    if layout is not None:
        candidate = layout.path_for("config") / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    layout: WorkspaceLayout | None = None,
) -> QuizConfig:
    """Load the TOML config, applying defaults and validation."""

    tree = default_tree()
    path = resolve_config_path(
        explicit_path=explicit_path, env=env, layout=layout
    )
    if path is not None:
        data = _load_toml(path)
        if not isinstance(data, Mapping):
            raise ConfigError("Config TOML must contain a table at the root.")
        _merge_dict(tree, data)
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template written by ``pdf-quiz config init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.write_text(config_template(), encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path


_DEFAULTS: Dict[str, Any] = {
    "openai": {
        "model": "gpt-4o",
        "temperature": 0.5,
        "max_output_tokens": 8000,
        "request_timeout_seconds": 120,
        "api_base": None,
    },
    "generation": {
        "enforce_contract": True,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
        "max_body_bytes": 20 * 1024 * 1024,
    },
    "client": {
        "server_url": "http://127.0.0.1:8000",
        "request_timeout_seconds": 180,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# pdf-quiz configuration

[openai]
# Chat completion model used to write the quiz
model = "gpt-4o"
# Non-zero so regenerating against the same PDF yields different questions
temperature = 0.5
max_output_tokens = 8000
request_timeout_seconds = 120
# api_base = "https://api.openai.com/v1"

[generation]
# Reject model output that is valid JSON but not a 10-question quiz
enforce_contract = true

[server]
host = "127.0.0.1"
port = 8000
# Largest accepted request body (bytes)
max_body_bytes = 20971520

[client]
# Used by `pdf-quiz quiz --server`
server_url = "http://127.0.0.1:8000"
request_timeout_seconds = 180

[logging]
level = "INFO"
verbose = false
"""
