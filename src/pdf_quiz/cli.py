"""Unified CLI entry point for pdf-quiz."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Sequence

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .client import GenerationClient
from .core import config as config_mod
from .core import workspace as workspace_mod
from .core.ai import load_client
from .core.logging import configure_logger, get_logger
from .extraction import ExtractionError, extract_pages
from .generation import GenerationError, GenerationService, join_pages
from .quiz import QuizApp, QuizSessionController, run_quiz_session
from .server import build_app

CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    """Represents a pdf-quiz subcommand."""

    name: str
    summary: str
    handler: CommandHandler
    is_tui: bool = False


@dataclass(frozen=True)
class _Runtime:
    layout: workspace_mod.WorkspaceLayout
    config: config_mod.QuizConfig
    log_path: Path


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to pdf_quiz.toml (defaults to PDF_QUIZ_CONFIG or the "
            "workspace config directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the data home (defaults to PDF_QUIZ_HOME or ~/.pdf-quiz).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr as well as the log file.",
    )


def _bootstrap(args: argparse.Namespace, command: str) -> _Runtime:
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    config = config_mod.load_config(
        explicit_path=args.config, layout=layout
    )
    _, log_path = configure_logger(
        log_dir=layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    get_logger("cli").info(
        "Command started",
        extra={"command": command, "log_path": str(log_path)},
    )
    return _Runtime(layout=layout, config=config, log_path=log_path)


def _fail(console: Console, title: str, message: str) -> int:
    console.print(Panel(Text(message), title=title, border_style="red"))
    return 1


# serve -----------------------------------------------------------------
def _build_serve_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-quiz serve",
        description="Run the quiz generation API with uvicorn.",
    )
    parser.add_argument("--host", help="Bind address (overrides config).")
    parser.add_argument(
        "--port", type=int, help="Bind port (overrides config)."
    )
    _add_common_options(parser)
    return parser


def _cmd_serve(argv: Sequence[str]) -> int:
    args = _build_serve_parser().parse_args(list(argv))
    console = Console(stderr=True)
    try:
        runtime = _bootstrap(args, "serve")
        app = build_app(runtime.config)
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        return _fail(console, "Configuration error", str(exc))
    except RuntimeError as exc:
        return _fail(console, "Startup failed", str(exc))

    settings = runtime.config.server
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=runtime.config.logging.level.lower(),
    )
    return 0


# extract ---------------------------------------------------------------
def _build_extract_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-quiz extract",
        description="Print the page-marked text extracted from a PDF.",
    )
    parser.add_argument("file", type=Path, help="PDF document to read.")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the text to this file instead of stdout.",
    )
    _add_common_options(parser)
    return parser


def _cmd_extract(argv: Sequence[str]) -> int:
    args = _build_extract_parser().parse_args(list(argv))
    console = Console(stderr=True)
    try:
        _bootstrap(args, "extract")
        pages = extract_pages(args.file)
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        return _fail(console, "Configuration error", str(exc))
    except ExtractionError as exc:
        return _fail(console, "Extraction failed", str(exc))

    text = join_pages(pages)
    if args.output is None:
        sys.stdout.write(text + "\n")
        return 0
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(text + "\n", encoding="utf-8")
    console.print(f"Wrote {len(pages)} pages to {args.output}")
    return 0


# quiz ------------------------------------------------------------------
def _build_quiz_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-quiz quiz",
        description=(
            "Generate a quiz from a PDF and take it in the terminal. "
            "Generation runs in-process unless --server is given."
        ),
    )
    parser.add_argument("file", type=Path, help="PDF document to quiz on.")
    parser.add_argument(
        "--server",
        metavar="URL",
        nargs="?",
        const="",
        help=(
            "Use a running pdf-quiz server instead of calling OpenAI here "
            "(without URL, client.server_url from the config)."
        ),
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Use the Textual interface instead of the Rich prompt loop.",
    )
    _add_common_options(parser)
    return parser


def _prompt(console: Console) -> str:
    return console.input("[bold cyan]> [/]")


def _build_controller(
    args: argparse.Namespace, runtime: _Runtime
) -> tuple[QuizSessionController, Optional[GenerationClient]]:
    config = runtime.config
    if args.server is not None:
        remote = GenerationClient(
            (args.server or config.client.server_url).rstrip("/"),
            timeout=config.client.request_timeout_seconds,
        )
        return (
            QuizSessionController(
                extract_pages,
                remote.generate_question_set,
                logger=get_logger("quiz.session"),
            ),
            remote,
        )
    service = GenerationService(
        load_client(
            api_base=config.openai.api_base,
            timeout=config.openai.request_timeout_seconds,
        ),
        openai=config.openai,
        generation=config.generation,
        logger=get_logger("generation"),
    )
    return (
        QuizSessionController(
            extract_pages,
            service.generate_question_set,
            logger=get_logger("quiz.session"),
        ),
        None,
    )


def _cmd_quiz(argv: Sequence[str]) -> int:
    args = _build_quiz_parser().parse_args(list(argv))
    console = Console()
    try:
        runtime = _bootstrap(args, "quiz")
        controller, remote = _build_controller(args, runtime)
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        return _fail(console, "Configuration error", str(exc))
    except RuntimeError as exc:
        return _fail(console, "Startup failed", str(exc))

    try:
        try:
            controller.select_file(args.file)
        except GenerationError as exc:
            return _fail(console, "Invalid file", str(exc))
        try:
            with console.status("Reading the PDF and writing a quiz..."):
                controller.submit()
        except ExtractionError as exc:
            return _fail(console, "Extraction failed", str(exc))
        except GenerationError as exc:
            return _fail(console, "Generation failed", str(exc))

        if args.tui:
            QuizApp(controller).run()
            return 0 if controller.question_set else 1
        result = run_quiz_session(
            controller, console, lambda: _prompt(console)
        )
        return 1 if result.exit_action == "failed" else 0
    finally:
        if remote is not None:
            remote.close()


# config ----------------------------------------------------------------
def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-quiz config",
        description="Manage the pdf_quiz.toml configuration file.",
    )
    sub = parser.add_subparsers(dest="action", required=True)
    init = sub.add_parser("init", help="Write the default config template.")
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    _add_common_options(init)
    show = sub.add_parser("show", help="Print the effective configuration.")
    _add_common_options(show)
    return parser


def _cmd_config(argv: Sequence[str]) -> int:
    args = _build_config_parser().parse_args(list(argv))
    console = Console(stderr=True)
    try:
        layout = workspace_mod.ensure_workspace(path=args.workspace)
        if args.action == "init":
            target = args.config or (
                layout.path_for("config") / config_mod.CONFIG_FILENAME
            )
            path = config_mod.write_template(target, overwrite=args.force)
            sys.stdout.write(f"Wrote config template to {path}\n")
            return 0
        config = config_mod.load_config(
            explicit_path=args.config, layout=layout
        )
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        return _fail(console, "Configuration error", str(exc))

    sys.stdout.write(json.dumps(config.to_dict(), indent=2) + "\n")
    return 0


# dispatch --------------------------------------------------------------
_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="serve",
        summary="Run the /api/generate HTTP service.",
        handler=_cmd_serve,
    ),
    CommandSpec(
        name="extract",
        summary="Print the text extracted from a PDF, page by page.",
        handler=_cmd_extract,
    ),
    CommandSpec(
        name="quiz",
        summary="Generate a quiz from a PDF and take it.",
        handler=_cmd_quiz,
        is_tui=True,
    ),
    CommandSpec(
        name="config",
        summary="Write or show the pdf_quiz.toml configuration.",
        handler=_cmd_config,
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def _sorted_specs() -> Iterable[CommandSpec]:
    return _COMMAND_SPECS


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = max(len(spec.name) for spec in _sorted_specs())
    lines = ["Available commands:"]
    for spec in _sorted_specs():
        suffix = " (TUI)" if spec.is_tui else ""
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    parts = [
        "Usage: pdf-quiz <command> [args...]",
        "Run `pdf-quiz list` for commands or `pdf-quiz help <name>` for "
        "details.",
        "",
        format_command_table(),
    ]
    return "\n".join(parts)


def _print(
    text: str, *, stream: Optional[Callable[[str], None]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _handle_version() -> int:
    try:
        version = metadata.version("pdf-quiz")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if not spec:
        _print(f"Unknown command '{argv[0]}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2
    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `pdf-quiz {spec.name} --help` for CLI-specific options.")
    return 0


def _run(spec: CommandSpec, argv: Sequence[str]) -> int:
    try:
        return spec.handler(argv)
    except SystemExit as exc:
        code = exc.code
        if code is None:
            return 0
        return code if isinstance(code, int) else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _print(format_usage())
        return 2

    head, *tail = args
    if head in ("-h", "--help"):
        _print(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _handle_version()
    if head == "list":
        _print(format_command_table())
        return 0
    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        _print(f"Unknown command '{head}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2
    return _run(spec, tail)


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
