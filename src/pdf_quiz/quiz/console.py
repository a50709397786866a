"""Rich-powered terminal loop over :class:`QuizSessionController`.

The loop renders one question at a time, reads commands from an injectable
input provider and translates them into controller transitions, so it can be
driven by scripted input in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..generation import GenerationError
from ..generation.contract import Question
from .session import (
    GradeReport,
    QuizSessionController,
    SessionState,
    SessionStateError,
)

__all__ = [
    "QuizSessionResult",
    "SessionCommand",
    "parse_session_command",
    "run_quiz_session",
]

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "failed", "empty"]
CommandType = Literal[
    "answer", "next", "prev", "goto", "grade", "retry", "new", "quit"
]

_KIND_LABELS = {True: "Multiple choice", False: "Short answer"}


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    value: Optional[str] = None
    index: Optional[int] = None


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    exit_action: ExitAction
    graded: bool
    score: Optional[int]
    total: int
    report: Optional[GradeReport] = None


def parse_session_command(
    raw: str | None, *, multiple_choice: bool
) -> SessionCommand | None:
    """Parse raw input for the question currently shown.

    A single letter answers a multiple-choice question; any other text
    answers a short-answer question. ``=`` forces literal answer text.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.startswith("="):
        return SessionCommand("answer", text[1:].strip())
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"g", "grade", "submit"}:
        return SessionCommand("grade")
    if lowered in {"r", "retry"}:
        return SessionCommand("retry")
    if lowered == "new":
        return SessionCommand("new")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if lowered.startswith("goto "):
        target = lowered[5:].strip()
        if target.isdigit() and int(target) > 0:
            return SessionCommand("goto", index=int(target) - 1)
        return None
    if multiple_choice:
        if len(text) == 1 and text.isalpha():
            return SessionCommand("answer", text.upper())
        return None
    return SessionCommand("answer", text)


class _Cursor:
    def __init__(self, total: int) -> None:
        self.total = total
        self.index = 0

    def move(self, delta: int) -> None:
        self.index = min(max(self.index + delta, 0), self.total - 1)

    def go(self, index: int) -> bool:
        if 0 <= index < self.total:
            self.index = index
            return True
        return False


def run_quiz_session(
    controller: QuizSessionController,
    console: Console,
    input_provider: InputProvider,
) -> QuizSessionResult:
    """Run the interactive quiz until the user quits."""

    question_set = controller.question_set
    if not question_set:
        console.print(
            Panel("No quiz to show.", title="Quiz", border_style="yellow")
        )
        return QuizSessionResult("empty", False, None, 0)

    cursor = _Cursor(len(question_set))
    exit_action: ExitAction = "quit"
    while True:
        question_set = controller.question_set
        assert question_set is not None
        question = question_set[cursor.index]
        _render_question(console, controller, question, cursor)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            break
        command = parse_session_command(
            raw, multiple_choice=question.is_multiple_choice
        )
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending quiz session.[/]")
            break
        if command.type == "new":
            if not _regenerate(controller, console):
                exit_action = "failed"
                break
            cursor = _Cursor(len(controller.question_set or ()))
            continue
        _apply_command(command, controller, console, cursor, question)

    return QuizSessionResult(
        exit_action=exit_action,
        graded=controller.graded,
        score=controller.score,
        total=len(controller.question_set or ()),
        report=controller.report(),
    )


def _apply_command(
    command: SessionCommand,
    controller: QuizSessionController,
    console: Console,
    cursor: _Cursor,
    question: Question,
) -> None:
    if command.type == "answer":
        value = command.value or ""
        if question.is_multiple_choice and question.option_for(value) is None:
            keys = ", ".join(question.option_keys())
            console.print(f"[red]Choose one of {keys}.[/]")
            return
        if controller.answer(cursor.index, value):
            console.print(Text.assemble("Answered ", (value, "bold"), "."))
        else:
            console.print(
                "[yellow]Quiz already graded. Type 'retry' to try again.[/]"
            )
        return
    if command.type == "next":
        cursor.move(1)
        return
    if command.type == "prev":
        cursor.move(-1)
        return
    if command.type == "goto":
        if command.index is None or not cursor.go(command.index):
            console.print("[red]No such question.[/]")
        return
    if command.type == "grade":
        report = controller.grade()
        _render_summary(console, report)
        return
    if command.type == "retry":
        try:
            controller.retry()
        except SessionStateError:
            console.print("[yellow]Grade the quiz before retrying.[/]")
            return
        cursor.go(0)
        console.print("Starting the same quiz again.")


def _regenerate(controller: QuizSessionController, console: Console) -> bool:
    try:
        with console.status("Generating a new quiz..."):
            question_set = controller.new_quiz()
    except GenerationError as exc:
        console.print(
            Panel(
                Text(str(exc)), title="Generation failed", border_style="red"
            )
        )
        return False
    console.print(f"[green]Generated {len(question_set)} new questions.[/]")
    return True


def _render_question(
    console: Console,
    controller: QuizSessionController,
    question: Question,
    cursor: _Cursor,
) -> None:
    header = Text.assemble(
        (f"Question {cursor.index + 1}", "bold cyan"),
        (f" / {cursor.total}", "dim"),
        (f"  [{_KIND_LABELS[question.is_multiple_choice]}]", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.prompt, style="bold"))

    current = controller.answer_for(cursor.index)
    if question.is_multiple_choice:
        table = Table(show_header=False, box=box.SIMPLE, expand=True)
        table.add_column("Key", justify="center", style="cyan")
        table.add_column("Choice")
        selected = current.strip().upper()
        for key, option in zip(question.option_keys(), question.options):
            row = Text(("• " if key == selected else "  ") + option)
            if key == selected:
                row.stylize("bold green")
            table.add_row(key, row)
        console.print(table)
        hint = f"choices [{', '.join(question.option_keys())}]"
    else:
        console.print(
            Text(f"Your answer: {current}" if current else "Not answered")
        )
        hint = "type your answer (prefix '=' for literal text)"

    if controller.state is SessionState.GRADED:
        commands = "n, p, goto <n>, retry, new, quit"
        score = f"Score {controller.score}/{cursor.total} | "
    else:
        commands = f"{hint}, n, p, goto <n>, grade, new, quit"
        answered = len(controller.answers)
        score = f"Answered {answered}/{cursor.total} | "
    console.print(Text(f"{score}Commands: {commands}", style="dim"))


def _render_summary(console: Console, report: GradeReport) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    console.print(
        f"Correct [bold]{report.score}[/] of {report.total} "
        f"({report.accuracy * 100:.0f}%)"
    )

    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer")
    table.add_column("Correct answer")
    table.add_column("Result", justify="center")
    for item in report.items:
        table.add_row(
            str(item.index + 1),
            Text(item.question.prompt),
            Text(item.submitted or "-"),
            Text(item.question.answer),
            "✅" if item.is_correct else "❌",
        )
    console.print(table)

    for item in report.items:
        border = "green" if item.is_correct else "red"
        console.print(
            Panel(
                Text(item.question.explanation),
                title=f"Explanation {item.index + 1}",
                border_style=border,
            )
        )
