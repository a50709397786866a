"""Textual front-end over :class:`QuizSessionController`."""

from __future__ import annotations

from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import Button, Input, Static

from ..generation import GenerationError
from ..generation.contract import Question
from .session import QuizSessionController, SessionState, normalize_answer


class QuestionView(Widget):
    """Renders one question with its options or answer box."""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        answer: str = "",
        graded: bool = False,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.answer = answer
        self.graded = graded

    def compose(self) -> ComposeResult:
        kind = "Multiple choice" if self.question.is_multiple_choice else (
            "Short answer"
        )
        yield Static(
            Text(f"{self.index}/{self.total}  [{kind}]"), id="progress"
        )
        yield Static(Text(self.question.prompt), id="stem")
        if self.question.is_multiple_choice:
            selected = self.answer.strip().upper()
            with Vertical(id="choices"):
                for key, option in zip(
                    self.question.option_keys(), self.question.options
                ):
                    button = Button(
                        Text(f"{key}) {option}"),
                        id=f"choice-{key}",
                        disabled=self.graded,
                    )
                    if key == selected:
                        button.add_class("selected")
                    yield button
        else:
            yield Input(
                value=self.answer,
                placeholder="Type your short answer",
                id="short-answer",
                disabled=self.graded,
            )
        if self.graded:
            yield Static(Text(self.feedback_text()), id="feedback")

    def feedback_text(self) -> str:
        correct = normalize_answer(self.answer) == normalize_answer(
            self.question.answer
        )
        head = (
            "Correct."
            if correct
            else f"Incorrect. Answer: {self.question.answer}"
        )
        return f"{head}\n{self.question.explanation}"


class QuizApp(App):
    CSS = """
#choices Button.selected { background: $accent; color: black; }
#status { color: $text-muted; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("a", "select('A')", "A"),
        ("b", "select('B')", "B"),
        ("c", "select('C')", "C"),
        ("d", "select('D')", "D"),
        ("g", "grade", "Grade"),
        ("r", "retry", "Retry"),
        ("ctrl+n", "new_quiz", "New quiz"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, controller: QuizSessionController) -> None:
        super().__init__()
        self.controller = controller
        self._index = 0
        self._notice = ""

    def compose(self) -> ComposeResult:
        if not self.controller.question_set:
            yield Static("No questions.", id="empty")
            return
        with Container(id="stage"):
            yield self._question_view()
        with Horizontal(id="footer"):
            yield Button("Prev", id="prev")
            yield Button("Next", id="next")
            yield Button("Grade", id="grade")
            yield Button("Retry", id="retry")
            yield Button("New quiz", id="new")
        yield Static(Text(self.status_text()), id="status")

    # Pure helpers (usable without running the app) ---------------------
    def current_question(self) -> Question:
        question_set = self.controller.question_set
        assert question_set is not None
        return question_set[self._index]

    def next_question(self) -> int:
        total = len(self.controller.question_set or ())
        if self._index + 1 < total:
            self._index += 1
        self._redraw()
        return self._index

    def prev_question(self) -> int:
        if self._index > 0:
            self._index -= 1
        self._redraw()
        return self._index

    def select_answer(self, value: str) -> bool:
        if self.controller.busy or not self.controller.question_set:
            return False
        question = self.current_question()
        if question.is_multiple_choice and question.option_for(value) is None:
            return False
        accepted = self.controller.answer(self._index, value)
        if not accepted:
            self._notice = "Already graded. Press r to retry."
        self._redraw()
        return accepted

    def grade(self) -> int:
        report = self.controller.grade()
        self._notice = f"Score: {report.score}/{report.total}"
        self._redraw()
        return report.score

    def retry(self) -> bool:
        if self.controller.state is not SessionState.GRADED:
            self._notice = "Grade the quiz before retrying."
            self._redraw()
            return False
        self.controller.retry()
        self._index = 0
        self._notice = "Starting the same quiz again."
        self._redraw()
        return True

    def status_text(self) -> str:
        total = len(self.controller.question_set or ())
        if self.controller.busy:
            base = "Generating a new quiz..."
        elif self.controller.graded:
            base = f"Score: {self.controller.score}/{total}"
        else:
            base = f"Answered: {len(self.controller.answers)}/{total}"
        return f"{base}  {self._notice}".rstrip()

    # Actions -----------------------------------------------------------
    def action_next(self) -> None:
        self.next_question()

    def action_prev(self) -> None:
        self.prev_question()

    def action_select(self, key: str) -> None:
        self.select_answer(key)

    def action_grade(self) -> None:
        if not self.controller.busy:
            self.grade()

    def action_retry(self) -> None:
        self.retry()

    def action_new_quiz(self) -> None:
        if self.controller.busy:
            return
        self._set_new_button(disabled=True)
        self._redraw()
        self.run_worker(self._regenerate, thread=True, exclusive=True)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid.startswith("choice-"):
            self.select_answer(bid[-1])
        elif bid == "next":
            self.action_next()
        elif bid == "prev":
            self.action_prev()
        elif bid == "grade":
            self.action_grade()
        elif bid == "retry":
            self.action_retry()
        elif bid == "new":
            self.action_new_quiz()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "short-answer":
            self.select_answer(event.value)

    # Internals -----------------------------------------------------------
    def _regenerate(self) -> None:
        error: Optional[str] = None
        try:
            self.controller.new_quiz()
        except GenerationError as exc:
            error = str(exc)
        self.call_from_thread(self._after_regenerate, error)

    def _after_regenerate(self, error: Optional[str]) -> None:
        self._set_new_button(disabled=False)
        if error is not None:
            self.notify(error, title="Generation failed", severity="error")
            self.exit(error)
            return
        self._index = 0
        self._notice = "New quiz ready."
        self._redraw()

    def _question_view(self) -> QuestionView:
        question_set = self.controller.question_set
        assert question_set is not None
        return QuestionView(
            question_set[self._index],
            index=self._index + 1,
            total=len(question_set),
            answer=self.controller.answer_for(self._index),
            graded=self.controller.graded,
        )

    def _set_new_button(self, *, disabled: bool) -> None:
        if not self.is_running:
            return
        self.query_one("#new", Button).disabled = disabled

    def _redraw(self) -> None:
        if not self.is_running or not self.controller.question_set:
            return
        stage = self.query_one("#stage", Container)
        stage.remove_children()
        stage.mount(self._question_view())
        self.query_one("#status", Static).update(Text(self.status_text()))
