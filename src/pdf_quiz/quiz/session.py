"""Quiz session state machine and grading.

A :class:`QuizSessionController` owns one :class:`Session` and is the only
way to change it. UIs call the transition methods and read state back through
the controller's properties; they never flip session fields themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence

from ..extraction import is_pdf as _is_pdf
from ..generation import QuestionSet, ValidationError
from ..generation.contract import Question

__all__ = [
    "ExtractFn",
    "GenerateFn",
    "GradedAnswer",
    "GradeReport",
    "OperationInProgressError",
    "QuizSessionController",
    "Session",
    "SessionState",
    "SessionStateError",
    "grade_answers",
    "normalize_answer",
]

ExtractFn = Callable[[Path], Sequence[str]]
GenerateFn = Callable[[Sequence[str]], QuestionSet]


class SessionState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    GENERATING = "generating"
    READY = "ready"
    GRADED = "graded"


class SessionStateError(RuntimeError):
    """Raised when a transition is not allowed from the current state."""


class OperationInProgressError(SessionStateError):
    """Raised when extraction or generation is already running."""


@dataclass
class Session:
    """Data of one quiz attempt lifecycle."""

    source_file: Optional[Path] = None
    extracted_pages: Optional[tuple[str, ...]] = None
    question_set: Optional[QuestionSet] = None
    answers: dict[int, str] = field(default_factory=dict)
    graded: bool = False
    score: int = 0

    def clear_progress(self) -> None:
        self.answers = {}
        self.graded = False
        self.score = 0

    def clear_downstream(self) -> None:
        self.extracted_pages = None
        self.question_set = None
        self.clear_progress()


@dataclass(frozen=True)
class GradedAnswer:
    index: int
    question: Question
    submitted: str
    is_correct: bool


@dataclass(frozen=True)
class GradeReport:
    items: tuple[GradedAnswer, ...]
    score: int

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def accuracy(self) -> float:
        return self.score / self.total if self.total else 0.0


def normalize_answer(value: str | None) -> str:
    """Trim and case-fold an answer for comparison."""

    return (value or "").strip().casefold()


def grade_answers(
    question_set: QuestionSet, answers: Mapping[int, str]
) -> GradeReport:
    """Score ``answers`` against ``question_set`` by exact normalised match.

    Letter codes and short free-text answers are compared the same way; an
    unanswered question counts as the empty string.
    """

    items: list[GradedAnswer] = []
    for index, question in enumerate(question_set):
        submitted = answers.get(index, "")
        items.append(
            GradedAnswer(
                index=index,
                question=question,
                submitted=submitted,
                is_correct=(
                    normalize_answer(submitted)
                    == normalize_answer(question.answer)
                ),
            )
        )
    score = sum(1 for item in items if item.is_correct)
    return GradeReport(items=tuple(items), score=score)


class QuizSessionController:
    """Drive a :class:`Session` through extraction, generation and grading."""

    def __init__(
        self,
        extract: ExtractFn,
        generate: GenerateFn,
        *,
        is_pdf: Callable[[Path], bool] = _is_pdf,
        logger: logging.Logger | None = None,
    ) -> None:
        self._extract = extract
        self._generate = generate
        self._is_pdf = is_pdf
        self._logger = logger or logging.getLogger(__name__)
        self._session = Session()
        self._state = SessionState.IDLE
        self._last_error: Optional[str] = None

    # Read-only views -------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state in (SessionState.EXTRACTING, SessionState.GENERATING)

    @property
    def source_file(self) -> Optional[Path]:
        return self._session.source_file

    @property
    def extracted_pages(self) -> Optional[tuple[str, ...]]:
        return self._session.extracted_pages

    @property
    def question_set(self) -> Optional[QuestionSet]:
        return self._session.question_set

    @property
    def answers(self) -> Mapping[int, str]:
        return MappingProxyType(dict(self._session.answers))

    @property
    def graded(self) -> bool:
        return self._session.graded

    @property
    def score(self) -> Optional[int]:
        return self._session.score if self._session.graded else None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def answer_for(self, index: int) -> str:
        return self._session.answers.get(index, "")

    # Transitions -----------------------------------------------------
    def select_file(self, path: Path) -> None:
        """Choose the document to quiz on; non-PDF input is rejected."""

        self._require(SessionState.IDLE)
        candidate = Path(path)
        self._session.source_file = None
        self._session.clear_downstream()
        if not self._is_pdf(candidate):
            self._last_error = "Please choose a PDF file."
            self._logger.warning(
                "Rejected non-PDF file", extra={"path": str(candidate)}
            )
            raise ValidationError(self._last_error)
        self._session.source_file = candidate
        self._last_error = None

    def submit(self) -> QuestionSet:
        """Extract the selected file and generate its first quiz."""

        self._require(SessionState.IDLE)
        source = self._session.source_file
        if source is None:
            raise SessionStateError("No file selected.")

        self._session.clear_downstream()
        self._set_state(SessionState.EXTRACTING)
        try:
            pages = tuple(self._extract(source))
        except Exception as exc:
            self._fail(exc)
            raise
        self._session.extracted_pages = pages
        try:
            return self._run_generation(pages)
        except Exception:
            self._session.extracted_pages = None
            raise

    def new_quiz(self) -> QuestionSet:
        """Replace the quiz with a fresh one from the stored pages."""

        self._require(SessionState.READY, SessionState.GRADED)
        pages = self._session.extracted_pages
        if not pages:
            raise SessionStateError("No extracted text to generate from.")
        self._session.question_set = None
        self._session.clear_progress()
        return self._run_generation(pages)

    def answer(self, index: int, value: str) -> bool:
        """Record an answer; returns ``False`` without change once graded."""

        if self._session.graded:
            return False
        self._require(SessionState.READY)
        question_set = self._session.question_set
        assert question_set is not None
        if not 0 <= index < len(question_set):
            raise IndexError(f"No question at index {index}.")
        self._session.answers[index] = value
        return True

    def grade(self) -> GradeReport:
        """Score the current answers; repeated calls return the same score."""

        self._require(SessionState.READY, SessionState.GRADED)
        question_set = self._session.question_set
        assert question_set is not None
        report = grade_answers(question_set, self._session.answers)
        self._session.score = report.score
        self._session.graded = True
        self._set_state(SessionState.GRADED)
        self._logger.info(
            "Graded quiz",
            extra={"score": report.score, "total": report.total},
        )
        return report

    def report(self) -> Optional[GradeReport]:
        """Return the grading breakdown once graded."""

        if not self._session.graded or self._session.question_set is None:
            return None
        return grade_answers(self._session.question_set, self._session.answers)

    def retry(self) -> None:
        """Start the same quiz again with empty answers."""

        self._require(SessionState.GRADED)
        self._session.clear_progress()
        self._set_state(SessionState.READY)

    def reset(self) -> None:
        """Forget everything and return to the initial state."""

        if self.busy:
            raise OperationInProgressError(
                "Cannot reset while an operation is running."
            )
        self._session = Session()
        self._last_error = None
        self._set_state(SessionState.IDLE)

    # Internals -------------------------------------------------------
    def _run_generation(self, pages: Sequence[str]) -> QuestionSet:
        self._set_state(SessionState.GENERATING)
        try:
            question_set = self._generate(list(pages))
        except Exception as exc:
            self._fail(exc)
            raise
        self._session.question_set = question_set
        self._session.clear_progress()
        self._last_error = None
        self._set_state(SessionState.READY)
        return question_set

    def _fail(self, exc: Exception) -> None:
        self._last_error = str(exc) or type(exc).__name__
        self._logger.error(
            "Session operation failed",
            extra={
                "state": self._state.value,
                "error_type": type(exc).__name__,
            },
        )
        self._set_state(SessionState.IDLE)

    def _require(self, *allowed: SessionState) -> None:
        if self._state in allowed:
            return
        if self.busy:
            raise OperationInProgressError(
                f"An operation is already running ({self._state.value})."
            )
        names = ", ".join(state.value for state in allowed)
        raise SessionStateError(
            f"Not allowed in state '{self._state.value}' (needs {names})."
        )

    def _set_state(self, new_state: SessionState) -> None:
        if new_state is not self._state:
            self._logger.debug(
                "Session transition",
                extra={
                    "from_state": self._state.value,
                    "to_state": new_state.value,
                },
            )
        self._state = new_state
