"""Question types and the response contract for generated quizzes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

__all__ = [
    "OPTION_KEYS",
    "QUESTION_COUNT",
    "MULTIPLE_CHOICE_COUNT",
    "SHORT_ANSWER_COUNT",
    "ContractViolation",
    "QuestionKind",
    "Question",
    "QuestionSet",
    "TokenUsage",
    "parse_question_set",
    "validate_question_set",
]

OPTION_KEYS = ("A", "B", "C", "D")
QUESTION_COUNT = 10
MULTIPLE_CHOICE_COUNT = 8
SHORT_ANSWER_COUNT = 2


class ContractViolation(ValueError):
    """Raised when a payload does not match the quiz response contract."""


class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"


@dataclass(frozen=True)
class Question:
    """One generated quiz item."""

    kind: QuestionKind
    prompt: str
    options: tuple[str, ...]
    answer: str
    explanation: str

    @property
    def is_multiple_choice(self) -> bool:
        return self.kind is QuestionKind.MULTIPLE_CHOICE

    def option_keys(self) -> tuple[str, ...]:
        return OPTION_KEYS[: len(self.options)]

    def option_for(self, key: str | None) -> str | None:
        """Return the option text addressed by letter ``key``."""

        if not key:
            return None
        normalized = key.strip().upper()
        if normalized in self.option_keys():
            return self.options[OPTION_KEYS.index(normalized)]
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        """Build a question from its wire shape without contract checks."""

        options = data.get("options") or []
        return cls(
            kind=QuestionKind(str(data.get("type"))),
            prompt=str(data.get("question", "")),
            options=tuple(str(option) for option in options),
            answer=str(data.get("answer", "")),
            explanation=str(data.get("explanation", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "question": self.prompt,
            "options": list(self.options),
            "answer": self.answer,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class QuestionSet:
    """Ordered questions of one quiz."""

    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    def count(self, kind: QuestionKind) -> int:
        return sum(1 for question in self.questions if question.kind is kind)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuestionSet":
        items = data.get("questions") or []
        return cls(tuple(Question.from_dict(item) for item in items))

    def to_dict(self) -> dict[str, Any]:
        return {"questions": [question.to_dict() for question in self]}


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_response(cls, usage: Any) -> "TokenUsage":
        if usage is None:
            return cls()
        if isinstance(usage, Mapping):
            getter = usage.get
        else:
            def getter(name: str, default: Any = 0) -> Any:
                return getattr(usage, name, default)
        return cls(
            prompt_tokens=int(getter("prompt_tokens", 0) or 0),
            completion_tokens=int(getter("completion_tokens", 0) or 0),
            total_tokens=int(getter("total_tokens", 0) or 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


def _require_text(item: Mapping[str, Any], key: str, where: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ContractViolation(f"{where}: '{key}' must be a non-empty string")
    return value


def _validate_question(item: Any, index: int) -> Question:
    where = f"questions[{index}]"
    if not isinstance(item, Mapping):
        raise ContractViolation(f"{where} must be an object")
    raw_type = item.get("type")
    try:
        kind = QuestionKind(raw_type)
    except ValueError as exc:
        raise ContractViolation(
            f"{where}: unknown question type {raw_type!r}"
        ) from exc
    _require_text(item, "question", where)
    _require_text(item, "explanation", where)
    options = item.get("options")
    if not isinstance(options, list):
        raise ContractViolation(f"{where}: 'options' must be a list")
    answer = item.get("answer")
    if not isinstance(answer, str):
        raise ContractViolation(f"{where}: 'answer' must be a string")

    if kind is QuestionKind.MULTIPLE_CHOICE:
        if len(options) != len(OPTION_KEYS):
            raise ContractViolation(
                f"{where}: multiple-choice needs exactly 4 options, "
                f"got {len(options)}"
            )
        if not all(isinstance(o, str) and o.strip() for o in options):
            raise ContractViolation(f"{where}: options must be non-empty")
        if answer.strip().upper() not in OPTION_KEYS:
            raise ContractViolation(
                f"{where}: answer must be one of A, B, C, D"
            )
    else:
        if options:
            raise ContractViolation(
                f"{where}: short-answer options must be empty"
            )
        if not answer.strip():
            raise ContractViolation(f"{where}: 'answer' must not be empty")
    return Question.from_dict(item)


def validate_question_set(payload: Any) -> QuestionSet:
    """Check ``payload`` against the quiz contract and return its questions.

    The contract is a top-level object with a ``questions`` list holding
    exactly 8 multiple-choice and 2 short-answer items.
    """

    if not isinstance(payload, Mapping):
        raise ContractViolation("payload must be a JSON object")
    items = payload.get("questions")
    if not isinstance(items, list):
        raise ContractViolation("payload must contain a 'questions' list")
    if len(items) != QUESTION_COUNT:
        raise ContractViolation(
            f"expected {QUESTION_COUNT} questions, got {len(items)}"
        )
    question_set = QuestionSet(
        tuple(_validate_question(item, i) for i, item in enumerate(items))
    )
    mcq = question_set.count(QuestionKind.MULTIPLE_CHOICE)
    short = question_set.count(QuestionKind.SHORT_ANSWER)
    if mcq != MULTIPLE_CHOICE_COUNT or short != SHORT_ANSWER_COUNT:
        raise ContractViolation(
            f"expected {MULTIPLE_CHOICE_COUNT} multiple-choice and "
            f"{SHORT_ANSWER_COUNT} short-answer questions, "
            f"got {mcq} and {short}"
        )
    return question_set


def parse_question_set(payload: Any) -> QuestionSet | None:
    """Best-effort conversion used when the contract is not enforced."""

    if not isinstance(payload, Mapping):
        return None
    items = payload.get("questions")
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        return None
    try:
        return QuestionSet(
            tuple(
                Question.from_dict(item)
                for item in items
                if isinstance(item, Mapping)
            )
        )
    except (TypeError, ValueError):
        return None
