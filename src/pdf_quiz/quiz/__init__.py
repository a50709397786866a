from .console import (
    QuizSessionResult,
    SessionCommand,
    parse_session_command,
    run_quiz_session,
)
from .session import (
    GradedAnswer,
    GradeReport,
    OperationInProgressError,
    QuizSessionController,
    SessionState,
    SessionStateError,
    grade_answers,
    normalize_answer,
)
from .view import QuestionView, QuizApp

__all__ = [
    "QuizSessionResult",
    "SessionCommand",
    "parse_session_command",
    "run_quiz_session",
    "GradedAnswer",
    "GradeReport",
    "OperationInProgressError",
    "QuizSessionController",
    "SessionState",
    "SessionStateError",
    "grade_answers",
    "normalize_answer",
    "QuestionView",
    "QuizApp",
]
