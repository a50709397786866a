"""Generate and take quizzes built from the text of PDF documents."""

from .extraction import ExtractionError, extract_pages, is_pdf
from .generation import GenerationError, GenerationService, QuestionSet
from .quiz import QuizSessionController, SessionState

__all__ = [
    "ExtractionError",
    "extract_pages",
    "is_pdf",
    "GenerationError",
    "GenerationService",
    "QuestionSet",
    "QuizSessionController",
    "SessionState",
]
