from .contract import (
    ContractViolation,
    Question,
    QuestionKind,
    QuestionSet,
    TokenUsage,
    validate_question_set,
)
from .errors import (
    GenerationError,
    GenerationErrorKind,
    InvalidModelOutput,
    UpstreamFailure,
    ValidationError,
)
from .prompt import build_quiz_prompt, join_pages
from .service import GenerationResult, GenerationService

__all__ = [
    "ContractViolation",
    "Question",
    "QuestionKind",
    "QuestionSet",
    "TokenUsage",
    "validate_question_set",
    "GenerationError",
    "GenerationErrorKind",
    "InvalidModelOutput",
    "UpstreamFailure",
    "ValidationError",
    "build_quiz_prompt",
    "join_pages",
    "GenerationResult",
    "GenerationService",
]
