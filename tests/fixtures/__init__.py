"""Shared testing fixtures and fakes for the pdf_quiz test suite."""

from .chat import FakeChatClient, FakeOpenAIFactory, completion  # noqa: F401
from .documents import FakeDocument, FakeOpener, FakePage, document_of  # noqa: F401
from .quiz import (  # noqa: F401
    correct_answers,
    multiple_choice,
    quiz_payload,
    quiz_set,
    short_answer,
)

__all__ = [
    "FakeChatClient",
    "FakeDocument",
    "FakeOpenAIFactory",
    "FakeOpener",
    "FakePage",
    "completion",
    "correct_answers",
    "document_of",
    "multiple_choice",
    "quiz_payload",
    "quiz_set",
    "short_answer",
]
