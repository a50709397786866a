from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeChatClient, quiz_payload, quiz_set  # noqa: E402

from pdf_quiz.core.config import GenerationSettings, OpenAISettings  # noqa: E402
from pdf_quiz.core.logging import ROOT_LOGGER  # noqa: E402
from pdf_quiz.generation import GenerationService  # noqa: E402
from pdf_quiz.quiz import QuizSessionController  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the data home and config lookups inside the test tmp dir."""

    monkeypatch.setenv("PDF_QUIZ_HOME", str(tmp_path / "pdf-quiz-home"))
    monkeypatch.delenv("PDF_QUIZ_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def openai_settings() -> OpenAISettings:
    return OpenAISettings(
        model="gpt-4o",
        temperature=0.5,
        max_output_tokens=8000,
        request_timeout_seconds=120,
        api_base=None,
    )


@pytest.fixture
def chat_client() -> FakeChatClient:
    """Fake OpenAI client; queue responses and inspect ``calls``."""

    return FakeChatClient()


@pytest.fixture
def make_service(
    chat_client: FakeChatClient, openai_settings: OpenAISettings
) -> Callable[..., GenerationService]:
    def _make(*, enforce_contract: bool = True) -> GenerationService:
        return GenerationService(
            chat_client,
            openai=openai_settings,
            generation=GenerationSettings(enforce_contract=enforce_contract),
        )

    return _make


@pytest.fixture
def valid_quiz_json() -> str:
    return json.dumps(quiz_payload(), ensure_ascii=False)


class ScriptedBackend:
    """Extract/generate callables for the session controller."""

    def __init__(self) -> None:
        self.pages = ["--- Page 1 START ---\ntext\n--- Page 1 END ---"]
        self.extract_calls: list[Path] = []
        self.generate_calls: list[list[str]] = []
        self.extract_error: Exception | None = None
        self.generate_errors: list[Exception] = []
        self.question_sets = []

    def extract(self, path: Path) -> list[str]:
        self.extract_calls.append(path)
        if self.extract_error is not None:
            raise self.extract_error
        return list(self.pages)

    def generate(self, texts):
        self.generate_calls.append(list(texts))
        if self.generate_errors:
            raise self.generate_errors.pop(0)
        if self.question_sets:
            return self.question_sets.pop(0)
        return quiz_set()


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def controller(backend: ScriptedBackend) -> QuizSessionController:
    return QuizSessionController(backend.extract, backend.generate)


@pytest.fixture
def ready_controller(
    controller: QuizSessionController, tmp_path: Path
) -> QuizSessionController:
    """Controller that already holds a generated quiz."""

    controller.select_file(tmp_path / "lecture.pdf")
    controller.submit()
    return controller
