"""Quiz generation against the OpenAI chat completions API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..core.config import GenerationSettings, OpenAISettings
from .contract import (
    ContractViolation,
    QuestionSet,
    TokenUsage,
    parse_question_set,
    validate_question_set,
)
from .errors import InvalidModelOutput, UpstreamFailure, ValidationError
from .prompt import build_quiz_prompt, join_pages

__all__ = ["GenerationResult", "GenerationService"]


@dataclass(frozen=True)
class GenerationResult:
    """Parsed model output plus token accounting."""

    payload: Mapping[str, Any]
    question_set: QuestionSet | None
    usage: TokenUsage
    enforced: bool = True

    def to_response(self) -> dict[str, Any]:
        """Return the ``/api/generate`` success body."""

        # pass-through mode answers with the model object untouched
        if self.enforced and self.question_set is not None:
            result: Any = self.question_set.to_dict()
        else:
            result = dict(self.payload)
        return {"result": result, "usage": self.usage.to_dict()}


class GenerationService:
    """Stateless quiz generator.

    The OpenAI client is created once at process start and passed in; the
    service keeps no per-request state, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        client: Any,
        *,
        openai: OpenAISettings,
        generation: GenerationSettings,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._openai = openai
        self._generation = generation
        self._logger = logger or logging.getLogger(__name__)

    def generate(self, texts: Sequence[str] | None) -> GenerationResult:
        pages = _validate_texts(texts)
        prompt = build_quiz_prompt(join_pages(pages))
        self._logger.info(
            "Requesting quiz generation",
            extra={
                "page_count": len(pages),
                "prompt_chars": len(prompt),
                "model": self._openai.model,
            },
        )

        response = self._complete(prompt)
        raw_text = _message_content(response)
        usage = TokenUsage.from_response(getattr(response, "usage", None))

        try:
            payload = json.loads(raw_text or "{}")
        except ValueError as exc:
            self._logger.error(
                "Model returned invalid JSON",
                extra={"error": str(exc), "raw_response": raw_text},
            )
            raise InvalidModelOutput() from exc
        if not isinstance(payload, dict):
            self._logger.error(
                "Model returned a non-object JSON value",
                extra={"raw_response": raw_text},
            )
            raise InvalidModelOutput()

        if self._generation.enforce_contract:
            try:
                question_set: QuestionSet | None = validate_question_set(
                    payload
                )
            except ContractViolation as exc:
                self._logger.error(
                    "Model output violates the quiz contract",
                    extra={"violation": str(exc), "raw_response": raw_text},
                )
                raise InvalidModelOutput() from exc
        else:
            question_set = parse_question_set(payload)

        self._logger.info(
            "Generated quiz",
            extra={
                "question_count": len(question_set) if question_set else None,
                "usage": usage.to_dict(),
            },
        )
        return GenerationResult(
            payload=payload,
            question_set=question_set,
            usage=usage,
            enforced=self._generation.enforce_contract,
        )

    def generate_question_set(self, texts: Sequence[str]) -> QuestionSet:
        """Generate and return only the questions (controller seam)."""

        result = self.generate(texts)
        if not result.question_set:
            raise InvalidModelOutput()
        return result.question_set

    def _complete(self, prompt: str) -> Any:
        try:
            return self._client.chat.completions.create(
                model=self._openai.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=self._openai.temperature,
                max_tokens=self._openai.max_output_tokens,
                timeout=self._openai.request_timeout_seconds,
            )
        except Exception as exc:
            self._logger.exception(
                "OpenAI request failed",
                extra={"error_type": type(exc).__name__},
            )
            raise UpstreamFailure() from exc


def _validate_texts(texts: Sequence[str] | None) -> list[str]:
    if texts is None or isinstance(texts, (str, bytes)):
        raise ValidationError()
    pages = list(texts)
    if not pages:
        raise ValidationError()
    if not all(isinstance(page, str) for page in pages):
        raise ValidationError("Every entry in 'texts' must be a string.")
    return pages


def _message_content(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise InvalidModelOutput() from exc
    return content or ""
