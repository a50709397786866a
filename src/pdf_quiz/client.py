"""httpx client for a remote ``/api/generate`` endpoint."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from .generation import (
    GenerationResult,
    InvalidModelOutput,
    QuestionSet,
    TokenUsage,
    UpstreamFailure,
)
from .generation.contract import parse_question_set
from .generation.errors import error_for_status
from .server import GENERATE_PATH

__all__ = ["GenerationClient"]


class GenerationClient:
    """Call a pdf-quiz server and translate its responses.

    Exposes the same ``generate_question_set`` seam as the in-process
    service so the quiz controller does not care which one it drives.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 180.0,
        http: httpx.Client | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GenerationClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def generate(self, texts: Sequence[str]) -> GenerationResult:
        try:
            response = self._http.post(
                GENERATE_PATH, json={"texts": list(texts)}
            )
        except httpx.HTTPError as exc:
            self._logger.error(
                "Quiz server unreachable", extra={"error": repr(exc)}
            )
            raise UpstreamFailure(
                "Could not reach the quiz generation server."
            ) from exc

        body = _json_or_none(response)
        if response.status_code != 200:
            message = body.get("error") if isinstance(body, dict) else None
            self._logger.warning(
                "Quiz server returned an error",
                extra={"status": response.status_code, "error": message},
            )
            raise error_for_status(response.status_code, message)
        if not isinstance(body, dict) or not isinstance(
            body.get("result"), dict
        ):
            raise InvalidModelOutput()

        payload = body["result"]
        question_set = parse_question_set(payload)
        if not question_set:
            self._logger.error(
                "Server returned a quiz without usable questions",
                extra={"result_keys": sorted(payload)},
            )
            raise InvalidModelOutput()
        return GenerationResult(
            payload=payload,
            question_set=question_set,
            usage=TokenUsage.from_response(body.get("usage")),
        )

    def generate_question_set(self, texts: Sequence[str]) -> QuestionSet:
        result = self.generate(texts)
        if not result.question_set:
            raise InvalidModelOutput()
        return result.question_set


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
