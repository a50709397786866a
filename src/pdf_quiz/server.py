"""HTTP surface: ``POST /api/generate`` backed by :class:`GenerationService`."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .core.ai import load_client
from .core.config import QuizConfig
from .generation import (
    GenerationError,
    GenerationService,
    UpstreamFailure,
    ValidationError,
)

__all__ = ["GENERATE_PATH", "build_app", "create_app"]

GENERATE_PATH = "/api/generate"

_LOGGER = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _extract_texts(payload: Any) -> list[str]:
    if not isinstance(payload, dict):
        raise ValidationError()
    texts = payload.get("texts")
    if not isinstance(texts, list) or not texts:
        raise ValidationError()
    return texts


def create_app(
    service: GenerationService,
    *,
    max_body_bytes: int = 20 * 1024 * 1024,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the API around an already constructed service."""

    log = logger or _LOGGER
    app = FastAPI(title="pdf-quiz", docs_url=None, redoc_url=None)
    app.state.service = service

    @app.get("/healthz", include_in_schema=False)
    def health_get() -> dict[str, bool]:
        return {"ok": True}

    @app.head("/healthz", include_in_schema=False)
    def health_head() -> Response:
        return Response(status_code=200)

    @app.post(GENERATE_PATH)
    async def generate(request: Request) -> JSONResponse:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_body_bytes:
            return _error(413, "Request body is too large.")
        body = await request.body()
        if len(body) > max_body_bytes:
            return _error(413, "Request body is too large.")

        try:
            payload = json.loads(body or b"null")
        except ValueError:
            return _error(400, ValidationError.default_message)

        try:
            texts = _extract_texts(payload)
            result = await run_in_threadpool(service.generate, texts)
        except GenerationError as exc:
            log.warning(
                "Quiz generation request failed",
                extra={"kind": exc.kind.value, "status": exc.status_code},
            )
            return _error(exc.status_code, exc.message)
        except Exception:
            log.exception("Unexpected error while generating a quiz")
            return _error(500, UpstreamFailure.default_message)
        return JSONResponse(result.to_response(), status_code=200)

    return app


def build_app(config: QuizConfig, *, client: Any | None = None) -> FastAPI:
    """Create the production app.

    The OpenAI client is constructed here, once; a missing API key raises
    before the server starts accepting requests.
    """

    openai_client = client or load_client(
        api_base=config.openai.api_base,
        timeout=config.openai.request_timeout_seconds,
    )
    service = GenerationService(
        openai_client,
        openai=config.openai,
        generation=config.generation,
    )
    return create_app(service, max_body_bytes=config.server.max_body_bytes)
