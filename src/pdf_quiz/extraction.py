"""Page-wise PDF text extraction backed by pdfplumber."""

from __future__ import annotations

import importlib
import io
import logging
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO, Callable, Union

__all__ = [
    "PDF_MIME_TYPE",
    "ExtractionError",
    "ExtractionEnvironmentError",
    "PdfSource",
    "extract_pages",
    "format_page",
    "is_pdf",
    "page_text",
]

PDF_MIME_TYPE = "application/pdf"

PdfSource = Union[str, Path, bytes, bytearray, BinaryIO]
DocumentOpener = Callable[[Any], Any]

_LOGGER = logging.getLogger(__name__)


class ExtractionError(RuntimeError):
    """Raised when a document cannot be turned into page texts."""


class ExtractionEnvironmentError(ExtractionError):
    """Raised when the PDF parsing backend is not available."""


def is_pdf(path: Union[str, Path]) -> bool:
    """Return ``True`` when ``path`` names a PDF document."""

    mime, _ = mimetypes.guess_type(str(path), strict=False)
    return mime == PDF_MIME_TYPE


def format_page(number: int, text: str) -> str:
    """Wrap a page's text in the page-boundary markers."""

    return f"--- Page {number} START ---\n{text}\n--- Page {number} END ---"


def page_text(page: Any) -> str:
    """Join the recognised text lines of ``page`` with newlines.

    Fragments without usable text contribute an empty line.
    """

    fragments = page.extract_text_lines(return_chars=False)
    parts: list[str] = []
    for fragment in fragments or ():
        text = fragment.get("text") if isinstance(fragment, dict) else None
        parts.append(text if isinstance(text, str) else "")
    return "\n".join(parts)


def extract_pages(
    source: PdfSource,
    *,
    opener: DocumentOpener | None = None,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Extract the text of every page of ``source`` in order.

    Each page is closed as soon as its text has been read, so layout caches
    never accumulate across a long document.
    """

    log = logger or _LOGGER
    open_document = opener or _default_opener()
    target = _coerce_source(source)
    label = str(source) if isinstance(source, (str, Path)) else "<stream>"
    log.info("Extracting PDF text", extra={"source": label})

    pages: list[str] = []
    try:
        with open_document(target) as document:
            for number, page in enumerate(document.pages, start=1):
                try:
                    text = page_text(page)
                finally:
                    page.close()
                pages.append(format_page(number, text))
    except ExtractionError:
        raise
    except Exception as exc:
        log.error(
            "PDF extraction failed",
            extra={"source": label, "error": repr(exc)},
        )
        raise ExtractionError(f"Failed to read PDF {label}: {exc}") from exc

    log.info(
        "Extracted PDF text",
        extra={"source": label, "page_count": len(pages)},
    )
    return pages


def _default_opener() -> DocumentOpener:
    try:
        module = importlib.import_module("pdfplumber")
    except ImportError as exc:
        raise ExtractionEnvironmentError(
            "PDF extraction requires the 'pdfplumber' package. "
            "Install it with `pip install pdfplumber`."
        ) from exc
    return module.open


def _coerce_source(source: PdfSource) -> Any:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, Path):
        return str(source)
    return source
