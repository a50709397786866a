"""In-memory documents shaped like ``pdfplumber`` PDF objects."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class FakePage:
    def __init__(
        self,
        lines: Sequence[Any],
        *,
        error: Optional[Exception] = None,
    ) -> None:
        self._lines = list(lines)
        self._error = error
        self.closed = False
        self.calls: List[dict] = []

    def extract_text_lines(self, **kwargs: Any) -> List[Any]:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return [
            {"text": line} if isinstance(line, str) else line
            for line in self._lines
        ]

    def close(self) -> None:
        self.closed = True


class FakeDocument:
    def __init__(self, pages: Sequence[FakePage]) -> None:
        self.pages = list(pages)
        self.closed = False

    def __enter__(self) -> "FakeDocument":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.closed = True


class FakeOpener:
    """Callable passed as ``extract_pages(opener=...)``."""

    def __init__(self, document: FakeDocument) -> None:
        self.document = document
        self.sources: List[Any] = []

    def __call__(self, source: Any) -> FakeDocument:
        self.sources.append(source)
        return self.document


def document_of(*pages: Sequence[Any]) -> FakeDocument:
    """Build a document whose pages hold the given text lines."""

    return FakeDocument([FakePage(lines) for lines in pages])
