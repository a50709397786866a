"""Instruction prompt sent to the model for quiz generation."""

from __future__ import annotations

from typing import Sequence

__all__ = ["DOCUMENT_SEPARATOR", "build_quiz_prompt", "join_pages"]

DOCUMENT_SEPARATOR = "\n\n"

# The document is embedded verbatim; no truncation happens here.
_QUIZ_PROMPT = """다음은 PDF에서 추출한 텍스트 전문입니다:

{document}

위 텍스트를 분석하여 해당 내용에 기반한 총 10개의 시험 문제를 한국어로 생성해 주세요.

### 문제 유형 및 개수 요구 사항
1. 객관식(4지선다) 문제: 8개 (각 문제는 정답이 반드시 1개여야 합니다.)
2. 주관식(단답형) 문제: 2개

### 중복 방지 및 창의성 지침
- 이전에 출제되지 않은 새로운 영역의 내용을 탐색하여 문제를 생성하십시오.
- 객관식 보기 4개(A, B, C, D) 중 정답은 반드시 1개여야 하며, 명확해야 합니다.

### 출력 형식 (JSON)
반드시 'questions' 키를 가진 최상위 JSON 객체 {{ "questions": [...] }} 형태로만 반환해야 합니다.
'questions' 배열은 다음 규칙을 따르는 10개의 객체를 포함해야 합니다:

객관식(type: 'MULTIPLE_CHOICE'): options 필드에 A부터 D까지 4개의 보기를 포함하고, answer 필드는 정답 보기의 기호(A, B, C, D 중 하나)여야 합니다.
주관식(type: 'SHORT_ANSWER'): options 필드는 반드시 빈 배열 []이어야 합니다.

예시 구조:
{{
  "questions": [
    {{ "type": "MULTIPLE_CHOICE", "question": "...", "options": ["...", "...", "...", "..."], "answer": "A", "explanation": "..." }},
    {{ "type": "SHORT_ANSWER", "question": "...", "options": [], "answer": "단답형 정답", "explanation": "..." }}
  ]
}}"""


def join_pages(texts: Sequence[str]) -> str:
    """Join extracted page texts into one document string."""

    return DOCUMENT_SEPARATOR.join(texts)


def build_quiz_prompt(document: str) -> str:
    return _QUIZ_PROMPT.format(document=document)
