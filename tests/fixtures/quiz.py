"""Canned quiz payloads in the generation wire shape."""

from __future__ import annotations

import copy
from typing import Any, Dict, List

from pdf_quiz.generation.contract import QuestionSet


def multiple_choice(index: int, *, answer: str = "A") -> Dict[str, Any]:
    return {
        "type": "MULTIPLE_CHOICE",
        "question": f"질문 {index}?",
        "options": [f"보기 {index}-{key}" for key in "ABCD"],
        "answer": answer,
        "explanation": f"해설 {index}",
    }


def short_answer(index: int, *, answer: str = "Paris") -> Dict[str, Any]:
    return {
        "type": "SHORT_ANSWER",
        "question": f"단답형 질문 {index}?",
        "options": [],
        "answer": answer,
        "explanation": f"해설 {index}",
    }


def quiz_payload() -> Dict[str, Any]:
    """Ten questions: eight multiple-choice then two short-answer."""

    questions: List[Dict[str, Any]] = [
        multiple_choice(i, answer="ABCD"[i % 4]) for i in range(8)
    ]
    questions.append(short_answer(8, answer="Paris"))
    questions.append(short_answer(9, answer="Photosynthesis"))
    return {"questions": questions}


def correct_answers() -> Dict[int, str]:
    payload = quiz_payload()
    return {i: item["answer"] for i, item in enumerate(payload["questions"])}


def quiz_set() -> QuestionSet:
    return QuestionSet.from_dict(copy.deepcopy(quiz_payload()))
