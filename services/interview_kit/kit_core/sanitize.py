from __future__ import annotations

import math
import re
import uuid
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from libs.core.models import (
    Competency,
    Importance,
    InterviewKit,
    Question,
    QuestionCategory,
    QuestionDifficulty,
    QuestionType,
    RubricCriterion,
)

from .normalize import clamp_weight

DEFAULT_COMPETENCY_NAME = "Unnamed Competency"
DEFAULT_QUESTION_TEXT = "Missing question text"
DEFAULT_MODEL_ANSWER = "Missing model answer."
DEFAULT_INTERVIEWER_NOTE = (
    "Assess candidate based on their response clarity, depth, and relevance to the role."
)
DEFAULT_CRITERION_NAME = "Unnamed Criterion"
FLAT_QUESTIONS_COMPETENCY_NAME = "General Technical Competency"

TIME_BY_DIFFICULTY: Dict[QuestionDifficulty, int] = {
    QuestionDifficulty.naive: 2,
    QuestionDifficulty.beginner: 4,
    QuestionDifficulty.intermediate: 6,
    QuestionDifficulty.expert: 8,
    QuestionDifficulty.master: 10,
}

_KIT_ALIASES = {
    "competencies": ("competencies",),
    "scoring_rubric": ("scoring_rubric", "scoringRubric", "rubric"),
}
_QUESTION_ALIASES = {
    "question": ("question", "text"),
    "model_answer": (
        "model_answer",
        "modelAnswer",
        "model_answer_guide",
        "modelAnswerGuide",
    ),
    "interviewer_note": ("interviewer_note", "interviewerNote"),
    "estimated_time_minutes": ("estimated_time_minutes", "estimatedTimeMinutes"),
}

_EnumT = TypeVar("_EnumT", bound=Enum)


class IdStamper:
    """Hands out entity ids that are unique within one kit.

    Without known ids every entity gets a fresh uuid. With known ids (a kit
    being customized) an incoming id is kept when it belongs to that kit and
    has not been handed out already.
    """

    def __init__(self, known_ids: Optional[Iterable[str]] = None) -> None:
        self._known = set(known_ids) if known_ids is not None else None
        self._issued: set[str] = set()

    def stamp(self, candidate: Any) -> str:
        if self._known is not None and isinstance(candidate, str):
            candidate = candidate.strip()
            if candidate in self._known and candidate not in self._issued:
                self._issued.add(candidate)
                return candidate
        fresh = str(uuid.uuid4())
        self._issued.add(fresh)
        return fresh


def sanitize_kit(raw: Any, *, known_ids: Optional[Iterable[str]] = None) -> InterviewKit:
    payload = raw if isinstance(raw, dict) else {}
    stamper = IdStamper(known_ids)

    competencies_raw = _as_list(_pick(payload, _KIT_ALIASES["competencies"]))
    if not competencies_raw and isinstance(payload.get("questions"), list):
        competencies_raw = [
            {"name": FLAT_QUESTIONS_COMPETENCY_NAME, "questions": payload["questions"]}
        ]
    competencies = [sanitize_competency(item, stamper) for item in competencies_raw]
    rubric = [
        sanitize_criterion(item, stamper)
        for item in _as_list(_pick(payload, _KIT_ALIASES["scoring_rubric"]))
    ]
    return InterviewKit(competencies=competencies, scoring_rubric=rubric)


def sanitize_competency(raw: Any, stamper: IdStamper) -> Competency:
    item = raw if isinstance(raw, dict) else {}
    competency_id = stamper.stamp(item.get("id"))
    return Competency(
        id=competency_id,
        name=_text(item.get("name"), DEFAULT_COMPETENCY_NAME),
        importance=_coerce_enum(item.get("importance"), Importance, Importance.medium),
        questions=[sanitize_question(q, stamper) for q in _as_list(item.get("questions"))],
    )


def sanitize_question(raw: Any, stamper: IdStamper) -> Question:
    item = raw if isinstance(raw, dict) else {}
    question_type = _coerce_enum(item.get("type"), QuestionType, QuestionType.behavioral)
    derived_category = (
        QuestionCategory.technical
        if question_type is QuestionType.technical
        else QuestionCategory.non_technical
    )
    difficulty = _coerce_enum(
        item.get("difficulty"), QuestionDifficulty, QuestionDifficulty.intermediate
    )
    return Question(
        id=stamper.stamp(item.get("id")),
        question=_text(_pick(item, _QUESTION_ALIASES["question"]), DEFAULT_QUESTION_TEXT),
        model_answer=_text(_pick(item, _QUESTION_ALIASES["model_answer"]), DEFAULT_MODEL_ANSWER),
        interviewer_note=_text(
            _pick(item, _QUESTION_ALIASES["interviewer_note"]), DEFAULT_INTERVIEWER_NOTE
        ),
        type=question_type,
        category=_coerce_enum(item.get("category"), QuestionCategory, derived_category),
        difficulty=difficulty,
        estimated_time_minutes=_estimated_minutes(
            _pick(item, _QUESTION_ALIASES["estimated_time_minutes"]), difficulty
        ),
    )


def sanitize_criterion(raw: Any, stamper: IdStamper) -> RubricCriterion:
    item = raw if isinstance(raw, dict) else {}
    return RubricCriterion(
        id=stamper.stamp(item.get("id")),
        name=_text(item.get("name"), DEFAULT_CRITERION_NAME),
        weight=clamp_weight(item.get("weight")),
    )


def _pick(item: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _enum_key(value: str) -> str:
    return re.sub(r"[\s_\-]+", "", value).lower()


def _coerce_enum(value: Any, enum_type: Type[_EnumT], default: _EnumT) -> _EnumT:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    wanted = _enum_key(value)
    for member in enum_type:
        if _enum_key(str(member.value)) == wanted:
            return member
    return default


def _estimated_minutes(value: Any, difficulty: QuestionDifficulty) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        if math.isfinite(number) and number > 0:
            return max(1, int(round(number)))
    return TIME_BY_DIFFICULTY[difficulty]
