from __future__ import annotations

from typing import Any, Dict, Optional

from libs.core.models import (
    CRITERION_SCORE_MAX,
    CRITERION_SCORE_MIN,
    QUESTION_SCORE_MAX,
    QUESTION_SCORE_MIN,
    InterviewKit,
    InterviewSession,
)

from .errors import InvalidRequestError


def start_session(kit: InterviewKit) -> InterviewSession:
    return InterviewSession(kit=kit)


def _question_ids(kit: InterviewKit) -> set[str]:
    return {question.id for competency in kit.competencies for question in competency.questions}


def _criterion_ids(kit: InterviewKit) -> set[str]:
    return {criterion.id for criterion in kit.scoring_rubric}


def record_question_score(session: InterviewSession, question_id: str, score: int) -> InterviewSession:
    if question_id not in _question_ids(session.kit):
        raise InvalidRequestError(f"unknown_question_id:{question_id}")
    if not QUESTION_SCORE_MIN <= score <= QUESTION_SCORE_MAX:
        raise InvalidRequestError("question_score_out_of_range")
    scores = dict(session.question_scores)
    scores[question_id] = score
    return session.model_copy(update={"question_scores": scores})


def record_question_note(session: InterviewSession, question_id: str, note: str) -> InterviewSession:
    if question_id not in _question_ids(session.kit):
        raise InvalidRequestError(f"unknown_question_id:{question_id}")
    notes = dict(session.question_notes)
    if note.strip():
        notes[question_id] = note.strip()
    else:
        notes.pop(question_id, None)
    return session.model_copy(update={"question_notes": notes})


def record_criterion_score(session: InterviewSession, criterion_id: str, score: int) -> InterviewSession:
    if criterion_id not in _criterion_ids(session.kit):
        raise InvalidRequestError(f"unknown_criterion_id:{criterion_id}")
    if not CRITERION_SCORE_MIN <= score <= CRITERION_SCORE_MAX:
        raise InvalidRequestError("criterion_score_out_of_range")
    scores = dict(session.criterion_scores)
    scores[criterion_id] = score
    return session.model_copy(update={"criterion_scores": scores})


def weighted_rubric_score(session: InterviewSession) -> Optional[float]:
    """Rubric score as a percentage, over the criteria scored so far."""
    total_weight = 0.0
    weighted = 0.0
    for criterion in session.kit.scoring_rubric:
        score = session.criterion_scores.get(criterion.id)
        if score is None:
            continue
        fraction = (score - CRITERION_SCORE_MIN) / (CRITERION_SCORE_MAX - CRITERION_SCORE_MIN)
        weighted += criterion.weight * fraction
        total_weight += criterion.weight
    if total_weight <= 0:
        return None
    return round(100.0 * weighted / total_weight, 1)


def competency_scores(session: InterviewSession) -> Dict[str, float]:
    averages: Dict[str, float] = {}
    for competency in session.kit.competencies:
        scored = [
            session.question_scores[question.id]
            for question in competency.questions
            if question.id in session.question_scores
        ]
        if scored:
            averages[competency.id] = round(sum(scored) / len(scored), 2)
    return averages


def summarize_session(session: InterviewSession) -> Dict[str, Any]:
    return {
        "questions_total": session.kit.question_count(),
        "questions_scored": len(session.question_scores),
        "estimated_minutes": session.kit.total_estimated_minutes(),
        "competency_scores": competency_scores(session),
        "rubric_score": weighted_rubric_score(session),
    }
