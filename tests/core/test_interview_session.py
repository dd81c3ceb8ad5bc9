from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[2]
KIT_SERVICE_ROOT = ROOT / "services" / "interview_kit"
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(KIT_SERVICE_ROOT))
from kit_core.errors import InvalidRequestError  # type: ignore  # noqa: E402
from kit_core.session import (  # type: ignore  # noqa: E402
    competency_scores,
    record_criterion_score,
    record_question_note,
    record_question_score,
    start_session,
    summarize_session,
    weighted_rubric_score,
)
from libs.core.models import (  # noqa: E402
    Competency,
    InterviewKit,
    InterviewSession,
    Question,
    RubricCriterion,
)


def _kit() -> InterviewKit:
    def question(question_id: str, minutes: int) -> Question:
        return Question(
            id=question_id,
            question=f"Question {question_id}",
            model_answer="Guide.",
            estimated_time_minutes=minutes,
        )

    return InterviewKit(
        competencies=[
            Competency(id="c-1", name="Pipelines", questions=[question("q-1", 6), question("q-2", 8)]),
            Competency(id="c-2", name="Leadership", questions=[question("q-3", 4)]),
        ],
        scoring_rubric=[
            RubricCriterion(id="r-1", name="Spark tuning", weight=0.75),
            RubricCriterion(id="r-2", name="Stakeholder communication", weight=0.25),
        ],
    )


def test_scores_roll_up_per_competency_and_rubric() -> None:
    session = start_session(_kit())
    session = record_question_score(session, "q-1", 8)
    session = record_question_score(session, "q-2", 5)
    session = record_criterion_score(session, "r-1", 5)
    session = record_criterion_score(session, "r-2", 1)

    assert competency_scores(session) == {"c-1": 6.5}
    assert weighted_rubric_score(session) == 75.0
    summary = summarize_session(session)
    assert summary == {
        "questions_total": 3,
        "questions_scored": 2,
        "estimated_minutes": 18,
        "competency_scores": {"c-1": 6.5},
        "rubric_score": 75.0,
    }


def test_rubric_score_only_counts_scored_criteria() -> None:
    session = start_session(_kit())
    assert weighted_rubric_score(session) is None
    session = record_criterion_score(session, "r-2", 3)
    assert weighted_rubric_score(session) == 50.0


def test_recording_returns_a_new_session() -> None:
    session = start_session(_kit())
    updated = record_question_score(session, "q-1", 7)
    assert session.question_scores == {}
    assert updated.question_scores == {"q-1": 7}


def test_notes_are_trimmed_and_cleared() -> None:
    session = record_question_note(start_session(_kit()), "q-3", "  strong ownership  ")
    assert session.question_notes == {"q-3": "strong ownership"}
    session = record_question_note(session, "q-3", " ")
    assert session.question_notes == {}


@pytest.mark.parametrize(
    "action, detail",
    [
        (lambda s: record_question_score(s, "q-9", 5), "unknown_question_id:q-9"),
        (lambda s: record_question_score(s, "q-1", 11), "question_score_out_of_range"),
        (lambda s: record_question_note(s, "r-1", "x"), "unknown_question_id:r-1"),
        (lambda s: record_criterion_score(s, "q-1", 3), "unknown_criterion_id:q-1"),
        (lambda s: record_criterion_score(s, "r-1", 0), "criterion_score_out_of_range"),
    ],
)
def test_invalid_recordings_are_rejected(action, detail) -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        action(start_session(_kit()))
    assert exc_info.value.detail == detail


@pytest.mark.parametrize(
    "fields, detail",
    [
        ({"question_scores": {"nope": 5}}, "unknown_question_id:nope"),
        ({"question_notes": {"nope": "x"}}, "unknown_question_id:nope"),
        ({"criterion_scores": {"ghost": 3}}, "unknown_criterion_id:ghost"),
        ({"question_scores": {"q-1": -50}}, "question_score_out_of_range"),
        ({"criterion_scores": {"r-1": 99}}, "criterion_score_out_of_range"),
    ],
)
def test_session_built_from_raw_scores_is_checked_against_the_kit(fields, detail) -> None:
    with pytest.raises(ValidationError) as exc_info:
        InterviewSession(kit=_kit(), **fields)
    assert detail in str(exc_info.value)


def test_session_built_from_valid_raw_scores_summarizes_within_bounds() -> None:
    session = InterviewSession(
        kit=_kit(),
        question_scores={"q-1": 10, "q-3": 0},
        criterion_scores={"r-1": 5, "r-2": 5},
    )
    summary = summarize_session(session)
    assert summary["questions_scored"] == 2
    assert summary["rubric_score"] == 100.0
