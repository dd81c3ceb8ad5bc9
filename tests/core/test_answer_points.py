from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
KIT_SERVICE_ROOT = ROOT / "services" / "interview_kit"
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(KIT_SERVICE_ROOT))
from kit_core.answer_points import split_model_answer  # type: ignore  # noqa: E402


def test_bold_headings_with_point_values() -> None:
    answer = (
        "**Concept Explanation (approx. 3 points)**\n"
        "- What: a token bucket refills at a fixed rate.\n"
        "- Why: it smooths bursts.\n\n"
        "**Trade-offs (approx. 2 points)**\n"
        "Per-node buckets drift; a shared store adds latency.\n\n"
        "Note: reward concrete production incidents over textbook answers."
    )
    points = split_model_answer(answer)
    assert [p.title for p in points] == ["Concept Explanation", "Trade-offs", "Note"]
    assert [p.points for p in points] == [3, 2, None]
    assert points[0].body.startswith("- What:")
    assert points[2].body == "reward concrete production incidents over textbook answers."


def test_bold_note_heading_is_kept_as_note() -> None:
    answer = "**Approach**\nExplain the plan.\n\n**Note:**\nLook for metrics."
    points = split_model_answer(answer)
    assert [p.title for p in points] == ["Approach", "Note"]
    assert points[1].body == "Look for metrics."


def test_preamble_before_first_heading_becomes_overview() -> None:
    points = split_model_answer("Short framing.\n\n**Details (approx. 4 points)**\nDepth.")
    assert points[0].title == "Overview"
    assert points[0].body == "Short framing."
    assert points[1].points == 4


def test_triple_newline_points_use_first_line_as_title() -> None:
    answer = (
        "INNER JOIN Definition\nReturns matching rows from both tables.\n\n\n"
        "LEFT JOIN Definition\nReturns every row from the left table."
    )
    points = split_model_answer(answer)
    assert [p.title for p in points] == ["INNER JOIN Definition", "LEFT JOIN Definition"]
    assert points[1].body == "Returns every row from the left table."


def test_paragraphs_are_used_when_there_are_no_triple_newlines() -> None:
    points = split_model_answer("Point one\nBody one.\n\nNote: check examples.")
    assert [p.title for p in points] == ["Point one", "Note"]
    assert points[1].body == "check examples."


def test_empty_answer_has_no_points() -> None:
    assert split_model_answer("") == []
    assert split_model_answer(None) == []
    assert split_model_answer("   ") == []
