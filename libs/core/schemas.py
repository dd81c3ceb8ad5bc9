from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Type

from pydantic import BaseModel

from . import models

SCHEMA_TARGETS: Dict[str, Type[BaseModel]] = {
    "GenerationRequest": models.GenerationRequest,
    "ResumeAttachment": models.ResumeAttachment,
    "Question": models.Question,
    "Competency": models.Competency,
    "RubricCriterion": models.RubricCriterion,
    "InterviewKit": models.InterviewKit,
    "JobDescriptionSummary": models.JobDescriptionSummary,
    "ResumeSkills": models.ResumeSkills,
    "ProjectSummary": models.ProjectSummary,
    "InterviewSession": models.InterviewSession,
}


def export_schemas(target_dir: Path) -> None:
    target_dir.mkdir(parents=True, exist_ok=True)
    for name, model in SCHEMA_TARGETS.items():
        schema_path = target_dir / f"{name}.json"
        schema_path.write_text(json.dumps(model.model_json_schema(), indent=2))


def _enum_values(enum_type: Any) -> list[str]:
    return [member.value for member in enum_type]


def _object(properties: Dict[str, Any], required: list[str]) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


def interview_kit_output_schema(*, include_ids: bool = False) -> Dict[str, Any]:
    """JSON Schema the model is asked to satisfy for a kit.

    Ids are only part of the contract when an existing kit is being refined.
    """
    question_properties: Dict[str, Any] = {
        "question": {"type": "string"},
        "model_answer": {"type": "string"},
        "interviewer_note": {"type": "string"},
        "type": {"type": "string", "enum": _enum_values(models.QuestionType)},
        "category": {"type": "string", "enum": _enum_values(models.QuestionCategory)},
        "difficulty": {"type": "string", "enum": _enum_values(models.QuestionDifficulty)},
        "estimated_time_minutes": {"type": "integer", "minimum": 1},
    }
    competency_properties: Dict[str, Any] = {
        "name": {"type": "string"},
        "importance": {"type": "string", "enum": _enum_values(models.Importance)},
    }
    criterion_properties: Dict[str, Any] = {
        "name": {"type": "string"},
        "weight": {"type": "number", "minimum": 0, "maximum": 1},
    }
    id_required: list[str] = []
    if include_ids:
        for properties in (question_properties, competency_properties, criterion_properties):
            properties["id"] = {"type": "string"}
        id_required = ["id"]

    question = _object(
        question_properties,
        id_required
        + [
            "question",
            "model_answer",
            "interviewer_note",
            "type",
            "category",
            "difficulty",
            "estimated_time_minutes",
        ],
    )
    competency_properties["questions"] = {"type": "array", "items": question}
    competency = _object(competency_properties, id_required + ["name", "importance", "questions"])
    criterion = _object(criterion_properties, id_required + ["name", "weight"])
    return _object(
        {
            "competencies": {"type": "array", "items": competency},
            "scoring_rubric": {"type": "array", "items": criterion},
        },
        ["competencies", "scoring_rubric"],
    )


def job_description_summary_output_schema() -> Dict[str, Any]:
    return _object({"summary": {"type": "string"}}, ["summary"])


def resume_skills_output_schema() -> Dict[str, Any]:
    return _object(
        {"technical_skills": {"type": "array", "items": {"type": "string"}}},
        ["technical_skills"],
    )


def potential_projects_output_schema() -> Dict[str, Any]:
    project = _object(
        {
            "project_name": {"type": "string"},
            "summary": {"type": "string"},
            "key_skills": {"type": "string"},
        },
        ["project_name", "summary", "key_skills"],
    )
    return _object({"projects": {"type": "array", "items": project}}, ["projects"])
