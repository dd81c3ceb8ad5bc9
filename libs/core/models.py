from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[^,;]+=[^,;]*)*;base64,", re.IGNORECASE)

QUESTION_SCORE_MIN = 0
QUESTION_SCORE_MAX = 10
CRITERION_SCORE_MIN = 1
CRITERION_SCORE_MAX = 5


class QuestionType(str, Enum):
    technical = "Technical"
    scenario = "Scenario"
    behavioral = "Behavioral"


class QuestionCategory(str, Enum):
    technical = "Technical"
    non_technical = "Non-Technical"


class QuestionDifficulty(str, Enum):
    naive = "Naive"
    beginner = "Beginner"
    intermediate = "Intermediate"
    expert = "Expert"
    master = "Master"


class Importance(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class KitVariant(str, Enum):
    standard = "standard"
    technical = "technical"
    screening = "screening"


class ResumeAttachment(BaseModel):
    data_uri: str
    file_name: Optional[str] = None

    @property
    def mime_type(self) -> Optional[str]:
        match = _DATA_URI_RE.match(self.data_uri or "")
        if match is None:
            return None
        return match.group("mime").lower()

    @property
    def display_name(self) -> str:
        if self.file_name and self.file_name.strip():
            return self.file_name.strip()
        return "resume"


class GenerationRequest(BaseModel):
    job_description: str = ""
    profile_link: str = ""
    resume: Optional[ResumeAttachment] = None
    experience_context: Optional[str] = None


class Question(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    question: str
    model_answer: str
    interviewer_note: Optional[str] = None
    type: QuestionType = QuestionType.behavioral
    category: QuestionCategory = QuestionCategory.non_technical
    difficulty: QuestionDifficulty = QuestionDifficulty.intermediate
    estimated_time_minutes: int = Field(default=6, gt=0)


class Competency(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    importance: Importance = Importance.medium
    questions: List[Question] = Field(default_factory=list)


class RubricCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    weight: float = Field(ge=0.0, le=1.0)


class InterviewKit(BaseModel):
    model_config = ConfigDict(frozen=True)

    competencies: List[Competency] = Field(default_factory=list)
    scoring_rubric: List[RubricCriterion] = Field(default_factory=list)

    def entity_ids(self) -> List[str]:
        ids: List[str] = []
        for competency in self.competencies:
            ids.append(competency.id)
            ids.extend(question.id for question in competency.questions)
        ids.extend(criterion.id for criterion in self.scoring_rubric)
        return ids

    def question_count(self) -> int:
        return sum(len(competency.questions) for competency in self.competencies)

    def total_estimated_minutes(self) -> int:
        return sum(
            question.estimated_time_minutes
            for competency in self.competencies
            for question in competency.questions
        )


class JobDescriptionSummary(BaseModel):
    summary: str


class ResumeSkills(BaseModel):
    technical_skills: List[str] = Field(default_factory=list)


class ProjectSummary(BaseModel):
    project_name: str
    summary: str
    key_skills: str = ""


class AnswerPoint(BaseModel):
    title: str
    body: str = ""
    points: Optional[int] = None


class InterviewSession(BaseModel):
    kit: InterviewKit
    question_scores: Dict[str, int] = Field(default_factory=dict)
    question_notes: Dict[str, str] = Field(default_factory=dict)
    criterion_scores: Dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_scores_against_kit(self) -> "InterviewSession":
        question_ids = {
            question.id for competency in self.kit.competencies for question in competency.questions
        }
        criterion_ids = {criterion.id for criterion in self.kit.scoring_rubric}
        for question_id in list(self.question_scores) + list(self.question_notes):
            if question_id not in question_ids:
                raise ValueError(f"unknown_question_id:{question_id}")
        for criterion_id in self.criterion_scores:
            if criterion_id not in criterion_ids:
                raise ValueError(f"unknown_criterion_id:{criterion_id}")
        if any(
            not QUESTION_SCORE_MIN <= score <= QUESTION_SCORE_MAX
            for score in self.question_scores.values()
        ):
            raise ValueError("question_score_out_of_range")
        if any(
            not CRITERION_SCORE_MIN <= score <= CRITERION_SCORE_MAX
            for score in self.criterion_scores.values()
        ):
            raise ValueError("criterion_score_out_of_range")
        return self
