from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
KIT_SERVICE_ROOT = ROOT / "services" / "interview_kit"
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(KIT_SERVICE_ROOT))
from kit_core.errors import GenerationError, InvalidRequestError  # type: ignore  # noqa: E402
from kit_core.service import (  # type: ignore  # noqa: E402
    create_provider_from_env,
    customize_interview_kit,
    extract_resume_skills,
    generate_interview_kit,
    identify_potential_projects,
    summarize_job_description,
)
from libs.core.llm_provider import MockLLMProvider, OpenAIProvider  # noqa: E402
from libs.core.models import (  # noqa: E402
    Competency,
    GenerationRequest,
    InterviewKit,
    Question,
    ResumeAttachment,
    RubricCriterion,
)


class _FakeLLMResponse:
    def __init__(self, content: str) -> None:
        self.content = content


class _FakeProvider:
    def __init__(self, outputs: list[object]) -> None:
        self._outputs = list(outputs)
        self.prompts: list[str] = []
        self.calls: list[dict] = []

    def generate(self, _prompt: str, **kwargs) -> _FakeLLMResponse:
        self.prompts.append(_prompt)
        self.calls.append(kwargs)
        if not self._outputs:
            raise AssertionError("No fake outputs left")
        output = self._outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        if isinstance(output, str):
            return _FakeLLMResponse(output)
        return _FakeLLMResponse(json.dumps(output))


def _request(**overrides) -> GenerationRequest:
    fields = {
        "job_description": "Staff data engineer. Spark, Airflow, dbt, stakeholder management.",
        "profile_link": "https://www.linkedin.com/in/someone",
    }
    fields.update(overrides)
    return GenerationRequest(**fields)


def _model_kit() -> dict:
    return {
        "competencies": [
            {
                "name": "Data Pipelines",
                "importance": "High",
                "questions": [
                    {
                        "question": "Tell me about yourself.",
                        "model_answer": "**Background (approx. 3 points)**\nSpark at scale.",
                        "interviewer_note": "Sets context.",
                        "type": "Behavioral",
                        "category": "Non-Technical",
                        "difficulty": "Naive",
                        "estimated_time_minutes": 3,
                    },
                    {
                        "question": "How do you backfill a partitioned table safely?",
                        "model_answer": "Idempotent writes.",
                        "interviewer_note": "Operational maturity.",
                        "type": "Technical",
                        "category": "Technical",
                        "difficulty": "Expert",
                        "estimated_time_minutes": 8,
                    },
                ],
            }
        ],
        "scoring_rubric": [
            {"name": "Spark performance tuning", "weight": 0.6},
            {"name": "Airflow operations", "weight": 0.6},
            {"name": "Stakeholder communication on data contracts", "weight": 0.3},
        ],
    }


def _existing_kit() -> InterviewKit:
    return InterviewKit(
        competencies=[
            Competency(
                id="comp-1",
                name="Data Pipelines",
                questions=[
                    Question(
                        id="q-1",
                        question="How do you backfill safely?",
                        model_answer="Idempotent writes.",
                    )
                ],
            )
        ],
        scoring_rubric=[
            RubricCriterion(id="crit-1", name="Airflow operations", weight=0.5),
            RubricCriterion(id="crit-2", name="Spark tuning", weight=0.5),
        ],
    )


def test_generate_builds_a_normalized_kit() -> None:
    provider = _FakeProvider([_model_kit()])
    kit = generate_interview_kit(_request(), provider)

    assert len(provider.prompts) == 1
    assert "Staff data engineer" in provider.prompts[0]
    assert provider.calls[0]["schema_name"] == "interview_kit"
    assert provider.calls[0]["attachments"] == []
    assert kit.question_count() == 2
    weights = [criterion.weight for criterion in kit.scoring_rubric]
    assert weights == [0.4, 0.4, 0.2]
    assert len(set(kit.entity_ids())) == 6


def test_generate_sends_resume_as_attachment() -> None:
    provider = _FakeProvider([_model_kit()])
    resume = ResumeAttachment(data_uri="data:application/pdf;base64,JVBERi0=", file_name="cv.pdf")
    generate_interview_kit(_request(resume=resume), provider)

    attachments = provider.calls[0]["attachments"]
    assert len(attachments) == 1
    assert attachments[0].file_name == "cv.pdf"
    assert attachments[0].data_uri == resume.data_uri
    assert "Candidate Resume (cv.pdf)" in provider.prompts[0]


def test_generate_uses_the_requested_variant() -> None:
    provider = _FakeProvider([_model_kit()])
    generate_interview_kit(_request(), provider, variant="technical")
    assert "exactly 30 questions" in provider.prompts[0]


def test_generate_rejects_unknown_variant_before_calling_the_model() -> None:
    provider = _FakeProvider([_model_kit()])
    with pytest.raises(InvalidRequestError) as exc_info:
        generate_interview_kit(_request(), provider, variant="panel")
    assert exc_info.value.detail == "unknown_kit_variant:panel"
    assert provider.prompts == []


@pytest.mark.parametrize(
    "overrides, detail",
    [
        ({"job_description": " "}, "job_description_missing"),
        ({"profile_link": ""}, "profile_link_missing"),
    ],
)
def test_generate_validates_before_calling_the_model(overrides, detail) -> None:
    provider = _FakeProvider([_model_kit()])
    with pytest.raises(InvalidRequestError) as exc_info:
        generate_interview_kit(_request(**overrides), provider)
    assert exc_info.value.detail == detail
    assert provider.prompts == []


@pytest.mark.parametrize("output", ["", "I cannot help with that.", "[1, 2, 3]"])
def test_generate_reports_no_output_when_the_model_returns_nothing_usable(output) -> None:
    provider = _FakeProvider([output])
    with pytest.raises(GenerationError) as exc_info:
        generate_interview_kit(_request(), provider)
    assert exc_info.value.detail == "model_produced_no_output"
    assert exc_info.value.status_code == 502


@pytest.mark.parametrize(
    "output",
    ["{}", '{"error": "x"}', 'Sorry {"error": "refused"}', '{"competencies": [], "questions": []}'],
)
def test_generate_rejects_a_reply_without_kit_content(output) -> None:
    provider = _FakeProvider([output])
    with pytest.raises(GenerationError) as exc_info:
        generate_interview_kit(_request(), provider)
    assert exc_info.value.detail == "model_produced_no_output"


@pytest.mark.parametrize("output", ["{}", '{"error": "x"}'])
def test_customize_rejects_a_reply_without_kit_content(output) -> None:
    provider = _FakeProvider([output])
    with pytest.raises(GenerationError):
        customize_interview_kit(_request(), _existing_kit(), provider)


def test_generate_accepts_a_flat_question_list() -> None:
    provider = _FakeProvider([{"questions": [{"question": "What is a LEFT JOIN?"}]}])
    kit = generate_interview_kit(_request(), provider, variant="technical")
    assert kit.question_count() == 1


def test_generate_reports_no_output_when_the_provider_fails() -> None:
    provider = _FakeProvider([RuntimeError("upstream timeout")])
    with pytest.raises(GenerationError) as exc_info:
        generate_interview_kit(_request(), provider)
    assert exc_info.value.detail == "model_produced_no_output"


def test_generate_does_not_retry() -> None:
    provider = _FakeProvider(["", _model_kit()])
    with pytest.raises(GenerationError):
        generate_interview_kit(_request(), provider)
    assert len(provider.prompts) == 1


def test_generate_is_not_idempotent() -> None:
    provider = _FakeProvider([_model_kit(), _model_kit()])
    first = generate_interview_kit(_request(), provider)
    second = generate_interview_kit(_request(), provider)
    assert set(first.entity_ids()).isdisjoint(second.entity_ids())


def test_generate_repairs_a_partial_kit() -> None:
    provider = _FakeProvider(['```json\n{"competencies": [{"questions": [{}]}]}\n```'])
    kit = generate_interview_kit(_request(), provider)
    assert kit.question_count() == 1
    assert kit.scoring_rubric == []


def test_customize_preserves_ids_and_passes_the_kit_to_the_model() -> None:
    refined = {
        "competencies": [
            {
                "id": "comp-1",
                "name": "Data Pipelines",
                "importance": "High",
                "questions": [
                    {
                        "id": "q-1",
                        "question": "Walk me through a backfill you ran on a partitioned table.",
                        "model_answer": "Idempotent writes, partition overwrite.",
                        "type": "Technical",
                        "difficulty": "Expert",
                    },
                    {"question": "New probe on data contracts."},
                ],
            }
        ],
        "scoring_rubric": [
            {"id": "crit-1", "name": "Airflow operations", "weight": 0.7},
            {"id": "crit-2", "name": "Spark tuning", "weight": 0.7},
        ],
    }
    provider = _FakeProvider([refined])
    kit = customize_interview_kit(_request(), _existing_kit(), provider)

    assert '"id": "q-1"' in provider.prompts[0]
    assert provider.calls[0]["response_schema"]["properties"]["scoring_rubric"]["items"][
        "required"
    ][0] == "id"
    assert kit.competencies[0].id == "comp-1"
    questions = kit.competencies[0].questions
    assert questions[0].id == "q-1"
    assert questions[0].category.value == "Technical"
    assert questions[1].id not in {"comp-1", "q-1", "crit-1", "crit-2"}
    assert [c.id for c in kit.scoring_rubric] == ["crit-1", "crit-2"]
    assert [c.weight for c in kit.scoring_rubric] == [0.5, 0.5]


def test_customize_does_not_trust_ids_outside_the_kit() -> None:
    refined = {
        "competencies": [{"id": "made-up", "name": "Data Pipelines", "questions": []}],
        "scoring_rubric": [],
    }
    kit = customize_interview_kit(_request(), _existing_kit(), _FakeProvider([refined]))
    assert kit.competencies[0].id != "made-up"


def test_customize_validates_before_calling_the_model() -> None:
    provider = _FakeProvider([])
    with pytest.raises(InvalidRequestError):
        customize_interview_kit(_request(job_description=""), _existing_kit(), provider)
    assert provider.prompts == []


def test_summarize_job_description() -> None:
    provider = _FakeProvider([{"summary": "  Spark-heavy staff role.  "}])
    summary = summarize_job_description("Staff data engineer.", provider)
    assert summary.summary == "Spark-heavy staff role."
    assert provider.calls[0]["schema_name"] == "job_description_summary"


def test_summarize_job_description_requires_text() -> None:
    provider = _FakeProvider([])
    with pytest.raises(InvalidRequestError):
        summarize_job_description("", provider)
    with pytest.raises(GenerationError):
        summarize_job_description("Staff data engineer.", _FakeProvider([{"summary": ""}]))


def test_extract_resume_skills_dedupes() -> None:
    provider = _FakeProvider([{"technical_skills": ["Spark", "spark", " Airflow ", 3, ""]}])
    resume = ResumeAttachment(data_uri="data:application/pdf;base64,JVBERi0=")
    skills = extract_resume_skills(resume, provider)
    assert skills.technical_skills == ["Spark", "Airflow"]
    assert provider.calls[0]["attachments"][0].file_name == "resume"


def test_extract_resume_skills_requires_a_resume() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        extract_resume_skills(None, _FakeProvider([]))
    assert exc_info.value.detail == "resume_missing"


def test_identify_potential_projects() -> None:
    provider = _FakeProvider(
        [
            {
                "projects": [
                    {"project_name": "Ingest rewrite", "summary": "Cut latency.", "key_skills": "Spark"},
                    {"project_name": "Lineage", "summary": "dbt docs.", "key_skills": ["dbt", "SQL"]},
                    {"summary": "no name"},
                    "junk",
                ]
            }
        ]
    )
    projects = identify_potential_projects("Staff data engineer.", "Led the ingest rewrite.", provider)
    assert [p.project_name for p in projects] == ["Ingest rewrite", "Lineage"]
    assert projects[1].key_skills == "dbt, SQL"


def test_identify_potential_projects_requires_resume_text() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        identify_potential_projects("Staff data engineer.", " ", _FakeProvider([]))
    assert exc_info.value.detail == "candidate_resume_missing"


def test_create_provider_from_env_defaults_to_mock(monkeypatch) -> None:
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    monkeypatch.setenv("MOCK_LLM_RESPONSE", '{"summary": "mocked"}')
    provider = create_provider_from_env()
    assert isinstance(provider, MockLLMProvider)
    assert summarize_job_description("Any role.", provider).summary == "mocked"


def test_create_provider_from_env_prefers_kit_specific_settings(monkeypatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    monkeypatch.setenv("OPENAI_TIMEOUT_S", "30")
    monkeypatch.setenv("KIT_OPENAI_TIMEOUT_S", "90")
    monkeypatch.setenv("OPENAI_MAX_RETRIES", "2")
    monkeypatch.delenv("KIT_OPENAI_MAX_RETRIES", raising=False)
    provider = create_provider_from_env()
    assert isinstance(provider, OpenAIProvider)
    assert provider.timeout_s == 90.0
    assert provider.max_retries == 2
