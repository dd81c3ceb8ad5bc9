from __future__ import annotations

import os
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from libs.core import llm_provider, logging as core_logging, prompts, schemas
from libs.core.llm_provider import FileAttachment
from libs.core.models import (
    GenerationRequest,
    InterviewKit,
    JobDescriptionSummary,
    KitVariant,
    ProjectSummary,
    ResumeAttachment,
    ResumeSkills,
)

from .context import (
    build_attachments,
    build_prompt_context,
    collect_known_ids,
    is_missing_value,
    kit_to_prompt_payload,
)
from .errors import GenerationError, InvalidRequestError
from .normalize import normalize_rubric
from .sanitize import sanitize_kit
from .validation import (
    ensure_generation_request,
    ensure_resume_attachment,
    extract_json,
    parse_json_object,
    schema_issues,
)

_DEFAULT_KIT_OPENAI_TIMEOUT_S = 60.0
_DEFAULT_KIT_OPENAI_MAX_RETRIES = 0
LOGGER = core_logging.get_logger("interview_kit")


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_optional_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _resolve_float(primary: str | None, fallback: str | None, default: float) -> float:
    parsed_primary = _parse_optional_float(primary)
    if parsed_primary is not None:
        return parsed_primary
    parsed_fallback = _parse_optional_float(fallback)
    if parsed_fallback is not None:
        return parsed_fallback
    return default


def _resolve_int(primary: str | None, fallback: str | None, default: int) -> int:
    parsed_primary = _parse_optional_int(primary)
    if parsed_primary is not None:
        return parsed_primary
    parsed_fallback = _parse_optional_int(fallback)
    if parsed_fallback is not None:
        return parsed_fallback
    return default


def _provider_model(provider: Any) -> str:
    model = getattr(provider, "model", None)
    if isinstance(model, str) and model.strip():
        return model.strip()
    return ""


def create_provider_from_env() -> Any:
    return llm_provider.resolve_provider(
        os.getenv("LLM_PROVIDER", "mock"),
        api_key=os.getenv("OPENAI_API_KEY", ""),
        model=os.getenv("OPENAI_MODEL", ""),
        base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com"),
        temperature=_parse_optional_float(os.getenv("OPENAI_TEMPERATURE")),
        max_output_tokens=_parse_optional_int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS")),
        timeout_s=_resolve_float(
            os.getenv("KIT_OPENAI_TIMEOUT_S"),
            os.getenv("OPENAI_TIMEOUT_S"),
            _DEFAULT_KIT_OPENAI_TIMEOUT_S,
        ),
        max_retries=_resolve_int(
            os.getenv("KIT_OPENAI_MAX_RETRIES"),
            os.getenv("OPENAI_MAX_RETRIES"),
            _DEFAULT_KIT_OPENAI_MAX_RETRIES,
        ),
        mock_content=os.getenv("MOCK_LLM_RESPONSE") or None,
    )


def resolve_variant(variant: KitVariant | str | None) -> KitVariant:
    if isinstance(variant, KitVariant):
        return variant
    name = (variant or KitVariant.standard.value).strip().lower()
    try:
        return KitVariant(name)
    except ValueError as exc:
        raise InvalidRequestError(f"unknown_kit_variant:{variant}") from exc


def generate_interview_kit(
    request: GenerationRequest,
    provider: Any,
    *,
    variant: KitVariant | str | None = KitVariant.standard,
) -> InterviewKit:
    """Draft a fresh interview kit for one job/candidate pairing.

    Every entity in the returned kit gets a new id. Two calls with identical
    input are not expected to return the same kit.
    """
    ensure_generation_request(request)
    kit_variant = resolve_variant(variant)
    prompt = prompts.interview_kit_prompt(build_prompt_context(request), kit_variant.value)
    schema = schemas.interview_kit_output_schema()
    LOGGER.info(
        "kit_generation_started",
        variant=kit_variant.value,
        has_resume=request.resume is not None,
        prompt_chars=len(prompt),
    )
    payload = _generate_json(
        provider,
        prompt,
        operation="generate_interview_kit",
        schema=schema,
        schema_name="interview_kit",
        attachments=build_attachments(request),
    )
    return _finalize_kit(payload, schema, operation="generate_interview_kit")


def customize_interview_kit(
    request: GenerationRequest,
    kit: InterviewKit,
    provider: Any,
) -> InterviewKit:
    """Ask the model to refine a user-edited kit, keeping the kit's ids."""
    ensure_generation_request(request)
    prompt = prompts.customize_interview_kit_prompt(
        build_prompt_context(request), kit_to_prompt_payload(kit)
    )
    schema = schemas.interview_kit_output_schema(include_ids=True)
    LOGGER.info(
        "kit_customization_started",
        competencies=len(kit.competencies),
        questions=kit.question_count(),
        criteria=len(kit.scoring_rubric),
        has_resume=request.resume is not None,
    )
    payload = _generate_json(
        provider,
        prompt,
        operation="customize_interview_kit",
        schema=schema,
        schema_name="interview_kit",
        attachments=build_attachments(request),
    )
    return _finalize_kit(
        payload,
        schema,
        operation="customize_interview_kit",
        known_ids=collect_known_ids(kit),
    )


def summarize_job_description(job_description: str, provider: Any) -> JobDescriptionSummary:
    if is_missing_value(job_description):
        raise InvalidRequestError("job_description_missing")
    payload = _generate_json(
        provider,
        prompts.job_description_summary_prompt(job_description.strip()),
        operation="summarize_job_description",
        schema=schemas.job_description_summary_output_schema(),
        schema_name="job_description_summary",
    )
    summary = payload.get("summary")
    if is_missing_value(summary) or not isinstance(summary, str):
        raise GenerationError()
    return JobDescriptionSummary(summary=summary.strip())


def extract_resume_skills(resume: Optional[ResumeAttachment], provider: Any) -> ResumeSkills:
    if resume is None:
        raise InvalidRequestError("resume_missing")
    ensure_resume_attachment(resume)
    payload = _generate_json(
        provider,
        prompts.resume_skills_prompt(resume.file_name),
        operation="extract_resume_skills",
        schema=schemas.resume_skills_output_schema(),
        schema_name="resume_skills",
        attachments=[FileAttachment(data_uri=resume.data_uri, file_name=resume.display_name)],
    )
    skills = payload.get("technical_skills")
    if not isinstance(skills, list):
        raise GenerationError()
    return ResumeSkills(technical_skills=_unique_strings(skills))


def identify_potential_projects(
    job_description: str, candidate_resume: str, provider: Any
) -> List[ProjectSummary]:
    if is_missing_value(job_description):
        raise InvalidRequestError("job_description_missing")
    if is_missing_value(candidate_resume):
        raise InvalidRequestError("candidate_resume_missing")
    payload = _generate_json(
        provider,
        prompts.potential_projects_prompt(job_description.strip(), candidate_resume.strip()),
        operation="identify_potential_projects",
        schema=schemas.potential_projects_output_schema(),
        schema_name="potential_projects",
    )
    projects = payload.get("projects")
    if not isinstance(projects, list):
        raise GenerationError()
    summaries: List[ProjectSummary] = []
    for project in projects:
        if not isinstance(project, dict):
            continue
        name = project.get("project_name")
        if is_missing_value(name) or not isinstance(name, str):
            continue
        key_skills = project.get("key_skills")
        if isinstance(key_skills, list):
            key_skills = ", ".join(_unique_strings(key_skills))
        summary = project.get("summary")
        summaries.append(
            ProjectSummary(
                project_name=name.strip(),
                summary=summary.strip() if isinstance(summary, str) else "",
                key_skills=key_skills.strip() if isinstance(key_skills, str) else "",
            )
        )
    return summaries


def _unique_strings(values: Iterable[Any]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            continue
        cleaned = value.strip()
        if cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        result.append(cleaned)
    return result


def _has_kit_content(payload: Dict[str, Any]) -> bool:
    for key in ("competencies", "questions"):
        value = payload.get(key)
        if isinstance(value, list) and value:
            return True
    return False


def _finalize_kit(
    payload: Dict[str, Any],
    schema: Dict[str, Any],
    *,
    operation: str,
    known_ids: Optional[Iterable[str]] = None,
) -> InterviewKit:
    if not _has_kit_content(payload):
        LOGGER.warning("kit_output_empty", operation=operation, keys=sorted(payload)[:10])
        raise GenerationError()
    issues = schema_issues(payload, schema)
    if issues:
        LOGGER.warning(
            "kit_output_schema_issues",
            operation=operation,
            issue_count=len(issues),
            issues=issues[:5],
        )
    kit = sanitize_kit(payload, known_ids=known_ids)
    kit = kit.model_copy(update={"scoring_rubric": normalize_rubric(kit.scoring_rubric)})
    core_logging.log_event(
        LOGGER,
        "kit_generation_finished",
        {
            "operation": operation,
            "competencies": len(kit.competencies),
            "questions": kit.question_count(),
            "criteria": len(kit.scoring_rubric),
        },
    )
    return kit


def _generate_json(
    provider: Any,
    prompt: str,
    *,
    operation: str,
    schema: Dict[str, Any],
    schema_name: str,
    attachments: Sequence[FileAttachment] = (),
) -> Dict[str, Any]:
    started_at = time.monotonic()
    try:
        response = provider.generate(
            prompt,
            response_schema=schema,
            schema_name=schema_name,
            attachments=list(attachments),
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning(
            "llm_generate_failed",
            operation=operation,
            provider_type=provider.__class__.__name__,
            provider_model=_provider_model(provider),
            error=str(exc),
            duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
        )
        raise GenerationError() from exc
    content = getattr(response, "content", None)
    LOGGER.info(
        "llm_generate_finished",
        operation=operation,
        provider_type=provider.__class__.__name__,
        provider_model=_provider_model(provider),
        prompt_chars=int(len(prompt)),
        attachments=len(attachments),
        response_chars=len(content) if isinstance(content, str) else 0,
        duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
    )
    try:
        return parse_json_object(extract_json(content if isinstance(content, str) else ""))
    except GenerationError:
        LOGGER.warning("llm_output_unparseable", operation=operation)
        raise
