from __future__ import annotations

from typing import Any, Dict, List

from libs.core.llm_provider import FileAttachment
from libs.core.models import GenerationRequest, InterviewKit


def is_missing_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def build_prompt_context(request: GenerationRequest) -> Dict[str, Any]:
    context: Dict[str, Any] = {
        "job_description": request.job_description.strip(),
        "profile_link": request.profile_link.strip(),
        "has_resume": request.resume is not None,
    }
    if request.resume is not None:
        context["resume_file_name"] = request.resume.display_name
    if not is_missing_value(request.experience_context):
        context["experience_context"] = request.experience_context.strip()
    return context


def build_attachments(request: GenerationRequest) -> List[FileAttachment]:
    if request.resume is None:
        return []
    return [
        FileAttachment(
            data_uri=request.resume.data_uri,
            file_name=request.resume.display_name,
        )
    ]


def kit_to_prompt_payload(kit: InterviewKit) -> Dict[str, Any]:
    return kit.model_dump(mode="json")


def collect_known_ids(kit: InterviewKit) -> set[str]:
    return {entity_id for entity_id in kit.entity_ids() if not is_missing_value(entity_id)}
