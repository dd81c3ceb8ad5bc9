from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator

from libs.core.models import GenerationRequest, ResumeAttachment

from .context import is_missing_value
from .errors import GenerationError, InvalidRequestError


def ensure_resume_attachment(resume: Optional[ResumeAttachment]) -> None:
    if resume is None:
        return
    if resume.mime_type is None:
        raise InvalidRequestError("resume_data_uri_invalid")


def ensure_generation_request(request: GenerationRequest) -> None:
    if is_missing_value(request.job_description):
        raise InvalidRequestError("job_description_missing")
    if is_missing_value(request.profile_link):
        raise InvalidRequestError("profile_link_missing")
    ensure_resume_attachment(request.resume)


def extract_json(text: str) -> str:
    if not text:
        return ""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.strip("`")
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return ""
    return stripped[start : end + 1]


def parse_json_object(json_text: str) -> Dict[str, Any]:
    if not json_text:
        raise GenerationError()
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise GenerationError() from exc
    if not isinstance(payload, dict):
        raise GenerationError()
    return payload


def schema_issues(payload: Any, schema: Dict[str, Any], *, limit: int = 20) -> List[str]:
    """Describe where a model payload departs from its output schema.

    Reporting only: the sanitizer decides what to do with each gap.
    """
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(map(str, err.path)))
    return [
        f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}" for err in errors[:limit]
    ]
