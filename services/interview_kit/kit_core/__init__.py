from .errors import GenerationError, InvalidRequestError, KitError
from .service import (
    create_provider_from_env,
    customize_interview_kit,
    extract_resume_skills,
    generate_interview_kit,
    identify_potential_projects,
    summarize_job_description,
)

__all__ = [
    "KitError",
    "InvalidRequestError",
    "GenerationError",
    "create_provider_from_env",
    "generate_interview_kit",
    "customize_interview_kit",
    "summarize_job_description",
    "extract_resume_skills",
    "identify_potential_projects",
]
