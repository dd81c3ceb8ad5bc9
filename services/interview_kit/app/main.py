from __future__ import annotations

import os
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, make_asgi_app
from pydantic import BaseModel, ConfigDict, Field

from libs.core import logging as core_logging
from libs.core.models import (
    AnswerPoint,
    GenerationRequest,
    InterviewKit,
    InterviewSession,
    JobDescriptionSummary,
    ProjectSummary,
    ResumeAttachment,
    ResumeSkills,
)
from app.mcp import create_mcp_asgi_app
from kit_core import (
    InvalidRequestError,
    KitError,
    create_provider_from_env,
    customize_interview_kit,
    extract_resume_skills,
    generate_interview_kit,
    identify_potential_projects,
    summarize_job_description,
)
from kit_core.answer_points import split_model_answer
from kit_core.session import summarize_session


core_logging.configure_logging("interview_kit")
LOGGER = core_logging.get_logger("interview_kit")

LLM_PROVIDER_INSTANCE = create_provider_from_env()

kit_requests_total = Counter(
    "interview_kit_requests_total", "Interview kit operations", ["operation", "outcome"]
)
kit_request_seconds = Histogram(
    "interview_kit_request_seconds", "Interview kit operation latency", ["operation"]
)


class GenerateKitRequest(GenerationRequest):
    variant: str = "standard"


class CustomizeKitRequest(GenerationRequest):
    kit: InterviewKit


class SummarizeJobDescriptionRequest(BaseModel):
    job_description: str = ""


class ResumeSkillsRequest(BaseModel):
    resume: Optional[ResumeAttachment] = None


class IdentifyProjectsRequest(BaseModel):
    job_description: str = ""
    candidate_resume: str = ""


class IdentifyProjectsResponse(BaseModel):
    projects: List[ProjectSummary] = Field(default_factory=list)


class AnswerPointsRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_answer: str = ""


class AnswerPointsResponse(BaseModel):
    points: List[AnswerPoint] = Field(default_factory=list)


class SessionSummaryResponse(BaseModel):
    questions_total: int
    questions_scored: int
    estimated_minutes: int
    competency_scores: Dict[str, float]
    rubric_score: Optional[float] = None


app = FastAPI(title="Interview Kit Service")
app.state.kit_provider = LLM_PROVIDER_INSTANCE

cors_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)
MCP_APP, MCP_SESSION_MANAGER = create_mcp_asgi_app(LLM_PROVIDER_INSTANCE)
app.mount("/mcp/rpc", MCP_APP)


@app.on_event("startup")
async def _startup_mcp_session_manager() -> None:
    session_cm = MCP_SESSION_MANAGER.run()
    app.state._mcp_session_cm = session_cm
    await session_cm.__aenter__()


@app.on_event("shutdown")
async def _shutdown_mcp_session_manager() -> None:
    session_cm = getattr(app.state, "_mcp_session_cm", None)
    if session_cm is not None:
        await session_cm.__aexit__(None, None, None)


def _http_error(error: KitError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.detail)


@contextmanager
def _observe(operation: str) -> Iterator[None]:
    started_at = time.monotonic()
    outcome = "success"
    try:
        yield
    except InvalidRequestError as exc:
        outcome = "invalid"
        LOGGER.info("request_rejected", operation=operation, detail=exc.detail)
        raise
    except KitError as exc:
        outcome = "failed"
        LOGGER.warning("request_failed", operation=operation, detail=exc.detail)
        raise
    finally:
        kit_requests_total.labels(operation=operation, outcome=outcome).inc()
        kit_request_seconds.labels(operation=operation).observe(time.monotonic() - started_at)


def _generation_request(request: GenerationRequest) -> GenerationRequest:
    return GenerationRequest(
        job_description=request.job_description,
        profile_link=request.profile_link,
        resume=request.resume,
        experience_context=request.experience_context,
    )


@app.get("/healthz")
def healthz() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/kits/generate", response_model=InterviewKit)
def generate_kit_endpoint(request: GenerateKitRequest) -> InterviewKit:
    try:
        with _observe("generate_interview_kit"):
            return generate_interview_kit(
                _generation_request(request),
                LLM_PROVIDER_INSTANCE,
                variant=request.variant,
            )
    except KitError as exc:
        raise _http_error(exc) from exc


@app.post("/kits/customize", response_model=InterviewKit)
def customize_kit_endpoint(request: CustomizeKitRequest) -> InterviewKit:
    try:
        with _observe("customize_interview_kit"):
            return customize_interview_kit(
                _generation_request(request),
                request.kit,
                LLM_PROVIDER_INSTANCE,
            )
    except KitError as exc:
        raise _http_error(exc) from exc


@app.post("/job-descriptions/summarize", response_model=JobDescriptionSummary)
def summarize_job_description_endpoint(
    request: SummarizeJobDescriptionRequest,
) -> JobDescriptionSummary:
    try:
        with _observe("summarize_job_description"):
            return summarize_job_description(request.job_description, LLM_PROVIDER_INSTANCE)
    except KitError as exc:
        raise _http_error(exc) from exc


@app.post("/resumes/skills", response_model=ResumeSkills)
def resume_skills_endpoint(request: ResumeSkillsRequest) -> ResumeSkills:
    try:
        with _observe("extract_resume_skills"):
            return extract_resume_skills(request.resume, LLM_PROVIDER_INSTANCE)
    except KitError as exc:
        raise _http_error(exc) from exc


@app.post("/projects/identify", response_model=IdentifyProjectsResponse)
def identify_projects_endpoint(request: IdentifyProjectsRequest) -> IdentifyProjectsResponse:
    try:
        with _observe("identify_potential_projects"):
            projects = identify_potential_projects(
                request.job_description,
                request.candidate_resume,
                LLM_PROVIDER_INSTANCE,
            )
    except KitError as exc:
        raise _http_error(exc) from exc
    return IdentifyProjectsResponse(projects=projects)


@app.post("/sessions/summary", response_model=SessionSummaryResponse)
def session_summary_endpoint(session: InterviewSession) -> SessionSummaryResponse:
    return SessionSummaryResponse(**summarize_session(session))


@app.post("/answers/points", response_model=AnswerPointsResponse)
def answer_points_endpoint(request: AnswerPointsRequest) -> AnswerPointsResponse:
    return AnswerPointsResponse(points=split_model_answer(request.model_answer))
