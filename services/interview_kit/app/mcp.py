from __future__ import annotations

import os
import time
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings

from libs.core import logging as core_logging
from libs.core.models import GenerationRequest, InterviewKit
from kit_core import (
    KitError,
    customize_interview_kit as run_customize_interview_kit,
    generate_interview_kit as run_generate_interview_kit,
    summarize_job_description as run_summarize_job_description,
)

LOGGER = core_logging.get_logger("interview_kit")


def _generation_request(
    job_description: str,
    profile_link: str,
    resume: Dict[str, Any] | None,
    experience_context: str | None,
) -> GenerationRequest:
    try:
        return GenerationRequest.model_validate(
            {
                "job_description": job_description or "",
                "profile_link": profile_link or "",
                "resume": resume,
                "experience_context": experience_context,
            }
        )
    except ValueError as exc:
        raise RuntimeError("invalid_generation_request") from exc


def create_mcp_asgi_app(provider: Any):
    default_hosts = [
        "interview_kit",
        "interview_kit:8000",
        "localhost",
        "localhost:8000",
        "localhost:*",
        "127.0.0.1",
        "127.0.0.1:8000",
        "127.0.0.1:*",
    ]
    raw_allowed_hosts = os.getenv("MCP_ALLOWED_HOSTS", "")
    allowed_hosts = [h.strip() for h in raw_allowed_hosts.split(",") if h.strip()] or default_hosts
    mcp = FastMCP(
        "interview-kit",
        transport_security=TransportSecuritySettings(allowed_hosts=allowed_hosts),
    )

    @mcp.tool()
    def generate_interview_kit(
        job_description: str = "",
        profile_link: str = "",
        resume: Dict[str, Any] | None = None,
        experience_context: str | None = None,
        variant: str = "standard",
    ) -> Dict[str, Any]:
        started_at = time.monotonic()
        request = _generation_request(job_description, profile_link, resume, experience_context)
        try:
            kit = run_generate_interview_kit(request, provider, variant=variant)
        except KitError as exc:
            LOGGER.warning(
                "mcp_generate_kit_failed",
                error=exc.detail,
                duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
            )
            raise RuntimeError(exc.detail) from exc
        return kit.model_dump(mode="json")

    @mcp.tool()
    def customize_interview_kit(
        kit: Dict[str, Any],
        job_description: str = "",
        profile_link: str = "",
        resume: Dict[str, Any] | None = None,
        experience_context: str | None = None,
    ) -> Dict[str, Any]:
        request = _generation_request(job_description, profile_link, resume, experience_context)
        try:
            current = InterviewKit.model_validate(kit or {})
        except ValueError as exc:
            raise RuntimeError("invalid_interview_kit") from exc
        try:
            customized = run_customize_interview_kit(request, current, provider)
        except KitError as exc:
            LOGGER.warning("mcp_customize_kit_failed", error=exc.detail)
            raise RuntimeError(exc.detail) from exc
        return customized.model_dump(mode="json")

    @mcp.tool()
    def summarize_job_description(job_description: str) -> Dict[str, Any]:
        try:
            return run_summarize_job_description(job_description, provider).model_dump()
        except KitError as exc:
            raise RuntimeError(exc.detail) from exc

    mcp_app = mcp.streamable_http_app()
    session_manager = mcp_app.routes[0].app.session_manager
    return mcp_app, session_manager
