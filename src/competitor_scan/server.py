"""FastAPI application for the competitor analysis service."""

import os

import structlog
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from competitor_scan import __version__
from competitor_scan.demo import get_demo_report, is_demo_mode_allowed
from competitor_scan.exceptions import PipelineError
from competitor_scan.gateway import CompletionGateway
from competitor_scan.logging import configure_structlog
from competitor_scan.models import AnalyzeRequest, AnalyzeResponse, ExportRequest
from competitor_scan.pipeline import run_analysis
from competitor_scan.rendering import export_filename, render_markdown
from competitor_scan.validation import validate_query

log = structlog.get_logger("competitor_scan.server")

MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"
BAD_REQUEST_MESSAGE = "Query is required and must be a non-empty string"
UNEXPECTED_ERROR_MESSAGE = "Failed to analyze competitor. Please try again."


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status", examples=["ok"])
    version: str = Field(
        default="",
        description="Service version (only included in /health endpoint)",
        examples=["0.1.0"],
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=AnalyzeResponse(success=False, error=message).model_dump(exclude_none=True),
    )


# --- Exception handlers ---


async def _handle_pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
    # Full detail stays in the logs; the client only sees the fixed user message.
    log.warning(
        "request.pipeline_error",
        kind=exc.kind.value,
        reason=exc.reason,
        detail=exc.detail,
        status_code=exc.status_code,
    )
    return _error_response(exc.status_code, exc.user_message)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning("request.validation_error", detail=str(exc.errors()))
    return _error_response(status.HTTP_400_BAD_REQUEST, BAD_REQUEST_MESSAGE)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unexpected_error", error=str(exc))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR_MESSAGE)


# --- App factory ---


def get_app(*, gateway: CompletionGateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        gateway: Completion gateway used for every request (defaults to the
            Anthropic-backed gateway configured from the environment).
    """
    configure_structlog(testing=os.getenv("ENVIRONMENT", "development") == "development")

    application = FastAPI(
        title="Competitor Quick Scan",
        description="""
AI-powered competitive analysis of any business, identified by name or URL.

## Overview

Each request runs a single pipeline:

1. **Validate** the query (trimmed, 1-500 characters)
2. **Prompt** the model for a five-section analysis as strict JSON
3. **Extract** the JSON object from the reply, tolerating surrounding prose
4. **Validate** the structure (overview, strengths, weaknesses, market position, recommendations)
5. **Render** canonical markdown for copy and download

## Errors

- `400` invalid query
- `500` provider unavailable, malformed model output, or unexpected failure
        """,
        version=__version__,
    )

    application.add_exception_handler(PipelineError, _handle_pipeline_error)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    application.add_exception_handler(Exception, _handle_unexpected_error)

    @application.post(
        "/analyze",
        response_model=AnalyzeResponse,
        response_model_exclude_none=True,
        status_code=status.HTTP_200_OK,
        summary="Analyze Competitor",
        description="""
Generates a competitive analysis for a company name or URL.

Returns the structured analysis under `data` and its markdown export under `markdown`.
Failures return `success: false` with a short, user-safe `error` message.
        """,
        tags=["Analysis"],
        responses={
            400: {
                "description": "Invalid query (empty, whitespace-only, longer than 500 characters, or missing)",
                "model": AnalyzeResponse,
                "content": {
                    "application/json": {
                        "example": {"success": False, "error": "Please enter a company name or URL."}
                    }
                },
            },
            500: {
                "description": "Provider unavailable, malformed model output, or unexpected failure",
                "model": AnalyzeResponse,
                "content": {
                    "application/json": {
                        "example": {"success": False, "error": "Failed to analyze competitor. Please try again."}
                    }
                },
            },
        },
    )
    async def analyze(
        body: AnalyzeRequest,
        demo: bool = Query(default=False, description="Return a canned analysis without calling the provider"),
    ) -> AnalyzeResponse:
        if demo:
            if not is_demo_mode_allowed():
                raise HTTPException(
                    status_code=403,
                    detail="Demo mode not available in this environment",
                )
            report = get_demo_report(validate_query(body.query))
            log.warning("demo_mode_active", query=report.query.text, endpoint="/analyze")
        else:
            report = await run_analysis(body.query, gateway=gateway)

        return AnalyzeResponse(success=True, data=report.analysis, markdown=report.markdown)

    @application.post(
        "/analyze/export",
        response_class=Response,
        status_code=status.HTTP_200_OK,
        summary="Export Analysis as Markdown",
        description="Renders a previously returned analysis as a downloadable markdown file.",
        tags=["Analysis"],
        responses={200: {"content": {"text/markdown": {}}}, 400: {"model": AnalyzeResponse}},
    )
    async def export(body: ExportRequest) -> Response:
        query = validate_query(body.query)
        filename = export_filename(query)
        log.info("export.rendered", filename=filename)
        return Response(
            content=render_markdown(query, body.analysis),
            media_type=MARKDOWN_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @application.get(
        "/health",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Health Check",
        tags=["Health"],
    )
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @application.get(
        "/health/liveness",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Liveness Probe",
        description="Returns 200 OK while the process can accept requests.",
        tags=["Health"],
    )
    async def liveness() -> HealthResponse:
        return HealthResponse(status="alive")

    @application.get(
        "/health/readiness",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Readiness Probe",
        description="Returns 200 OK when the service can serve analysis requests.",
        tags=["Health"],
    )
    async def readiness() -> HealthResponse:
        return HealthResponse(status="ready")

    return application


app = get_app()
