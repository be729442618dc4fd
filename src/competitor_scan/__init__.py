"""Competitor Quick Scan - AI-powered competitive analysis of any business"""

__version__ = "0.1.0"

from competitor_scan.exceptions import (
    AnalysisRequestError,
    ErrorKind,
    InvalidQueryError,
    MalformedOutputError,
    PipelineError,
    ProviderUnavailableError,
    UnknownPipelineError,
)
from competitor_scan.extraction import extract_analysis, find_json_object
from competitor_scan.gateway import AgentCompletionGateway, CompletionGateway
from competitor_scan.lifecycle import (
    Failed,
    Idle,
    InvalidTransition,
    Pending,
    RequestLifecycle,
    SubmissionRejected,
    Succeeded,
)
from competitor_scan.models import (
    CompetitiveAnalysis,
    CompletionRequest,
    CompletionResult,
    Query,
    Report,
)
from competitor_scan.pipeline import run_analysis
from competitor_scan.prompts import build_completion_request
from competitor_scan.rendering import export_filename, render_markdown
from competitor_scan.validation import validate_query

__all__ = [
    # Models
    "Query",
    "CompletionRequest",
    "CompletionResult",
    "CompetitiveAnalysis",
    "Report",
    # Pipeline stages
    "validate_query",
    "build_completion_request",
    "CompletionGateway",
    "AgentCompletionGateway",
    "find_json_object",
    "extract_analysis",
    "render_markdown",
    "export_filename",
    "run_analysis",
    # Client lifecycle
    "RequestLifecycle",
    "Idle",
    "Pending",
    "Succeeded",
    "Failed",
    "SubmissionRejected",
    "InvalidTransition",
    # Exceptions
    "ErrorKind",
    "PipelineError",
    "InvalidQueryError",
    "ProviderUnavailableError",
    "MalformedOutputError",
    "UnknownPipelineError",
    "AnalysisRequestError",
]
