"""Analysis pipeline: one query in, one report (or one PipelineError) out."""

from time import perf_counter

from competitor_scan.config import GatewaySettings
from competitor_scan.exceptions import PipelineError, UnknownPipelineError
from competitor_scan.extraction import extract_analysis
from competitor_scan.gateway import AgentCompletionGateway, CompletionGateway
from competitor_scan.logging import bind_context_vars, get_logger, new_correlation_id
from competitor_scan.models import Report
from competitor_scan.prompts import build_completion_request
from competitor_scan.rendering import render_markdown
from competitor_scan.validation import validate_query

log = get_logger("competitor_scan.pipeline")


def _elapsed_ms(start: float) -> int:
    return int((perf_counter() - start) * 1000)


async def run_analysis(
    raw_query: str,
    *,
    gateway: CompletionGateway | None = None,
    settings: GatewaySettings | None = None,
) -> Report:
    """Execute validate -> prompt -> complete -> extract -> render.

    Args:
        raw_query: Query exactly as the user typed it.
        gateway: Override the default provider gateway (for testing).
        settings: Model id and token limit for the request. Defaults to the
            gateway's own settings when it has them, else the environment.

    Returns:
        Report with the validated query, structured analysis and markdown.

    Raises:
        InvalidQueryError: The query is empty or too long.
        ProviderUnavailableError: The provider is unconfigured, unreachable or refused.
        MalformedOutputError: The model output held no valid analysis.
        UnknownPipelineError: Any failure none of the stages anticipated.
    """
    correlation_id = new_correlation_id()
    bind_context_vars(correlation_id=correlation_id)
    _gateway = gateway or AgentCompletionGateway(settings)
    settings = settings or getattr(_gateway, "settings", None) or GatewaySettings.from_env()

    workflow_start = perf_counter()
    try:
        query = validate_query(raw_query)
        bind_context_vars(query=query.text)
        log.info("analysis.started")

        request = build_completion_request(query, settings=settings)

        phase_start = perf_counter()
        result = await _gateway.complete(request)
        log.info("analysis.completion.finished", duration_ms=_elapsed_ms(phase_start), ok=result.ok)

        analysis = extract_analysis(result)
        markdown = render_markdown(query, analysis)
    except PipelineError as e:
        log.warning(
            "analysis.failed",
            kind=e.kind.value,
            reason=e.reason,
            detail=e.detail,
            total_ms=_elapsed_ms(workflow_start),
        )
        raise
    except Exception as e:
        log.exception("analysis.unexpected_error", error=str(e))
        raise UnknownPipelineError(detail=f"{type(e).__name__}: {e}") from e

    log.info(
        "analysis.completed",
        total_ms=_elapsed_ms(workflow_start),
        strengths=len(analysis.strengths),
        weaknesses=len(analysis.weaknesses),
        recommendations=len(analysis.recommendations),
    )
    return Report(query=query, analysis=analysis, markdown=markdown)
