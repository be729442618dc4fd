"""HTTP client for the /analyze endpoint, used by RequestLifecycle."""

import httpx
from pydantic import ValidationError

from competitor_scan.exceptions import AnalysisRequestError
from competitor_scan.logging import get_logger
from competitor_scan.models import AnalyzeRequest, AnalyzeResponse, Report
from competitor_scan.validation import validate_query

log = get_logger("competitor_scan.client")

ANALYZE_PATH = "/analyze"
FALLBACK_ERROR_MESSAGE = "Analysis failed"
NETWORK_ERROR_MESSAGE = "Could not reach the analysis service. Please try again."
DEFAULT_TIMEOUT_SECONDS = 120.0


class AnalysisClient:
    """Thin async wrapper that turns /analyze responses into Reports or AnalysisRequestErrors."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    @classmethod
    def for_base_url(cls, base_url: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> "AnalysisClient":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def analyze(self, query: str) -> Report:
        """POST the query and return the resulting report.

        Raises:
            InvalidQueryError: The query fails local validation; nothing is sent.
            AnalysisRequestError: Transport failure, or the server reported no success.
        """
        validated = validate_query(query)
        try:
            response = await self._http.post(
                ANALYZE_PATH, json=AnalyzeRequest(query=validated.text).model_dump()
            )
        except httpx.HTTPError as e:
            log.warning("client.transport_error", error=str(e))
            raise AnalysisRequestError(NETWORK_ERROR_MESSAGE) from e

        try:
            body = AnalyzeResponse.model_validate_json(response.content)
        except ValidationError as e:
            log.warning("client.invalid_response", status_code=response.status_code, error=str(e))
            raise AnalysisRequestError(FALLBACK_ERROR_MESSAGE, response.status_code) from e

        if not response.is_success or not body.success or body.data is None or body.markdown is None:
            raise AnalysisRequestError(body.error or FALLBACK_ERROR_MESSAGE, response.status_code)

        return Report(query=validated, analysis=body.data, markdown=body.markdown)
