"""Domain-specific exceptions for the competitor analysis pipeline."""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of pipeline failure kinds."""

    INVALID_QUERY = "invalid_query"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


class PipelineError(Exception):
    """Base exception for analysis pipeline errors.

    Subclasses fix ``kind`` and ``status_code``; ``user_message`` is safe to show
    to end users while ``detail`` is diagnostic and only ever logged.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 500
    _user_messages: dict[str, str] = {}
    _default_user_message = "Failed to analyze competitor. Please try again."

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"{self.kind.value}: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self._user_messages.get(self.reason, self._default_user_message)


class InvalidQueryError(PipelineError):
    """Raised when the raw query is empty or too long."""

    kind = ErrorKind.INVALID_QUERY
    status_code = 400
    _user_messages = {
        "empty": "Please enter a company name or URL.",
        "too_long": "Query must be 500 characters or fewer.",
    }
    _default_user_message = "Query is required and must be a non-empty string."


class ProviderUnavailableError(PipelineError):
    """Raised when the completion provider cannot produce a response."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE
    _user_messages = {
        "not_configured": "API configuration error.",
        "rate_limited": "The analysis service is busy. Please try again shortly.",
        "timeout": "The analysis took too long. Please try again.",
    }


class MalformedOutputError(PipelineError):
    """Raised when the model response cannot be turned into an analysis."""

    kind = ErrorKind.MALFORMED_OUTPUT
    _default_user_message = "The analysis could not be generated. Please try again or try a different query."

    def __init__(self, reason: str, detail: str = "", *, field: str | None = None) -> None:
        self.field = field
        if field and not detail:
            detail = f"invalid field '{field}'"
        super().__init__(reason, detail)


class UnknownPipelineError(PipelineError):
    """Raised for failures no pipeline stage anticipated."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, detail: str = "") -> None:
        super().__init__("unknown", detail)


class AnalysisRequestError(Exception):
    """Raised client-side when the analysis endpoint does not return a report."""

    def __init__(self, user_message: str, status_code: int | None = None) -> None:
        self.user_message = user_message
        self.status_code = status_code
        super().__init__(user_message)
