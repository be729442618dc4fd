"""Pydantic models for the competitor analysis pipeline."""

from dataclasses import dataclass
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from competitor_scan.exceptions import ProviderUnavailableError

MAX_QUERY_LENGTH = 500

NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _single_line(value: str) -> str:
    return " ".join(value.split())


# Analysis text renders one item per markdown line; embedded line breaks fold into spaces.
InlineText = Annotated[NonEmptyText, AfterValidator(_single_line)]


class Query(BaseModel):
    """A validated competitor identifier (company name or URL), treated as opaque text."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(
        min_length=1,
        max_length=MAX_QUERY_LENGTH,
        description="Trimmed company name or URL to analyze (1-500 characters)",
        examples=["Stripe", "shopify.com"],
    )

    def __str__(self) -> str:
        return self.text


class CompletionRequest(BaseModel):
    """Rendered prompt plus the fixed model parameters for one completion."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(min_length=1, description="Fully rendered instruction prompt")
    model: str = Field(min_length=1, description="Provider model identifier", examples=["claude-sonnet-4-5"])
    max_tokens: int = Field(gt=0, description="Upper bound on generated output tokens", examples=[2048])


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of one completion: the raw model text, or the provider failure."""

    text: str | None = None
    error: ProviderUnavailableError | None = None

    @classmethod
    def success(cls, text: str) -> "CompletionResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: ProviderUnavailableError) -> "CompletionResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


class CompetitiveAnalysis(BaseModel):
    """Structured competitive analysis extracted from the model response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    overview: InlineText = Field(
        description="Brief description of what the company does and its business model",
        examples=["Stripe is a payments infrastructure company serving online businesses of every size."],
    )
    strengths: list[InlineText] = Field(
        min_length=1,
        description="Key competitive advantages, in the order the model listed them",
        examples=[["Developer-friendly APIs", "Global payment method coverage", "Strong brand trust"]],
    )
    weaknesses: list[InlineText] = Field(
        min_length=1,
        description="Areas of vulnerability or limitations",
        examples=[["Premium pricing for small merchants", "Limited offline presence"]],
    )
    market_position: InlineText = Field(
        alias="marketPosition",
        description="Where the company sits in its market relative to competitors",
        examples=["Category leader in online payments for internet-first businesses."],
    )
    recommendations: list[InlineText] = Field(
        min_length=1,
        description="Actionable ways to compete against this company",
        examples=[["Target price-sensitive SMBs", "Bundle in-person payments"]],
    )


class Report(BaseModel):
    """Terminal success artifact of one analysis run."""

    model_config = ConfigDict(frozen=True)

    query: Query = Field(description="The validated query that was analyzed")
    analysis: CompetitiveAnalysis = Field(description="Validated structured analysis")
    markdown: str = Field(description="Canonical markdown rendering of the analysis, used for export")


# --- Wire schemas for the /analyze boundary ---


class AnalyzeRequest(BaseModel):
    """Incoming analysis request. Length and blankness are checked by the pipeline, not here."""

    query: str = Field(
        description="Company name or URL to analyze (1-500 characters after trimming)",
        examples=["Stripe"],
    )


class AnalyzeResponse(BaseModel):
    """Analysis response envelope shared by the server and the client."""

    success: bool = Field(description="Whether the analysis completed")
    data: CompetitiveAnalysis | None = Field(default=None, description="Structured analysis on success")
    markdown: str | None = Field(default=None, description="Markdown export of the analysis on success")
    error: str | None = Field(
        default=None,
        description="User-safe error message on failure",
        examples=["Failed to analyze competitor. Please try again."],
    )


class ExportRequest(BaseModel):
    """Request to re-render an analysis as a downloadable markdown file."""

    query: str = Field(description="Query the analysis was produced for", examples=["Stripe"])
    analysis: CompetitiveAnalysis = Field(description="Previously returned analysis to export")
