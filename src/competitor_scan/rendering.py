"""Canonical markdown rendering of a competitive analysis."""

import re

from competitor_scan.models import CompetitiveAnalysis, Query

ATTRIBUTION = "*Generated by Competitor Quick Scan*"
EXPORT_PREFIX = "competitor-analysis"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def _inline(text: str) -> str:
    return " ".join(text.split())


def _bullets(items: list[str]) -> list[str]:
    return [f"- {_inline(item)}" for item in items]


def render_markdown(query: Query, analysis: CompetitiveAnalysis) -> str:
    """Render ``analysis`` as markdown. Identical inputs always yield identical bytes."""
    md_lines = [
        f"# Competitive Analysis: {_inline(query.text)}",
        "",
        "## Company Overview",
        "",
        _inline(analysis.overview),
        "",
        "## Key Strengths",
        "",
        *_bullets(analysis.strengths),
        "",
        "## Key Weaknesses",
        "",
        *_bullets(analysis.weaknesses),
        "",
        "## Market Position",
        "",
        _inline(analysis.market_position),
        "",
        "## Recommendations",
        "",
        *_bullets(analysis.recommendations),
        "",
        "---",
        "",
        ATTRIBUTION,
    ]
    return "\n".join(md_lines) + "\n"


def export_filename(query: Query | str) -> str:
    """Download filename for a report, e.g. ``competitor-analysis-stripe-com.md``."""
    text = query.text if isinstance(query, Query) else query
    return f"{EXPORT_PREFIX}-{_UNSAFE_FILENAME_CHARS.sub('-', text)}.md"
