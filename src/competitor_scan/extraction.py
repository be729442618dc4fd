"""Recovery of a structured analysis from free-form model output.

Models are asked for bare JSON but routinely wrap it in prose ("Sure! Here is...").
Extraction therefore locates the first balanced top-level object in the text, parses
only that span, and validates it strictly against CompetitiveAnalysis. Anything that
fails is rejected as MalformedOutputError; nothing off-schema reaches the caller.
"""

import json

from pydantic import ValidationError

from competitor_scan.exceptions import MalformedOutputError
from competitor_scan.models import CompetitiveAnalysis, CompletionResult


def find_json_object(text: str) -> str | None:
    """Return the span from the first ``{`` to its matching ``}``, or None if unbalanced.

    Braces inside JSON string literals (including escaped quotes) do not count.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def _first_error_field(exc: ValidationError) -> str:
    for error in exc.errors():
        if error["loc"]:
            return str(error["loc"][0])
    return "__root__"


def parse_analysis(text: str) -> CompetitiveAnalysis:
    """Extract and validate a CompetitiveAnalysis from raw model text."""
    span = find_json_object(text)
    if span is None:
        raise MalformedOutputError("no_json", "no balanced JSON object in model output")

    try:
        payload = json.loads(span)
    except json.JSONDecodeError as e:
        raise MalformedOutputError("parse_error", f"{e.msg} at position {e.pos}") from e

    try:
        return CompetitiveAnalysis.model_validate(payload, by_name=False)
    except ValidationError as e:
        raise MalformedOutputError("schema_error", field=_first_error_field(e)) from e


def extract_analysis(result: CompletionResult) -> CompetitiveAnalysis:
    """Turn a completion result into a validated analysis.

    Raises:
        ProviderUnavailableError: The completion itself failed (not a parsing problem).
        MalformedOutputError: ``no_json``, ``parse_error`` or ``schema_error``.
    """
    if result.error is not None:
        raise result.error
    return parse_analysis(result.text or "")
