"""Normalization and validation of raw user queries."""

from typing import Any

from competitor_scan.exceptions import InvalidQueryError
from competitor_scan.models import MAX_QUERY_LENGTH, Query


def validate_query(raw: Any) -> Query:
    """Trim ``raw`` and accept it as a Query.

    Only surrounding whitespace is removed; case and URL form are kept as typed,
    since "Stripe" and "stripe.com" are both meaningful to the model.

    Raises:
        InvalidQueryError: ``empty`` for blank or non-string input,
            ``too_long`` when the trimmed text exceeds 500 characters.
    """
    if not isinstance(raw, str):
        raise InvalidQueryError("empty", f"expected a string, got {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise InvalidQueryError("empty")
    if len(text) > MAX_QUERY_LENGTH:
        raise InvalidQueryError("too_long", f"{len(text)} characters")

    return Query(text=text)
