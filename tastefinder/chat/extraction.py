"""
Structured-query extraction from free-text model replies.

The model is asked to answer with a JSON object but is free to wrap it in
prose, or to answer conversationally with no JSON at all. An extractor takes
the raw completion text and returns an ExtractedQuery, or None when the
reply should be treated as plain conversation. Swapping the extractor does
not touch the orchestration in flow.py.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Callable, Optional

from pydantic import ValidationError

from ..search.models import QueryParams
from .config import get_session_config
from .models import ExtractedQuery

logger = logging.getLogger(__name__)

Extractor = Callable[[str], Optional[ExtractedQuery]]

_BRACE_SPAN_RE = re.compile(r"\{[\s\S]*\}")
_FENCED_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)


def _decode(candidate: str) -> ExtractedQuery | None:
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        logger.info("Model reply contained a brace span that is not valid JSON")
        return None
    if not isinstance(data, dict):
        return None
    return ExtractedQuery.model_validate(data)


def extract_brace_span(text: str) -> ExtractedQuery | None:
    """Greedy first-``{`` to last-``}`` span."""
    match = _BRACE_SPAN_RE.search(text or "")
    if not match:
        return None
    return _decode(match.group(0))


def extract_fenced_block(text: str) -> ExtractedQuery | None:
    """Only a fenced ```json block counts."""
    match = _FENCED_RE.search(text or "")
    if not match:
        return None
    return _decode(match.group(1))


EXTRACTORS: dict[str, Extractor] = {
    "brace": extract_brace_span,
    "fenced": extract_fenced_block,
}


def get_extractor(name: str | None = None) -> Extractor:
    name = (name or get_session_config().extraction_strategy or "brace").strip().lower()
    try:
        return EXTRACTORS[name]
    except KeyError:
        raise ValueError(f"Unknown extraction strategy: {name!r}") from None


def display_text(raw: str, extracted: ExtractedQuery | None) -> str:
    """The assistant turn to show: the JSON ``message`` if any, else the raw reply."""
    if extracted is not None and isinstance(extracted.message, str) and extracted.message.strip():
        return extracted.message
    return raw


def to_query_params(extracted: ExtractedQuery) -> QueryParams | None:
    """
    Build search parameters from an extracted object.

    Returns None unless both food and location are present. Modifiers the
    search cannot use (a price of "cheap", a radius of "nearby") are dropped.
    """
    if not extracted.triggers_search:
        return None

    params = QueryParams(food=extracted.food, location=extracted.location)
    for field in ("price", "open_now", "radius"):
        value = getattr(extracted, field)
        if value is None:
            continue
        try:
            params = QueryParams.model_validate({**params.model_dump(), field: value})
        except ValidationError:
            logger.warning("Dropping unusable %s=%r from model reply", field, value)
    return params
