"""Parsing of the text provider's carousel JSON."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from ..errors import UnknownProviderError
from .models import CarouselContent

_logger = logging.getLogger("ai_calls")

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _extract_json(raw: str) -> str:
    """Strip markdown fences and surrounding prose around the JSON object."""
    fenced = _FENCE_PATTERN.search(raw)
    if fenced:
        raw = fenced.group(1)
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return raw.strip()
    return raw[start:end + 1]


def parse_carousel_content(raw: str, expected_slides: int, provider: str = "text") -> CarouselContent:
    """Parse and validate the carousel JSON returned by the text provider.

    Args:
        raw: Raw provider output.
        expected_slides: Slide count the prompt asked for.
        provider: Provider name for error reporting.

    Returns:
        CarouselContent with exactly expected_slides slides, renumbered 1..n.

    Raises:
        UnknownProviderError: If the output is not valid JSON, does not match
            the expected shape or has the wrong number of slides.
    """
    try:
        data = json.loads(_extract_json(raw))
    except json.JSONDecodeError as e:
        _logger.warning(f"PARSE_ERROR | provider:{provider} | error:{e} | raw:{raw[:200]}")
        raise UnknownProviderError(provider, f"response is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("slides"), list):
        raise UnknownProviderError(provider, "response has no slides array")

    try:
        content = CarouselContent.model_validate(data)
    except PydanticValidationError as e:
        raise UnknownProviderError(provider, f"invalid slide structure: {e.error_count()} errors") from e

    if len(content.slides) != expected_slides:
        raise UnknownProviderError(
            provider,
            f"expected {expected_slides} slides, got {len(content.slides)}",
        )

    # Positions are authoritative, not whatever numbering the model chose
    for number, slide in enumerate(content.slides, start=1):
        slide.slide_number = number
    return content
