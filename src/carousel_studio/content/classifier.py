"""Content-type classification of a free-text carousel topic."""

from __future__ import annotations

from typing import Final

from ..constants import ContentType

# Evaluated top to bottom; the first category with a matching keyword wins.
# The order is the tie-break when a topic matches several categories
# ("how to share tips" is educational, not tips), so do not reorder.
CONTENT_TYPE_KEYWORDS: Final[tuple[tuple[ContentType, tuple[str, ...]], ...]] = (
    (ContentType.EDUCATIONAL, ("how to", "guide", "learn", "tutorial", "steps", "process")),
    (ContentType.TIPS, ("tips", "hacks", "tricks", "secrets", "ways to")),
    (ContentType.PROMOTIONAL, ("product", "service", "buy", "offer", "sale", "discount")),
    (ContentType.INSPIRATIONAL, ("motivat", "inspir", "success", "achieve", "goals", "dream")),
    (ContentType.STORYTELLING, ("story", "journey", "experience", "once")),
)

DEFAULT_CONTENT_TYPE: Final[ContentType] = ContentType.EDUCATIONAL


def detect_content_type(prompt: str) -> ContentType:
    """Classify a topic into one content type.

    Case-insensitive substring match against each category's keywords in
    priority order. Topics matching nothing are educational.

    Args:
        prompt: Free-text topic or instruction.

    Returns:
        The first matching ContentType.
    """
    lowered = prompt.lower()
    for content_type, keywords in CONTENT_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return content_type
    return DEFAULT_CONTENT_TYPE
